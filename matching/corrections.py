#!/usr/bin/env python3
"""
Typo & Plural Corrector
Applies the misspelling table from 30_typos.yaml ("chiken -> chicken") and
the plural table from 40_plurals.yaml ("tomatoes -> tomato") to lowercased text.
"""

import re
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class TextCorrector:
    """Whole-word typo replacement and plural -> singular mapping"""

    def __init__(self, typo_corrections: Dict[str, str], plural_mappings: Dict[str, str]):
        """
        Args:
            typo_corrections: misspelling -> correction
            plural_mappings: plural token -> singular token
        """
        self.typo_corrections = {k.lower(): v.lower() for k, v in typo_corrections.items() if k}
        self.plural_mappings = {k.lower(): v.lower() for k, v in plural_mappings.items() if k}
        self._typo_pattern = self._build_typo_pattern()
        logger.debug(f"TextCorrector loaded {len(self.typo_corrections)} typos, {len(self.plural_mappings)} plurals")

    @classmethod
    def from_rules(cls, rule_loader) -> 'TextCorrector':
        return cls(rule_loader.get_typo_corrections(), rule_loader.get_plural_mappings())

    def _build_typo_pattern(self) -> Optional[re.Pattern]:
        if not self.typo_corrections:
            return None
        # Longest first so a multi-word typo wins over a shorter one it contains
        alternatives = sorted(self.typo_corrections, key=len, reverse=True)
        return re.compile(r'\b(?:' + '|'.join(re.escape(a) for a in alternatives) + r')\b', re.IGNORECASE)

    def fix_typos(self, text: str) -> str:
        """
        Replace known misspellings, whole words only, in one pass.

        A corrected word is never corrected again ("tomatos" -> "tomatoes",
        not further), unmatched text passes through unchanged.
        """
        if not text or not isinstance(text, str):
            return ''
        corrected = text.lower()
        if self._typo_pattern is None:
            return corrected
        return self._typo_pattern.sub(lambda m: self.typo_corrections[m.group(0).lower()], corrected)

    def handle_plurals(self, text: str) -> str:
        """Map each token that is a known plural to its singular, keeping order and spacing"""
        if not text or not isinstance(text, str):
            return ''
        return ' '.join(self.plural_mappings.get(word.lower(), word) for word in text.split(' '))
