#!/usr/bin/env python3
"""
Synonym Store
Owns the synonym table (canonical key -> phrases) for the lifetime of a
matcher. Seeded from 60_synonyms.yaml, grows through user corrections and
auto-learning from frequently unmatched phrases.

The table is an explicit value passed to ProductMatcher, so tests and
workers can each hold an isolated instance.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .text_normalizer import normalize, key_phrase
from .similarity import dice_coefficient

logger = logging.getLogger(__name__)

METHOD_EXACT = 'exact'
METHOD_EXACT_DISPLAY = 'exact_display'
METHOD_SYNONYM = 'synonym'
METHOD_DB_SYNONYM = 'db_synonym'


class SynonymStore:
    """Synonym table with ordered resolution and correction learning"""

    def __init__(self, base_synonyms: Optional[Mapping[str, List[str]]] = None,
                 auto_learn_threshold: float = 0.7):
        """
        Args:
            base_synonyms: canonical key -> synonym phrases (copied)
            auto_learn_threshold: minimum similarity for auto_learn_synonym
        """
        self.auto_learn_threshold = auto_learn_threshold
        self._lock = threading.Lock()
        # Writers swap in a new dict; readers take self._table once and iterate it
        self._table: Dict[str, List[str]] = {
            key: list(phrases or []) for key, phrases in (base_synonyms or {}).items()
        }
        # Normalized phrases learned on top of the base table, replayed by load_learned
        self._learned: Dict[str, Dict[str, List[str]]] = {'added': {}, 'removed': {}}

    @classmethod
    def from_rules(cls, rule_loader, auto_learn_threshold: float = 0.7) -> 'SynonymStore':
        store = cls(rule_loader.get_base_synonyms(), auto_learn_threshold=auto_learn_threshold)
        logger.info(f"Loaded {len(store.keys())} synonym groups")
        return store

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def keys(self) -> List[str]:
        return list(self._table.keys())

    def synonyms_for(self, key: str) -> List[str]:
        return list(self._table.get(key, []))

    def to_dict(self) -> Dict[str, List[str]]:
        return {key: list(phrases) for key, phrases in self._table.items()}

    def match_store_synonym(self, phrase: str, catalog: Mapping) -> Optional[str]:
        """Key whose store synonyms contain phrase, only if that key is in the catalog"""
        if not phrase:
            return None
        for key, phrases in self._table.items():
            if key in catalog and any(normalize(p) == phrase for p in phrases):
                return key
        return None

    def resolve_with_method(self, clean_phrase: str, catalog: Mapping) -> Optional[Tuple[str, str]]:
        """
        Resolve a processed phrase to a catalog key.

        Checks in order, first hit wins:
        1. catalog key equality (key or key read as words)   -> 'exact'
        2. normalized display name equality                  -> 'exact_display'
        3. store synonym of a key present in the catalog     -> 'synonym'
        4. product's own synonyms                            -> 'db_synonym'

        Args:
            clean_phrase: Normalized, corrected, brand/quantity-stripped phrase
            catalog: key -> CatalogProduct snapshot

        Returns:
            (key, method) or None
        """
        if not clean_phrase:
            return None

        if clean_phrase in catalog:
            return clean_phrase, METHOD_EXACT
        for key in catalog:
            if key_phrase(key) == clean_phrase:
                return key, METHOD_EXACT

        for key, product in catalog.items():
            if normalize(product.display_name) == clean_phrase:
                return key, METHOD_EXACT_DISPLAY

        key = self.match_store_synonym(clean_phrase, catalog)
        if key:
            return key, METHOD_SYNONYM

        for key, product in catalog.items():
            if any(normalize(s) == clean_phrase for s in (product.synonyms or [])):
                return key, METHOD_DB_SYNONYM

        return None

    def resolve(self, clean_phrase: str, catalog: Mapping) -> Optional[str]:
        """Catalog key for clean_phrase, or None"""
        resolved = self.resolve_with_method(clean_phrase, catalog)
        return resolved[0] if resolved else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _append(self, key: str, phrase: str) -> bool:
        """Append phrase to key (case-insensitive dedup). Caller holds the lock."""
        phrases = self._table.get(key, [])
        if any(p.lower() == phrase.lower() for p in phrases):
            return False
        table = dict(self._table)
        table[key] = phrases + [phrase]
        self._table = table
        return True

    def _remove(self, key: str, phrase: str) -> bool:
        """Drop phrase from key, compared after normalization. Caller holds the lock."""
        phrases = self._table.get(key)
        if not phrases:
            return False
        remaining = [p for p in phrases if normalize(p) != phrase]
        if len(remaining) == len(phrases):
            return False
        table = dict(self._table)
        table[key] = remaining
        self._table = table
        return True

    def _record(self, kind: str, key: str, phrase: str) -> None:
        """Track a learned change so it survives a restart. Caller holds the lock."""
        opposite = 'removed' if kind == 'added' else 'added'
        undone = self._learned[opposite].get(key, [])
        if phrase in undone:
            undone.remove(phrase)
        entries = self._learned[kind].setdefault(key, [])
        if phrase not in entries:
            entries.append(phrase)

    def learn_from_correction(self, query: str, wrong_key: Optional[str], correct_key: str) -> bool:
        """
        Record that query means correct_key, not wrong_key.

        The normalized query is appended to correct_key (idempotent) and
        removed from wrong_key only; other keys are left untouched.

        Returns:
            True if the table changed
        """
        normalized_query = normalize(query)
        if not normalized_query or not correct_key:
            logger.warning(f"Ignoring correction with empty query or target: '{query}' -> '{correct_key}'")
            return False

        with self._lock:
            changed = self._append(correct_key, normalized_query)
            self._record('added', correct_key, normalized_query)
            if changed:
                logger.info(f"Learned from user: '{query}' -> '{correct_key}'")

            if wrong_key and wrong_key != correct_key:
                self._record('removed', wrong_key, normalized_query)
                if self._remove(wrong_key, normalized_query):
                    changed = True
                    logger.info(f"Removed '{normalized_query}' from '{wrong_key}'")

        return changed

    def auto_learn_synonym(self, unmatched_phrase: str) -> Optional[str]:
        """
        Attach an unmatched phrase to the most similar canonical key.

        Only keys scoring above auto_learn_threshold qualify. Append-only.

        Returns:
            The key the phrase was attached to, or None
        """
        normalized = normalize(unmatched_phrase)
        if not normalized:
            return None

        best_key = None
        best_similarity = 0.0
        for key in self.keys():
            similarity = dice_coefficient(normalized, key_phrase(key))
            if similarity > best_similarity and similarity > self.auto_learn_threshold:
                best_similarity = similarity
                best_key = key

        if best_key is None:
            logger.debug(f"No synonym group close enough for '{unmatched_phrase}'")
            return None

        with self._lock:
            if self._append(best_key, normalized):
                self._record('added', best_key, normalized)
                logger.info(f"Auto-learned: '{unmatched_phrase}' -> '{best_key}' (similarity: {best_similarity:.2f})")
        return best_key

    def merge_base(self, base_synonyms: Mapping[str, List[str]]) -> int:
        """
        Add phrases from a reloaded base table.

        Phrases a correction removed from a key stay removed.

        Returns:
            Number of phrases added
        """
        added = 0
        with self._lock:
            for key, phrases in base_synonyms.items():
                removed = self._learned['removed'].get(key, [])
                for phrase in phrases or []:
                    if normalize(phrase) in removed:
                        continue
                    if self._append(key, phrase):
                        added += 1
        if added:
            logger.info(f"Merged {added} synonyms from reloaded rules")
        return added

    # ------------------------------------------------------------------
    # Persistence (optional, caller-driven)
    # ------------------------------------------------------------------

    def learned_changes(self) -> Dict[str, Dict[str, List[str]]]:
        """Phrases learned since the base table was seeded: {'added': {...}, 'removed': {...}}"""
        return {
            kind: {key: list(phrases) for key, phrases in entries.items() if phrases}
            for kind, entries in self._learned.items()
        }

    def dump(self, path) -> None:
        """Write the learned additions and removals to a JSON file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        changes = self.learned_changes()
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(changes, f, indent=2, ensure_ascii=False)
        logger.info(
            f"Saved {sum(len(p) for p in changes['added'].values())} learned and "
            f"{sum(len(p) for p in changes['removed'].values())} removed synonyms to {path}"
        )

    def load_learned(self, path) -> int:
        """
        Replay additions and removals from a JSON file written by dump().

        A plain key -> phrases table is read as additions only.

        Returns:
            Number of table changes applied
        """
        path = Path(path)
        if not path.exists():
            logger.debug(f"Learned synonyms file not found: {path}")
            return 0
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load learned synonyms from {path}: {e}")
            return 0

        if 'added' in data or 'removed' in data:
            additions = data.get('added') or {}
            removals = data.get('removed') or {}
        else:
            additions = {k: v for k, v in data.items() if not k.startswith('_')}
            removals = {}

        applied = 0
        with self._lock:
            for key, phrases in removals.items():
                for phrase in phrases or []:
                    phrase = normalize(phrase)
                    if not phrase:
                        continue
                    self._record('removed', key, phrase)
                    if self._remove(key, phrase):
                        applied += 1
            for key, phrases in additions.items():
                for phrase in phrases or []:
                    if not isinstance(phrase, str) or not phrase:
                        continue
                    self._record('added', key, phrase)
                    if self._append(key, phrase):
                        applied += 1
        logger.info(f"Applied {applied} learned synonym changes from {path}")
        return applied
