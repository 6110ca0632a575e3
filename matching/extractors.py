#!/usr/bin/env python3
"""
Brand / Quantity Extractor
Detects brand names (10_brands.yaml) and size/quantity descriptors
(20_quantity.yaml) in a query, strips them out and returns the bare
product phrase used for matching.

Examples:
- "kedem grape juice"      -> brand "kedem", clean "grape juice"
- "2kg tomato"             -> quantity "2kg", clean "tomato"
- "large free range eggs"  -> quantity None, clean "eggs"
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional

from .text_normalizer import normalize, collapse_spaces

logger = logging.getLogger(__name__)

DEFAULT_UNITS = ['kg', 'g', 'l', 'litre', 'lb', 'oz', 'ml', 'pint', 'pt']


@dataclass
class BrandExtraction:
    brand: Optional[str]
    clean_text: str


@dataclass
class QuantityExtraction:
    quantity: Optional[str]
    clean_text: str


def _word_pattern(phrase: str) -> re.Pattern:
    return re.compile(r'\b' + re.escape(phrase) + r'\b', re.IGNORECASE)


class BrandQuantityExtractor:
    """Strip brands and quantity/size descriptors from normalized text"""

    def __init__(self, brands: List[str], quantity_words: List[str], units: Optional[List[str]] = None):
        """
        Args:
            brands: Brand names, checked in list order
            quantity_words: Descriptive size words ("large", "dozen", "500g")
            units: Unit vocabulary for the numeric pattern (defaults to DEFAULT_UNITS)
        """
        self.brands = [b.lower() for b in brands if b]
        self._brand_patterns = [(b, _word_pattern(b)) for b in self.brands]

        # Longest first: "half dozen" must go before "dozen"
        words = sorted({w.lower() for w in quantity_words if w}, key=len, reverse=True)
        self._quantity_word_patterns = [_word_pattern(w) for w in words]

        units = [u.lower() for u in (units or DEFAULT_UNITS) if u]
        self.units = units
        unit_alternatives = '|'.join(re.escape(u) for u in sorted(units, key=len, reverse=True))
        self.numeric_pattern = re.compile(
            r'\b(\d+(?:\.\d+)?)\s*(' + unit_alternatives + r')\b', re.IGNORECASE
        )

    @classmethod
    def from_rules(cls, rule_loader) -> 'BrandQuantityExtractor':
        return cls(
            rule_loader.get_brands(),
            rule_loader.get_quantity_words(),
            rule_loader.get_quantity_units() or None,
        )

    def extract_brand(self, text: str) -> BrandExtraction:
        """
        Remove every known brand that appears as a whole word.

        The last brand found (in brand list order) is reported. If removing
        brands leaves nothing, the normalized input is returned as clean_text.
        """
        normalized = normalize(text)
        extracted_brand = None
        clean_text = normalized

        for brand, pattern in self._brand_patterns:
            if pattern.search(clean_text):
                extracted_brand = brand
                clean_text = collapse_spaces(pattern.sub('', clean_text))

        if extracted_brand:
            logger.debug(f"Extracted brand '{extracted_brand}' from '{normalized}'")
        return BrandExtraction(brand=extracted_brand, clean_text=clean_text or normalized)

    def extract_quantity(self, text: str) -> QuantityExtraction:
        """
        Remove numeric sizes ("2kg", "500 ml") and descriptive quantity words.

        The first numeric match is reported as the quantity token; all numeric
        matches are removed. Quantity words are removed whether or not a
        numeric size matched. Falls back to the input if nothing remains.
        """
        if not text or not isinstance(text, str):
            return QuantityExtraction(quantity=None, clean_text='')

        clean_text = text
        extracted_quantity = None

        numeric_match = self.numeric_pattern.search(clean_text)
        if numeric_match:
            extracted_quantity = numeric_match.group(0)
            clean_text = collapse_spaces(self.numeric_pattern.sub('', clean_text))

        for pattern in self._quantity_word_patterns:
            if pattern.search(clean_text):
                clean_text = collapse_spaces(pattern.sub('', clean_text))

        if extracted_quantity:
            logger.debug(f"Extracted quantity '{extracted_quantity}' from '{text}'")
        return QuantityExtraction(quantity=extracted_quantity, clean_text=clean_text or text)
