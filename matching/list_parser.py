#!/usr/bin/env python3
"""
Shopping List Parser
Splits pasted list text into lines and separates a leading item count
("2 milk", "3x bread") from the text to be matched.
"""

import re
import logging
from typing import List, Optional, Tuple

from .extractors import DEFAULT_UNITS

logger = logging.getLogger(__name__)

# Bullets and list numbering: "- milk", "* milk", "• milk", "1. milk", "2) milk"
BULLET_PATTERNS = [
    re.compile(r'^[-*•·]\s*'),
    re.compile(r'^\d+\.\s+'),
    re.compile(r'^\d+\)\s*'),
    re.compile(r'^[–—]\s*'),
]

# "2 milk", "2x milk", "2 x milk"
COUNT_PATTERN = re.compile(r'^(\d+(?:\.\d+)?)\s*(?:x\s+|\s)\s*(.+)$', re.IGNORECASE)

# "2kg tomatoes", "2 pint milk", "500 g butter"
MEASURE_PATTERN = re.compile(r'^(\d+(?:\.\d+)?)\s*([a-z]+)\b', re.IGNORECASE)


def strip_bullet(line: str) -> str:
    line = line.strip()
    for pattern in BULLET_PATTERNS:
        line = pattern.sub('', line)
    return line.strip()


def split_list_text(text: str) -> List[str]:
    """
    Split pasted list text into item lines.

    Newlines, commas and semicolons separate items; bullets and numbering
    are removed; blank entries dropped.
    """
    if not text or not isinstance(text, str):
        return []
    parts = re.split(r'[,;\n\r]+', text)
    lines = [strip_bullet(p) for p in parts]
    return [line for line in lines if line]


def split_leading_count(line: str, units: Optional[List[str]] = None) -> Tuple[float, str, str]:
    """
    Separate a leading count or measure from a list line.

    A bare count multiplies the item and is removed from the match text.
    A measure ("2kg", "2 pint") describes the pack size: it stays in the
    match text for the quantity extractor and becomes the unit.

    Examples:
    - "2 milk"        -> (2.0, "item", "milk")
    - "3x bread"      -> (3.0, "item", "bread")
    - "2kg tomatos"   -> (1.0, "2kg", "2kg tomatos")
    - "milk"          -> (1.0, "item", "milk")

    Returns:
        (quantity, unit, match_text)
    """
    line = strip_bullet(line or '')
    if not line:
        return 1.0, 'item', ''

    units = [u.lower() for u in (units or DEFAULT_UNITS)]

    measure = MEASURE_PATTERN.match(line)
    if measure and measure.group(2).lower() in units:
        unit = f"{measure.group(1)}{measure.group(2).lower()}"
        return 1.0, unit, line

    count = COUNT_PATTERN.match(line)
    if count:
        try:
            quantity = float(count.group(1))
        except ValueError:
            quantity = 1.0
        if quantity > 0:
            return quantity, 'item', count.group(2).strip()
        logger.debug(f"Ignoring non-positive count in '{line}'")

    return 1.0, 'item', line
