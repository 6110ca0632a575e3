#!/usr/bin/env python3
"""
Text Normalizer
Common substrate for every matching stage: lowercase, strip punctuation,
collapse whitespace.
"""

import re

_NON_ALNUM_SPACE = re.compile(r'[^a-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize(text) -> str:
    """
    Normalize free text for matching.

    Returns "" for empty or non-string input instead of raising.
    normalize(normalize(x)) == normalize(x)

    Examples:
    - "  2pt Milk!! " -> "2pt milk"
    - "Chicken-Breast" -> "chickenbreast"
    """
    if not text or not isinstance(text, str):
        return ''
    text = _NON_ALNUM_SPACE.sub('', text.lower())
    return _WHITESPACE.sub(' ', text).strip()


def key_phrase(key: str) -> str:
    """Catalog key as a comparable phrase ("chicken_breast" -> "chicken breast")"""
    if not key or not isinstance(key, str):
        return ''
    return normalize(key.replace('_', ' '))


def collapse_spaces(text: str) -> str:
    """Collapse runs of whitespace left behind after token removal"""
    return _WHITESPACE.sub(' ', text).strip()
