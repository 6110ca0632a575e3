#!/usr/bin/env python3
"""
String similarity for fuzzy product matching
Sørensen–Dice coefficient over character bigrams.
"""

from collections import Counter


def _bigrams(text: str) -> Counter:
    return Counter(text[i:i + 2] for i in range(len(text) - 1))


def dice_coefficient(first: str, second: str) -> float:
    """
    Bigram Dice similarity in [0, 1], whitespace ignored.

    Symmetric; 1.0 for identical strings, 0.0 when the strings differ and
    either is shorter than two characters or the bigram multisets are disjoint.

    Examples:
    - dice_coefficient("milk", "milk") -> 1.0
    - dice_coefficient("night", "nacht") -> 0.25
    """
    first = ''.join((first or '').split())
    second = ''.join((second or '').split())

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = _bigrams(first)
    second_bigrams = _bigrams(second)
    intersection = sum((first_bigrams & second_bigrams).values())
    return (2.0 * intersection) / (len(first) + len(second) - 2)
