#!/usr/bin/env python3
"""
Similarity and Categorizer Tests
"""

import os
import unittest
from pathlib import Path

# Setup path
TEST_DIR = Path(__file__).parent
PROJECT_ROOT = TEST_DIR.parent
os.chdir(PROJECT_ROOT)

from matching.similarity import dice_coefficient
from matching.categorizer import Categorizer, CategoryDefinition, OTHER_CATEGORY
from matching.rule_loader import RuleLoader


class TestDiceCoefficient(unittest.TestCase):
    """Bigram Dice similarity"""

    def test_identical(self):
        self.assertEqual(dice_coefficient("milk", "milk"), 1.0)
        self.assertEqual(dice_coefficient("a", "a"), 1.0)

    def test_known_value(self):
        self.assertAlmostEqual(dice_coefficient("night", "nacht"), 0.25)
        self.assertAlmostEqual(dice_coefficient("yoghurt", "yogurt"), 8 / 11)

    def test_symmetric(self):
        pairs = [("milk", "milkk"), ("challah", "chala"), ("grape juice", "grape")]
        for first, second in pairs:
            self.assertEqual(dice_coefficient(first, second), dice_coefficient(second, first))

    def test_short_strings(self):
        self.assertEqual(dice_coefficient("a", "ab"), 0.0)
        self.assertEqual(dice_coefficient("", "milk"), 0.0)

    def test_whitespace_ignored(self):
        self.assertEqual(dice_coefficient("grape juice", "grapejuice"), 1.0)

    def test_range(self):
        for first, second in [("abc", "xyz"), ("milk", "silk"), ("bread", "breads")]:
            score = dice_coefficient(first, second)
            self.assertGreaterEqual(score, 0.0)
            self.assertLessEqual(score, 1.0)


class TestCategorizer(unittest.TestCase):
    """Ordered keyword categories"""

    @classmethod
    def setUpClass(cls):
        cls.categorizer = Categorizer.from_rules(RuleLoader())

    def test_first_match_wins(self):
        """milk is listed under dairy and beverages; dairy comes first"""
        self.assertEqual(self.categorizer.category_of("milk"), "dairy")

    def test_categories(self):
        self.assertEqual(self.categorizer.category_of("chicken breast"), "meat")
        self.assertEqual(self.categorizer.category_of("grape juice"), "beverages")
        self.assertEqual(self.categorizer.category_of("challah"), "bakery")

    def test_other(self):
        self.assertEqual(self.categorizer.category_of("xyzznotreal"), OTHER_CATEGORY)
        self.assertEqual(self.categorizer.category_of(""), OTHER_CATEGORY)
        self.assertEqual(self.categorizer.category_of(None), OTHER_CATEGORY)

    def test_order_is_configuration(self):
        reordered = Categorizer([
            CategoryDefinition('beverages', ['milk', 'juice']),
            CategoryDefinition('dairy', ['milk', 'cheese']),
        ])
        self.assertEqual(reordered.category_of("milk"), "beverages")
        self.assertEqual(reordered.category_names(), ['beverages', 'dairy'])


if __name__ == '__main__':
    unittest.main()
