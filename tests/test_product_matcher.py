#!/usr/bin/env python3
"""
Product Matcher Tests
Query pipeline, tier precedence, fuzzy thresholds and learning round trip.
"""

import os
import unittest
from pathlib import Path

# Setup path
TEST_DIR = Path(__file__).parent
PROJECT_ROOT = TEST_DIR.parent
os.chdir(PROJECT_ROOT)

from matching.product_matcher import ProductMatcher
from matching.rule_loader import RuleLoader
from matching.synonym_store import SynonymStore
from pricing.catalog import CatalogProduct


def make_catalog(*keys, **display_names):
    return {key: CatalogProduct(key, display_names.get(key, key.replace('_', ' ').title())) for key in keys}


GROCERY_CATALOG = make_catalog(
    'milk', 'bread', 'challah', 'eggs', 'chicken_breast', 'grape_juice', 'tomatoes',
    eggs='Eggs (6)',
)


def bare_matcher(**kwargs):
    """Matcher with no rule tables: no typos, brands, categories or base synonyms"""
    return ProductMatcher(rule_loader=RuleLoader(PROJECT_ROOT / 'no_such_rules_dir'), **kwargs)


class TestQueryProcessing(unittest.TestCase):
    """process_query pipeline"""

    @classmethod
    def setUpClass(cls):
        cls.matcher = ProductMatcher()

    def test_typo_plural_quantity(self):
        parsed = self.matcher.process_query("2kg tomatos")
        self.assertEqual(parsed.extracted_quantity_token, "2kg")
        self.assertEqual(parsed.clean_product_phrase, "tomato")
        self.assertEqual(parsed.normalized_text, "2kg tomatos")

    def test_brand(self):
        parsed = self.matcher.process_query("Kedem Grape Juice")
        self.assertEqual(parsed.extracted_brand, "kedem")
        self.assertEqual(parsed.clean_product_phrase, "grape juice")

    def test_non_string(self):
        parsed = self.matcher.process_query(None)
        self.assertEqual(parsed.clean_product_phrase, "")
        self.assertEqual(parsed.original_text, "")


class TestFindBestMatch(unittest.TestCase):
    """End-to-end matching against the bundled rules"""

    def setUp(self):
        self.matcher = ProductMatcher(synonym_store=SynonymStore.from_rules(RuleLoader()))

    def test_misspelled_key(self):
        result = self.matcher.find_best_match("chiken breast", GROCERY_CATALOG)
        self.assertEqual(result.matched_key, "chicken_breast")
        self.assertGreaterEqual(result.confidence, 0.95)

    def test_measure_typo_plural(self):
        result = self.matcher.find_best_match("2kg tomatos", GROCERY_CATALOG)
        self.assertEqual(result.matched_key, "tomatoes")
        self.assertEqual(result.quantity_token, "2kg")
        self.assertEqual(result.processed_query, "tomato")
        self.assertEqual(result.method, "synonym")
        self.assertEqual(result.confidence, 0.95)

    def test_no_match(self):
        self.assertIsNone(self.matcher.find_best_match("xyzznotreal", GROCERY_CATALOG))

    def test_exact_is_full_confidence(self):
        result = self.matcher.find_best_match("Milk", GROCERY_CATALOG)
        self.assertEqual(result.matched_key, "milk")
        self.assertEqual(result.method, "exact")
        self.assertEqual(result.confidence, 1.0)
        self.assertTrue(result.matched)

    def test_brand_is_reported(self):
        result = self.matcher.find_best_match("Kedem Grape Juice", GROCERY_CATALOG)
        self.assertEqual(result.matched_key, "grape_juice")
        self.assertEqual(result.brand, "kedem")

    def test_quantity_word_then_synonym(self):
        result = self.matcher.find_best_match("large eggs", GROCERY_CATALOG)
        self.assertEqual(result.matched_key, "eggs")
        self.assertEqual(result.method, "synonym")

    def test_fuzzy_confidence_is_capped(self):
        """Category and substring boosts never report more than 0.9"""
        result = self.matcher.find_best_match("milkk", GROCERY_CATALOG)
        self.assertEqual(result.matched_key, "milk")
        self.assertEqual(result.method, "partial")
        self.assertEqual(result.confidence, 0.9)
        self.assertEqual(result.category, "dairy")

    def test_empty_query(self):
        self.assertIsNone(self.matcher.find_best_match("!!!", GROCERY_CATALOG))
        self.assertIsNone(self.matcher.find_best_match("", GROCERY_CATALOG))

    def test_learning_round_trip(self):
        """After a correction the same query resolves as a synonym"""
        self.assertIsNone(self.matcher.find_best_match("red wine", GROCERY_CATALOG))

        self.matcher.synonym_store.learn_from_correction("red wine", None, "grape_juice")

        result = self.matcher.find_best_match("red wine", GROCERY_CATALOG)
        self.assertEqual(result.matched_key, "grape_juice")
        self.assertEqual(result.method, "synonym")
        self.assertEqual(result.confidence, 0.95)

    def test_learned_phrase_with_brand(self):
        """A learned phrase is found even when brand stripping changes the query"""
        self.matcher.synonym_store.learn_from_correction("Kedem Red Wine", None, "grape_juice")
        result = self.matcher.find_best_match("kedem red wine", GROCERY_CATALOG)
        self.assertEqual(result.matched_key, "grape_juice")
        self.assertEqual(result.method, "synonym")

    def test_catalog_provider(self):
        matcher = ProductMatcher(catalog_provider=lambda: GROCERY_CATALOG)
        self.assertEqual(matcher.find_best_match("bread").matched_key, "bread")

    def test_no_catalog(self):
        with self.assertRaises(ValueError):
            self.matcher.find_best_match("milk")


class TestFuzzyThresholds(unittest.TestCase):
    """Similarity floor, substring floor, method labels and tie-break"""

    def test_similarity_floor_is_strict(self):
        """A candidate scoring exactly 0.5 is rejected"""
        matcher = bare_matcher()
        self.assertIsNone(matcher.find_best_match("abcde", make_catalog('abcxy')))

    def test_just_above_floor(self):
        matcher = bare_matcher()
        result = matcher.find_best_match("abcdef", make_catalog('abcdxy'))
        self.assertEqual(result.matched_key, "abcdxy")
        self.assertEqual(result.method, "fuzzy")
        self.assertAlmostEqual(result.confidence, 0.6)

    def test_fuzzy_below_partial(self):
        matcher = bare_matcher()
        result = matcher.find_best_match("yoghurt", make_catalog('yogurt'))
        self.assertEqual(result.method, "fuzzy")
        self.assertAlmostEqual(result.confidence, 8 / 11)

    def test_substring_floor(self):
        """milk is contained in milk powder: raised to 0.8, still labelled fuzzy"""
        matcher = bare_matcher()
        result = matcher.find_best_match("milk", make_catalog('milk_powder'))
        self.assertEqual(result.matched_key, "milk_powder")
        self.assertEqual(result.method, "fuzzy")
        self.assertAlmostEqual(result.confidence, 0.8)

    def test_tie_break_by_key(self):
        matcher = bare_matcher()
        catalog = make_catalog('abcdxz', 'abcdxy')
        result = matcher.find_best_match("abcdef", catalog)
        self.assertEqual(result.matched_key, "abcdxy")

    def test_settings_override(self):
        matcher = bare_matcher(settings={'similarity_floor': 0.7})
        self.assertIsNone(matcher.find_best_match("abcdef", make_catalog('abcdxy')))
        self.assertEqual(matcher.settings['accept_threshold'], 0.6)

    def test_display_name_is_scored(self):
        matcher = bare_matcher()
        catalog = {'sku_42': CatalogProduct('sku_42', 'Yogurt')}
        result = matcher.find_best_match("yoghurt", catalog)
        self.assertEqual(result.matched_key, "sku_42")

    def test_product_synonyms_are_scored(self):
        matcher = bare_matcher()
        catalog = {'sku_9': CatalogProduct('sku_9', 'Item 9', synonyms=['Yogurt'])}
        result = matcher.find_best_match("yoghurt", catalog)
        self.assertEqual(result.matched_key, "sku_9")
        self.assertEqual(result.method, "fuzzy")


if __name__ == '__main__':
    unittest.main()
