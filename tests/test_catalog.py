#!/usr/bin/env python3
"""
Catalog Tests: loading the catalog document and comparison reports
"""

import json
import os
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

import pandas as pd

# Setup path
TEST_DIR = Path(__file__).parent
PROJECT_ROOT = TEST_DIR.parent
os.chdir(PROJECT_ROOT)

from pricing.catalog import Catalog, product_from_dict
from pricing.store_comparison import compare_across_stores
from pricing.report_writer import comparison_to_dataframe, items_to_dataframe, write_comparison_report


CATALOG_DOC = {
    'stores': {'B Kosher': {'location': 'Hendon'}},
    'products': {
        'milk': {
            'displayName': 'Milk',
            'category': 'Dairy',
            'synonyms': ['semi skimmed'],
            'commonBrands': ['golden flow'],
            'prices': {
                'B Kosher': {'price': 1.2, 'unit': '2 pints', 'lastUpdated': '2024-01-05T10:00:00'},
                'Tapuach': {'price': 1.1, 'unit': '2 pints', 'lastUpdated': '2024-01-06T09:30:00'},
            },
        },
        'bread': {
            'prices': {
                'B Kosher': {'price': -1},
                'Tapuach': 2.0,
            },
        },
    },
}


class TestCatalog(unittest.TestCase):
    """Catalog document parsing"""

    def test_from_dict(self):
        catalog = Catalog.from_dict(CATALOG_DOC)
        milk = catalog.products['milk']
        self.assertEqual(milk.display_name, 'Milk')
        self.assertEqual(milk.common_brands, ['golden flow'])
        self.assertEqual(milk.price_at('B Kosher').unit, '2 pints')

    def test_defaults(self):
        bread = Catalog.from_dict(CATALOG_DOC).products['bread']
        self.assertEqual(bread.display_name, 'bread')
        self.assertEqual(bread.category, 'General')

    def test_invalid_prices_dropped(self):
        bread = Catalog.from_dict(CATALOG_DOC).products['bread']
        self.assertIsNone(bread.price_at('B Kosher'))
        self.assertEqual(bread.price_at('Tapuach').price, 2.0)

    def test_stores_from_price_tables(self):
        catalog = Catalog.from_dict(CATALOG_DOC)
        self.assertEqual(catalog.store_names(), ['B Kosher', 'Tapuach'])
        self.assertEqual(catalog.store_info('B Kosher'), {'location': 'Hendon'})
        self.assertEqual(catalog.store_info('Tapuach'), {})

    def test_last_updated(self):
        catalog = Catalog.from_dict(CATALOG_DOC)
        self.assertEqual(catalog.last_updated(), datetime(2024, 1, 6, 9, 30))

    def test_utc_suffix(self):
        product = product_from_dict('milk', {'prices': {'A': {'price': 1, 'lastUpdated': '2024-01-05T10:00:00Z'}}})
        self.assertIsNotNone(product.prices['A'].last_updated.tzinfo)

    def test_snapshot_is_a_copy(self):
        catalog = Catalog.from_dict(CATALOG_DOC)
        snapshot = catalog.snapshot()
        catalog.products.pop('milk')
        self.assertIn('milk', snapshot)

    def test_from_json_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'catalog.json'
            path.write_text(json.dumps(CATALOG_DOC), encoding='utf-8')
            catalog = Catalog.from_json_file(path)
        self.assertEqual(len(catalog.products), 2)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            Catalog.from_json_file(PROJECT_ROOT / 'no_such_catalog.json')

    def test_sample_catalog_loads(self):
        catalog = Catalog.from_json_file(PROJECT_ROOT / 'data' / 'sample_catalog.json')
        self.assertIn('chicken_breast', catalog.products)
        self.assertEqual(len(catalog.store_names()), 4)


class TestReportWriter(unittest.TestCase):
    """Excel and CSV comparison reports"""

    def setUp(self):
        catalog = Catalog.from_dict(CATALOG_DOC)
        matched = [
            {'original': '2 milk', 'matched': 'milk', 'quantity': 2.0},
            {'original': 'bread', 'matched': 'bread', 'quantity': 1.0},
        ]
        self.totals = compare_across_stores(matched, catalog.snapshot(), catalog.store_names(),
                                            unmatched_items=['xyzznotreal'])
        self.match_results = {
            'match_details': [
                {'query': '2 milk', 'result': {'matched_key': 'milk', 'confidence': 1.0}, 'success': True},
                {'query': 'xyzznotreal', 'result': None, 'success': False},
            ],
        }

    def test_dataframes(self):
        stores_df = comparison_to_dataframe(self.totals)
        self.assertEqual(list(stores_df['Store']), ['B Kosher', 'Tapuach'])
        self.assertEqual(list(stores_df['Rank']), [1, 2])

        items_df = items_to_dataframe(self.totals)
        self.assertEqual(len(items_df), 3)

    def test_write_xlsx(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = write_comparison_report(self.totals, self.match_results, Path(tmp) / 'report.xlsx')
            sheets = pd.read_excel(output, sheet_name=None)

        self.assertEqual(list(sheets), ['Stores', 'Items', 'Unmatched'])
        self.assertEqual(list(sheets['Unmatched']['List Item']), ['xyzznotreal'])

    def test_write_csv(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = write_comparison_report(self.totals, self.match_results, Path(tmp) / 'out' / 'report.csv')
            df = pd.read_csv(output)
        self.assertEqual(len(df), 2)


if __name__ == '__main__':
    unittest.main()
