"""
Pricing: Catalog snapshot and per-store basket totals
"""

from .catalog import Catalog, CatalogProduct, PriceEntry
from .store_comparison import StoreTotal, compare_across_stores, best_store, summarize_savings
from .report_writer import write_comparison_report

__all__ = [
    'Catalog',
    'CatalogProduct',
    'PriceEntry',
    'StoreTotal',
    'compare_across_stores',
    'best_store',
    'summarize_savings',
    'write_comparison_report',
]
