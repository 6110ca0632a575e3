#!/usr/bin/env python3
"""
Store Comparison - basket total per store for a matched shopping list

Ranking policies:
    total    - cheapest raw total first; stores missing items compete as-is
    coverage - most items available first, then cheapest total
Stores with nothing available always sort last.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .catalog import CatalogProduct

logger = logging.getLogger(__name__)

RANKING_TOTAL = 'total'
RANKING_COVERAGE = 'coverage'
RANKING_POLICIES = (RANKING_TOTAL, RANKING_COVERAGE)


@dataclass
class StoreTotal:
    store_name: str
    total: float = 0.0
    items_available: int = 0
    items_missing: List[str] = field(default_factory=list)
    items: List[Dict[str, Any]] = field(default_factory=list)
    availability: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'store_name': self.store_name,
            'total': round(self.total, 2),
            'items_available': self.items_available,
            'items_missing': list(self.items_missing),
            'items': [dict(i) for i in self.items],
            'availability': self.availability,
        }


def _ranking_key(ranking: str):
    if ranking == RANKING_TOTAL:
        return lambda t: (t.items_available == 0, t.total)
    return lambda t: (t.items_available == 0, -t.items_available, t.total)


def compare_across_stores(matched_items: List[Dict[str, Any]],
                          catalog: Mapping[str, CatalogProduct],
                          store_list: List[str],
                          ranking: str = RANKING_TOTAL,
                          unmatched_items: Optional[List[str]] = None) -> List[StoreTotal]:
    """
    Price a matched list at every store.

    Args:
        matched_items: 'matched' entries from ListReconciler.match_list
        catalog: key -> CatalogProduct snapshot
        store_list: Stores to compare, in display order
        ranking: 'total' or 'coverage'
        unmatched_items: Lines that never matched; listed as missing at every store

    Returns:
        StoreTotal per store, ranked
    """
    if ranking not in RANKING_POLICIES:
        raise ValueError(f"Unknown ranking policy '{ranking}'. Use one of {', '.join(RANKING_POLICIES)}")

    unmatched_items = list(unmatched_items or [])
    list_size = len(matched_items) + len(unmatched_items)
    totals = []

    for store_name in store_list:
        store_total = StoreTotal(store_name=store_name)

        for item in matched_items:
            product = catalog.get(item['matched'])
            entry = product.price_at(store_name) if product else None
            if entry is None:
                store_total.items_missing.append(item['original'])
                continue

            quantity = float(item.get('quantity') or 1.0)
            line_total = entry.price * quantity
            store_total.total += line_total
            store_total.items_available += 1
            store_total.items.append({
                'name': item['original'],
                'matched_name': product.display_name,
                'price': entry.price,
                'unit': entry.unit,
                'quantity': quantity,
                'line_total': line_total,
            })

        store_total.items_missing.extend(unmatched_items)
        store_total.availability = store_total.items_available / list_size if list_size else 0.0
        totals.append(store_total)

    # sorted() is stable: ties keep store_list order
    ranked = sorted(totals, key=_ranking_key(ranking))

    for t in ranked:
        logger.debug(f"{t.store_name}: {t.total:.2f} ({t.items_available} available, {len(t.items_missing)} missing)")
    return ranked


def best_store(totals: List[StoreTotal]) -> Optional[StoreTotal]:
    """First ranked store that has at least one item"""
    for t in totals:
        if t.items_available > 0:
            return t
    return None


def summarize_savings(totals: List[StoreTotal]) -> Dict[str, Any]:
    """
    Cheapest vs most expensive store among stores with coverage.

    Savings are reported only when at least two stores can price something.
    """
    valid = [t for t in totals if t.items_available > 0]
    summary = {
        'savings': 0.0,
        'cheapest_store': None,
        'most_expensive_store': None,
        'stores_with_items': len(valid),
    }
    if len(valid) < 2:
        return summary

    cheapest = min(valid, key=lambda t: t.total)
    most_expensive = max(valid, key=lambda t: t.total)
    summary['savings'] = round(most_expensive.total - cheapest.total, 2)
    summary['cheapest_store'] = cheapest.store_name
    summary['most_expensive_store'] = most_expensive.store_name
    return summary
