#!/usr/bin/env python3
"""
List Reconciler - Match every line of a shopping list against one catalog snapshot

Produces:
    matched       - accepted matches (confidence strictly above accept_threshold)
    unmatched     - original lines with no accepted match
    match_details - one entry per input line, in input order
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from pricing.catalog import CatalogProduct
from .product_matcher import ProductMatcher, MATCH_METHODS
from .list_parser import split_leading_count

logger = logging.getLogger(__name__)


class ListReconciler:
    """Run the product matcher over a whole list and partition the results"""

    def __init__(self, matcher: ProductMatcher,
                 summary_sink: Optional[Callable[[Dict[str, Any]], Any]] = None):
        """
        Args:
            matcher: ProductMatcher used for every line
            summary_sink: Receives the per-list performance summary
                          (e.g. SearchAnalytics.log_match_performance). Failures are logged, never raised.
        """
        self.matcher = matcher
        self.summary_sink = summary_sink
        self.accept_threshold = matcher.settings['accept_threshold']

    def match_list(self, items: List[str],
                   catalog: Optional[Mapping[str, CatalogProduct]] = None) -> Dict[str, List]:
        """
        Match all list lines

        Args:
            items: Raw list lines
            catalog: key -> CatalogProduct; defaults to the matcher's catalog_provider

        Returns:
            {'matched': [...], 'unmatched': [...], 'match_details': [...]}
        """
        # One stable snapshot for the whole list
        snapshot = dict(self.matcher.get_catalog(catalog))
        units = self.matcher.quantity_units()

        results = {
            'matched': [],
            'unmatched': [],
            'match_details': [],
        }

        for item in items or []:
            original = item if isinstance(item, str) else ('' if item is None else str(item))
            quantity, unit, match_text = split_leading_count(original, units)
            match_result = self.matcher.find_best_match(match_text, snapshot)
            accepted = match_result is not None and match_result.confidence > self.accept_threshold

            if accepted:
                product = snapshot.get(match_result.matched_key)
                results['matched'].append({
                    'original': original,
                    'matched': match_result.matched_key,
                    'display_name': product.display_name if product else match_result.matched_key,
                    'confidence': match_result.confidence,
                    'method': match_result.method,
                    'brand': match_result.brand,
                    'quantity_token': match_result.quantity_token,
                    'quantity': quantity,
                    'unit': unit,
                })
            else:
                results['unmatched'].append(original)

            results['match_details'].append({
                'query': original,
                'result': match_result.to_dict() if match_result else None,
                'success': accepted,
            })

        self._emit_summary(results)
        return results

    def build_summary(self, results: Dict[str, List]) -> Dict[str, Any]:
        matched = results['matched']
        total = len(matched) + len(results['unmatched'])
        method_breakdown = {method: 0 for method in MATCH_METHODS}
        for m in matched:
            method_breakdown[m['method']] = method_breakdown.get(m['method'], 0) + 1

        return {
            'total_items': total,
            'matched_items': len(matched),
            'match_rate': len(matched) / total if total else 0.0,
            'method_breakdown': method_breakdown,
            'average_confidence': sum(m['confidence'] for m in matched) / len(matched) if matched else 0.0,
            'unmatched_items': list(results['unmatched']),
        }

    def _emit_summary(self, results: Dict[str, List]) -> None:
        """Log match performance; never fails the caller"""
        try:
            summary = self.build_summary(results)
            logger.info(
                f"Match performance: {summary['matched_items']}/{summary['total_items']} matched "
                f"({summary['match_rate']:.0%}), avg confidence {summary['average_confidence']:.2f}, "
                f"methods {summary['method_breakdown']}"
            )
            if self.summary_sink is not None:
                self.summary_sink(summary)
        except Exception as e:
            logger.warning(f"Performance logging failed: {e}")
