#!/usr/bin/env python3
"""
Main Workflow Script - Shopping List Price Comparison
        1. Split the pasted list into lines
        2. Match each line to a catalog product
        3. Price the matched list at every store and rank the stores
        4. Log search analytics and learn from feedback
"""

import sys
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

# Load environment variables from .env file if it exists
_env_file = Path(__file__).parent / '.env'
if _env_file.exists():
    with open(_env_file, 'r') as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                os.environ[key.strip()] = value.strip()

from matching.rule_loader import RuleLoader
from matching.synonym_store import SynonymStore
from matching.product_matcher import ProductMatcher
from matching.list_reconciler import ListReconciler
from matching.list_parser import split_list_text
from matching.feedback import FeedbackLearner
from pricing.catalog import Catalog
from pricing.store_comparison import StoreTotal, compare_across_stores, best_store, summarize_savings
from pricing.report_writer import write_comparison_report
from analytics.search_log import SearchAnalytics
from config import PATHS, MATCHING, STORE_COMPARISON, ANALYTICS, LOGGING


# Configure logging
def setup_logging(log_level: str = 'INFO', log_dir: Optional[str] = None):
    """Setup logging configuration

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files (defaults to 'logs/')
    """
    log_dir = log_dir or PATHS['log_folder'] or 'logs'
    log_file = Path(log_dir) / 'workflow.log'

    # Create log directory
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOGGING['format'],
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )

    return logging.getLogger(__name__)


class ShoppingWorkflow:
    """Match a shopping list and compare basket prices across stores"""

    def __init__(self, catalog: Catalog,
                 rule_loader: Optional[RuleLoader] = None,
                 synonym_store: Optional[SynonymStore] = None,
                 analytics: Optional[SearchAnalytics] = None,
                 settings: Optional[Dict[str, Any]] = None,
                 learned_synonyms_file: Optional[str] = None):
        """
        Initialize workflow

        Args:
            catalog: Products and stores to match and price against
            rule_loader: Rule tables (defaults to matching/rules)
            synonym_store: Synonym table owned by this workflow (defaults to the base table)
            analytics: Search log; None disables analytics
            settings: Overrides for config.MATCHING
            learned_synonyms_file: JSON file to merge learned synonyms from and save them to
        """
        self.logger = logging.getLogger(__name__)
        self.catalog = catalog
        self.analytics = analytics
        self.learned_synonyms_file = Path(learned_synonyms_file) if learned_synonyms_file else None

        self.matcher = ProductMatcher(
            rule_loader=rule_loader,
            synonym_store=synonym_store,
            settings=settings,
            catalog_provider=catalog.snapshot,
        )
        self.synonym_store = self.matcher.synonym_store
        if self.learned_synonyms_file:
            self.synonym_store.load_learned(self.learned_synonyms_file)

        self.reconciler = ListReconciler(
            self.matcher,
            summary_sink=analytics.log_match_performance if analytics else None,
        )
        self.feedback = FeedbackLearner(
            self.synonym_store,
            feedback_sink=analytics.log_feedback if analytics else None,
        )

    def match_grocery_list(self, raw_lines: List[str]) -> Dict[str, List]:
        """Match every list line against one catalog snapshot"""
        return self.reconciler.match_list(raw_lines, self.catalog.snapshot())

    def compare_across_stores(self, matched_items: List[Dict[str, Any]],
                              store_list: Optional[List[str]] = None,
                              unmatched_items: Optional[List[str]] = None,
                              ranking: Optional[str] = None) -> List[StoreTotal]:
        """
        Rank stores for an already matched list

        Args:
            matched_items: 'matched' entries from match_grocery_list
            store_list: Stores to compare (defaults to every store in the catalog)
            unmatched_items: Lines to report missing at every store
            ranking: 'total' or 'coverage' (defaults to STORE_COMPARISON['ranking'])
        """
        store_list = store_list or self.catalog.store_names() or list(STORE_COMPARISON['default_stores'])
        if not STORE_COMPARISON['include_unmatched_in_missing']:
            unmatched_items = None
        return compare_across_stores(
            matched_items,
            self.catalog.snapshot(),
            store_list,
            ranking=ranking or STORE_COMPARISON['ranking'],
            unmatched_items=unmatched_items,
        )

    def compare_list_text(self, text: str, store_list: Optional[List[str]] = None,
                          ranking: Optional[str] = None) -> Dict[str, Any]:
        """
        Full comparison for pasted list text

        Returns:
            Dictionary with stores (ranked), best_store, savings and match results
        """
        lines = split_list_text(text)
        self.logger.info(f"Comparing {len(lines)} list items")

        match_results = self.match_grocery_list(lines)
        totals = self.compare_across_stores(
            match_results['matched'],
            store_list=store_list,
            unmatched_items=match_results['unmatched'],
            ranking=ranking,
        )
        savings = summarize_savings(totals)
        best = best_store(totals)

        message = None
        if not self.catalog.products:
            message = 'No prices in catalog yet.'
            self.logger.warning(message)
        elif best is None:
            message = 'None of the list items are stocked by the compared stores.'

        self._log_search(lines, match_results, totals, savings)

        return {
            'items': lines,
            'total_items': len(lines),
            'matched_items': len(match_results['matched']),
            'unmatched_items': list(match_results['unmatched']),
            'stores': totals,
            'best_store': best.store_name if best else None,
            'savings': savings,
            'match_results': match_results,
            'message': message,
        }

    def _log_search(self, lines: List[str], match_results: Dict[str, List],
                    totals: List[StoreTotal], savings: Dict[str, Any]) -> None:
        if self.analytics is None:
            return
        try:
            self.analytics.log_search(
                items=lines,
                matched_items=len(match_results['matched']),
                unmatched_items=match_results['unmatched'],
                stores_compared=len(totals),
                savings=savings['savings'],
                cheapest_store=savings['cheapest_store'],
                most_expensive_store=savings['most_expensive_store'],
            )
        except Exception as e:
            self.logger.error(f"Analytics logging failed: {e}")

    def record_user_feedback(self, original_query: str, suggested_match: Optional[str],
                             user_correction: Optional[str], was_accepted: bool) -> Dict[str, Any]:
        feedback = self.feedback.record_user_feedback(
            original_query, suggested_match, user_correction, was_accepted
        )
        if feedback['learned']:
            self._save_learned()
        return feedback

    def learn_from_history(self, days: Optional[int] = None) -> Dict[str, str]:
        """Auto-learn synonyms from phrases that went unmatched repeatedly"""
        if self.analytics is None:
            self.logger.info("Analytics disabled, nothing to learn from")
            return {}
        learned = self.feedback.learn_from_unmatched(
            self.analytics.unmatched_counts(days),
            min_count=self.matcher.settings['auto_learn_min_count'],
        )
        if learned:
            self._save_learned()
        return learned

    def _save_learned(self) -> None:
        if self.learned_synonyms_file is None:
            return
        try:
            self.synonym_store.dump(self.learned_synonyms_file)
        except OSError as e:
            self.logger.error(f"Could not save learned synonyms: {e}")


def _log_comparison(logger: logging.Logger, result: Dict[str, Any]) -> None:
    logger.info("=" * 80)
    logger.info(f"Matched {result['matched_items']}/{result['total_items']} items")
    for entry in result['match_results']['matched']:
        logger.info(
            f"  {entry['original']} -> {entry['display_name']} "
            f"({entry['method']}, {entry['confidence']:.2f}, qty {entry['quantity']:g})"
        )
    for line in result['unmatched_items']:
        logger.info(f"  {line} -> no match")

    logger.info("=" * 80)
    for rank, t in enumerate(result['stores'], start=1):
        logger.info(
            f"{rank}. {t.store_name}: {t.total:.2f} "
            f"({t.items_available} available, {len(t.items_missing)} missing)"
        )
    if result['best_store']:
        logger.info(f"Best store: {result['best_store']}")
    if result['savings']['savings']:
        logger.info(
            f"Savings: {result['savings']['savings']:.2f} "
            f"({result['savings']['cheapest_store']} vs {result['savings']['most_expensive_store']})"
        )
    if result['message']:
        logger.info(result['message'])


def main():
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Shopping List Price Comparison')
    parser.add_argument('--catalog', type=str, default=PATHS['catalog_file'],
                        help='Catalog JSON file (products and store prices)')
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--list', type=str, dest='list_file',
                        help='Text file with the shopping list (one item per line, or comma separated)')
    source.add_argument('--items', nargs='+',
                        help='Shopping list items given on the command line')
    parser.add_argument('--stores', nargs='+',
                        help='Stores to compare (defaults to every store in the catalog)')
    parser.add_argument('--report', type=str,
                        help='Write comparison report (.xlsx or .csv)')
    parser.add_argument('--ranking', type=str, choices=['total', 'coverage'],
                        default=STORE_COMPARISON['ranking'],
                        help='Store ranking policy')
    parser.add_argument('--analytics-file', type=str, default=PATHS['analytics_file'],
                        help='Analytics JSON file')
    parser.add_argument('--no-analytics', action='store_true',
                        help='Do not read or write analytics')
    parser.add_argument('--learn-from-history', action='store_true',
                        help='Auto-learn synonyms from frequently unmatched items before matching')
    parser.add_argument('--analytics-summary', action='store_true',
                        help='Print the analytics summary and exit')
    parser.add_argument('--log-level', type=str, default=LOGGING['level'],
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])

    args = parser.parse_args()

    # Setup logging
    logger = setup_logging(args.log_level)

    analytics = None
    if ANALYTICS['enabled'] and not args.no_analytics:
        analytics = SearchAnalytics(args.analytics_file, max_errors=ANALYTICS['max_errors'])

    if args.analytics_summary:
        if analytics is None:
            logger.error("Analytics disabled")
            return 1
        print(json.dumps(analytics.get_summary(ANALYTICS['summary_days']), indent=2, default=str))
        return 0

    try:
        catalog = Catalog.from_json_file(args.catalog)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    rule_loader = RuleLoader(PATHS['rules_dir'] or None)
    workflow = ShoppingWorkflow(
        catalog,
        rule_loader=rule_loader,
        analytics=analytics,
        settings=MATCHING,
        learned_synonyms_file=PATHS['learned_synonyms_file'],
    )

    if args.learn_from_history:
        workflow.learn_from_history()

    if args.list_file:
        list_text = Path(args.list_file).read_text(encoding='utf-8')
    elif args.items:
        list_text = '\n'.join(args.items)
    else:
        if not args.learn_from_history:
            parser.error('Provide --list or --items')
        return 0

    try:
        result = workflow.compare_list_text(list_text, store_list=args.stores, ranking=args.ranking)
    except Exception as e:
        logger.error(f"Comparison failed: {e}", exc_info=True)
        if analytics is not None:
            analytics.log_error(e, {'list': list_text[:200]})
        return 1

    _log_comparison(logger, result)

    if args.report:
        write_comparison_report(result['stores'], result['match_results'], args.report)

    return 0


if __name__ == '__main__':
    sys.exit(main())
