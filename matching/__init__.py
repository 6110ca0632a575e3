"""
Matching: Resolve shopping list text to catalog products
Normalizes list lines, applies rule-driven corrections and extraction, then
matches by exact key, synonym table, or Dice similarity.
"""

from .rule_loader import RuleLoader
from .synonym_store import SynonymStore
from .product_matcher import ProductMatcher, MatchResult, ParsedListItem
from .list_reconciler import ListReconciler
from .feedback import FeedbackLearner
from .list_parser import split_list_text

__all__ = [
    'RuleLoader',
    'SynonymStore',
    'ProductMatcher',
    'MatchResult',
    'ParsedListItem',
    'ListReconciler',
    'FeedbackLearner',
    'split_list_text',
]
