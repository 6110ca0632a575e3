#!/usr/bin/env python3
"""
Product Matcher - Match shopping list text to catalog products

Pipeline per query:
    normalize -> fix typos -> plurals -> strip brand -> strip quantity
    -> exact key / display name (1.0)
    -> synonym table / product synonyms (0.95)
    -> fuzzy: Dice similarity with category and substring boosts (capped at 0.9)
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Mapping, Optional

import config
from pricing.catalog import CatalogProduct
from .rule_loader import RuleLoader
from .text_normalizer import normalize, key_phrase
from .corrections import TextCorrector
from .extractors import BrandQuantityExtractor
from .categorizer import Categorizer, OTHER_CATEGORY
from .similarity import dice_coefficient
from .synonym_store import SynonymStore, METHOD_EXACT, METHOD_EXACT_DISPLAY, METHOD_SYNONYM

logger = logging.getLogger(__name__)

METHOD_PARTIAL = 'partial'
METHOD_FUZZY = 'fuzzy'
MATCH_METHODS = ['exact', 'exact_display', 'synonym', 'db_synonym', 'partial', 'fuzzy']


@dataclass
class ParsedListItem:
    original_text: str
    quantity: float = 1.0
    unit: str = 'item'
    extracted_brand: Optional[str] = None
    extracted_quantity_token: Optional[str] = None
    clean_product_phrase: str = ''
    normalized_text: str = ''


@dataclass
class MatchResult:
    matched_key: Optional[str]
    confidence: float
    method: str
    category: Optional[str] = None
    brand: Optional[str] = None
    quantity_token: Optional[str] = None
    processed_query: str = ''

    @property
    def matched(self) -> bool:
        return self.matched_key is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProductMatcher:
    """Resolve free text to a catalog key with a confidence score"""

    def __init__(self, rule_loader: Optional[RuleLoader] = None,
                 synonym_store: Optional[SynonymStore] = None,
                 settings: Optional[Dict[str, Any]] = None,
                 catalog_provider: Optional[Callable[[], Mapping[str, CatalogProduct]]] = None):
        """
        Initialize product matcher

        Args:
            rule_loader: RuleLoader for the static tables (defaults to matching/rules)
            synonym_store: SynonymStore to resolve and learn synonyms (defaults to the base table)
            settings: Overrides for config.MATCHING thresholds
            catalog_provider: Callable returning key -> CatalogProduct, used when
                              find_best_match is called without a catalog
        """
        self.settings = {**config.MATCHING, **(settings or {})}
        self.rule_loader = rule_loader or RuleLoader()
        self._build_rule_components()
        self.synonym_store = synonym_store or SynonymStore.from_rules(
            self.rule_loader, auto_learn_threshold=self.settings['auto_learn_threshold']
        )
        self.catalog_provider = catalog_provider

    def _build_rule_components(self) -> None:
        self.corrector = TextCorrector.from_rules(self.rule_loader)
        self.extractor = BrandQuantityExtractor.from_rules(self.rule_loader)
        self.categorizer = Categorizer.from_rules(self.rule_loader)
        self._rules_version = self.rule_loader.version

    def sync_rules(self) -> bool:
        """
        Rebuild rule-driven components if the loader hot-reloaded a file

        Returns:
            True if anything was rebuilt
        """
        if not self.rule_loader.hot_reload_enabled:
            return False
        if self.rule_loader.check_for_changes() == self._rules_version:
            return False
        self._build_rule_components()
        self.synonym_store.merge_base(self.rule_loader.get_base_synonyms())
        logger.info(f"Matching rules reloaded (version {self._rules_version})")
        return True

    def quantity_units(self) -> List[str]:
        """Unit vocabulary currently used by the quantity extractor"""
        self.sync_rules()
        return list(self.extractor.units)

    def process_query(self, raw_query: str) -> ParsedListItem:
        """
        Run the text pipeline: normalize, typos, plurals, brand, quantity.

        Returns:
            ParsedListItem with clean_product_phrase set to the processed query
        """
        self.sync_rules()
        normalized = normalize(raw_query)
        text = self.corrector.fix_typos(normalized)
        text = self.corrector.handle_plurals(text)

        brand = self.extractor.extract_brand(text)
        quantity = self.extractor.extract_quantity(brand.clean_text)

        return ParsedListItem(
            original_text=raw_query if isinstance(raw_query, str) else '',
            extracted_brand=brand.brand,
            extracted_quantity_token=quantity.quantity,
            clean_product_phrase=quantity.clean_text,
            normalized_text=normalized,
        )

    def get_catalog(self, catalog: Optional[Mapping[str, CatalogProduct]]) -> Mapping[str, CatalogProduct]:
        if catalog is not None:
            return catalog
        if self.catalog_provider is None:
            raise ValueError("No catalog given and no catalog_provider configured")
        return self.catalog_provider()

    def find_best_match(self, raw_query: str,
                        catalog: Optional[Mapping[str, CatalogProduct]] = None) -> Optional[MatchResult]:
        """
        Match a raw list line to the best catalog product

        Args:
            raw_query: Text as typed by the user ("2pt milk", "chiken breast")
            catalog: key -> CatalogProduct snapshot (defaults to catalog_provider())

        Returns:
            MatchResult, or None when nothing clears the similarity floor
        """
        catalog = self.get_catalog(catalog)
        parsed = self.process_query(raw_query)
        processed_query = parsed.clean_product_phrase

        if not processed_query:
            logger.debug(f"Empty query after processing: '{raw_query}'")
            return None

        logger.debug(
            f"Matching '{raw_query}' -> '{processed_query}' "
            f"(brand: {parsed.extracted_brand}, qty: {parsed.extracted_quantity_token})"
        )

        def result(key: str, confidence: float, method: str, category: Optional[str] = None) -> MatchResult:
            return MatchResult(
                matched_key=key,
                confidence=confidence,
                method=method,
                category=category,
                brand=parsed.extracted_brand,
                quantity_token=parsed.extracted_quantity_token,
                processed_query=processed_query,
            )

        resolved = self.synonym_store.resolve_with_method(processed_query, catalog)
        if resolved is None and parsed.normalized_text != processed_query:
            # Learned corrections are stored as the normalized query, which may
            # still contain brand or size words
            key = self.synonym_store.match_store_synonym(parsed.normalized_text, catalog)
            if key:
                resolved = (key, METHOD_SYNONYM)

        if resolved:
            key, method = resolved
            if method in (METHOD_EXACT, METHOD_EXACT_DISPLAY):
                confidence = self.settings['exact_confidence']
            else:
                confidence = self.settings['synonym_confidence']
            logger.debug(f"{method} match: '{raw_query}' -> {key}")
            return result(key, confidence, method)

        candidates = self._fuzzy_candidates(processed_query, catalog)
        if not candidates:
            logger.debug(f"No product match found for: '{raw_query}'")
            return None

        best = candidates[0]
        score = best['similarity']
        confidence = min(score, self.settings['fuzzy_confidence_cap'])
        method = METHOD_PARTIAL if score > self.settings['partial_threshold'] else METHOD_FUZZY
        logger.debug(f"{method} match: '{raw_query}' -> {best['key']} (score: {score:.2f})")
        return result(best['key'], confidence, method, best['category'])

    def _fuzzy_candidates(self, processed_query: str,
                          catalog: Mapping[str, CatalogProduct]) -> List[Dict[str, Any]]:
        """
        Score every catalog product against the processed query

        Returns:
            Candidates above the similarity floor, best first (ties by key)
        """
        query_category = self.categorizer.category_of(processed_query)
        floor = self.settings['similarity_floor']
        candidates = []

        for key, product in catalog.items():
            names = [key_phrase(key)]
            for name in [product.display_name] + list(product.synonyms or []):
                name = normalize(name)
                if name and name not in names:
                    names.append(name)

            similarity = max(dice_coefficient(processed_query, name) for name in names)

            product_category = self.categorizer.category_of(names[0])
            if query_category == product_category and query_category != OTHER_CATEGORY:
                similarity *= self.settings['category_boost']

            # Boost when one contains the other
            if any(name and (name in processed_query or processed_query in name) for name in names):
                similarity = max(similarity, self.settings['substring_floor'])

            if similarity > floor:
                candidates.append({
                    'key': key,
                    'similarity': similarity,
                    'category': product_category,
                })

        candidates.sort(key=lambda c: (-c['similarity'], c['key']))
        return candidates
