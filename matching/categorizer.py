"""
Categorizer
Assigns a coarse category to a product phrase using the ordered keyword
table in 50_categories.yaml. Only used to boost same-category fuzzy matches.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Any

logger = logging.getLogger(__name__)

OTHER_CATEGORY = 'other'


@dataclass
class CategoryDefinition:
    name: str
    keywords: List[str] = field(default_factory=list)


class Categorizer:
    """
    First-match-wins keyword categorizer.

    Definitions are checked in the order given, so the order is part of the
    configuration: with dairy listed before beverages, "milk" is dairy.
    """

    def __init__(self, definitions: Iterable[CategoryDefinition]):
        self.definitions = [
            CategoryDefinition(d.name, [k.lower() for k in d.keywords if k]) for d in definitions
        ]
        logger.debug(f"Categorizer initialized with {len(self.definitions)} categories")

    @classmethod
    def from_rules(cls, rule_loader) -> 'Categorizer':
        return cls(cls._definitions_from_dicts(rule_loader.get_category_definitions()))

    @staticmethod
    def _definitions_from_dicts(entries: List[Dict[str, Any]]) -> List[CategoryDefinition]:
        return [CategoryDefinition(e['name'], list(e.get('keywords', []))) for e in entries]

    def category_names(self) -> List[str]:
        return [d.name for d in self.definitions]

    def category_of(self, phrase: str) -> str:
        """
        Return the first category with a keyword that contains, or is
        contained in, the phrase. "other" when nothing matches.
        """
        if not phrase or not isinstance(phrase, str):
            return OTHER_CATEGORY
        phrase = phrase.lower()
        for definition in self.definitions:
            for keyword in definition.keywords:
                if keyword in phrase or phrase in keyword:
                    return definition.name
        return OTHER_CATEGORY
