#!/usr/bin/env python3
"""
Product Catalog - read-only snapshot of products and per-store prices

Loads the catalog document:
{
  "stores":   {"B Kosher": {"location": "...", "hours": "..."}, ...},
  "products": {
      "milk": {
          "displayName": "Milk",
          "category": "Dairy",
          "synonyms": ["2 pint milk"],
          "commonBrands": ["golden flow"],
          "prices": {"B Kosher": {"price": 1.2, "unit": "2 pints", "lastUpdated": "2024-01-05T10:00:00"}}
      }
  }
}
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class PriceEntry:
    price: float
    unit: str = 'each'
    last_updated: Optional[datetime] = None

    @property
    def is_available(self) -> bool:
        return self.price > 0


@dataclass
class CatalogProduct:
    key: str
    display_name: str
    category: str = 'General'
    synonyms: List[str] = field(default_factory=list)
    common_brands: List[str] = field(default_factory=list)
    prices: Dict[str, PriceEntry] = field(default_factory=dict)

    def price_at(self, store_name: str) -> Optional[PriceEntry]:
        """Price entry at store, or None if the store does not stock it"""
        entry = self.prices.get(store_name)
        if entry is None or not entry.is_available:
            return None
        return entry


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        # Accept the trailing "Z" written by JavaScript Date.toISOString()
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f"Unparseable price timestamp: {value}")
        return None


def _parse_price(store_name: str, data: Any) -> Optional[PriceEntry]:
    if isinstance(data, (int, float)):
        return PriceEntry(price=float(data))
    if not isinstance(data, dict):
        return None
    try:
        price = float(data.get('price', 0) or 0)
    except (TypeError, ValueError):
        logger.warning(f"Invalid price at {store_name}: {data.get('price')}")
        return None
    if price < 0:
        logger.warning(f"Negative price at {store_name} ignored: {price}")
        return None
    return PriceEntry(
        price=price,
        unit=str(data.get('unit') or 'each'),
        last_updated=_parse_timestamp(data.get('lastUpdated') or data.get('last_updated')),
    )


def product_from_dict(key: str, data: Dict[str, Any]) -> CatalogProduct:
    """Build a CatalogProduct from one entry of the catalog document"""
    brands = data.get('commonBrands') or data.get('common_brands') or []
    if not brands and data.get('brand'):
        brands = [data['brand']]

    prices = {}
    for store_name, price_data in (data.get('prices') or {}).items():
        entry = _parse_price(store_name, price_data)
        if entry is not None:
            prices[store_name] = entry

    return CatalogProduct(
        key=key,
        display_name=data.get('displayName') or data.get('display_name') or key,
        category=data.get('category') or 'General',
        synonyms=[str(s) for s in (data.get('synonyms') or [])],
        common_brands=[str(b) for b in brands],
        prices=prices,
    )


class Catalog:
    """Products and stores loaded from a catalog document"""

    def __init__(self, products: Optional[Dict[str, CatalogProduct]] = None,
                 stores: Optional[Dict[str, Dict[str, Any]]] = None):
        self.products: Dict[str, CatalogProduct] = dict(products or {})
        self.stores: Dict[str, Dict[str, Any]] = dict(stores or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Catalog':
        products = {
            key: product_from_dict(key, product_data)
            for key, product_data in (data.get('products') or {}).items()
        }
        stores = dict(data.get('stores') or {})
        # Stores that only appear in price tables still take part in comparisons
        for product in products.values():
            for store_name in product.prices:
                stores.setdefault(store_name, {})
        return cls(products, stores)

    @classmethod
    def from_json_file(cls, path) -> 'Catalog':
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {path}")
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        catalog = cls.from_dict(data)
        logger.info(f"Loaded {len(catalog.products)} products and {len(catalog.stores)} stores from {path}")
        return catalog

    def snapshot(self) -> Dict[str, CatalogProduct]:
        """Stable key -> product map for one matching run"""
        return dict(self.products)

    def store_names(self) -> List[str]:
        return list(self.stores.keys())

    def store_info(self, store_name: str) -> Dict[str, Any]:
        return dict(self.stores.get(store_name, {}))

    def last_updated(self) -> Optional[datetime]:
        """Most recent price update across the catalog"""
        latest = None
        for product in self.products.values():
            for entry in product.prices.values():
                if entry.last_updated and (latest is None or _later(entry.last_updated, latest)):
                    latest = entry.last_updated
        return latest


def _later(a: datetime, b: datetime) -> bool:
    # Mixed naive/aware timestamps compare as naive
    if (a.tzinfo is None) != (b.tzinfo is None):
        return a.replace(tzinfo=None) > b.replace(tzinfo=None)
    return a > b
