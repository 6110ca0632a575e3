#!/usr/bin/env python3
"""
Search Analytics - JSON log of searches, store selections, errors, match
performance and user feedback.

File layout:
{
  "searches": [...], "shopSelections": [...], "dailyUsers": {"2024-01-05": ["user_ab12cd34"]},
  "errors": [...], "matchPerformance": [...], "feedback": [...]
}

Read or write failures are logged and never raised to the caller.
"""

import hashlib
import json
import logging
import threading
import traceback
from collections import Counter
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from matching.text_normalizer import normalize

logger = logging.getLogger(__name__)

SECTIONS = {
    'searches': list,
    'shopSelections': list,
    'dailyUsers': dict,
    'errors': list,
    'matchPerformance': list,
    'feedback': list,
}


def _empty_document() -> Dict[str, Any]:
    return {name: factory() for name, factory in SECTIONS.items()}


def _parse_time(value: Any) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(str(value))
    except (TypeError, ValueError):
        return None


class SearchAnalytics:
    """Append-only analytics document stored as JSON"""

    def __init__(self, analytics_file, max_errors: int = 100):
        self.analytics_file = Path(analytics_file)
        self.max_errors = max_errors
        self._lock = threading.Lock()
        self.ensure_file()

    def ensure_file(self) -> None:
        try:
            self.analytics_file.parent.mkdir(parents=True, exist_ok=True)
            if not self.analytics_file.exists():
                self.write(_empty_document())
        except OSError as e:
            logger.error(f"Could not create analytics file {self.analytics_file}: {e}")

    def read(self) -> Dict[str, Any]:
        try:
            with open(self.analytics_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading analytics file {self.analytics_file}: {e}")
            return _empty_document()

        # Older files may lack newer sections
        for name, factory in SECTIONS.items():
            if not isinstance(data.get(name), factory):
                data[name] = factory()
        return data

    def write(self, data: Dict[str, Any]) -> None:
        try:
            with open(self.analytics_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
        except OSError as e:
            logger.error(f"Error writing analytics file {self.analytics_file}: {e}")

    def _append(self, section: str, entry: Dict[str, Any], keep_last: Optional[int] = None) -> Dict[str, Any]:
        with self._lock:
            data = self.read()
            data[section].append(entry)
            if keep_last is not None and len(data[section]) > keep_last:
                data[section] = data[section][-keep_last:]
            self.write(data)
        return entry

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    @staticmethod
    def generate_user_id(items: List[str], timestamp: str) -> str:
        """Anonymous id from the list contents and the minute of the search"""
        digest = hashlib.md5((''.join(items) + timestamp[:16]).encode('utf-8')).hexdigest()
        return f"user_{digest[:8]}"

    def log_search(self, items: List[str], matched_items: int = 0,
                   unmatched_items: Optional[List[str]] = None, stores_compared: int = 0,
                   savings: float = 0.0, cheapest_store: Optional[str] = None,
                   most_expensive_store: Optional[str] = None) -> Dict[str, Any]:
        now = datetime.now()
        timestamp = now.isoformat()
        today = now.date().isoformat()
        user_id = self.generate_user_id(list(items), timestamp)

        entry = {
            'timestamp': timestamp,
            'userId': user_id,
            'items': list(items),
            'matchedItems': matched_items,
            'unmatchedItems': list(unmatched_items or []),
            'storesCompared': stores_compared,
            'savings': savings,
            'cheapestStore': cheapest_store,
            'mostExpensiveStore': most_expensive_store,
            'day': today,
        }

        with self._lock:
            data = self.read()
            data['searches'].append(entry)
            users = data['dailyUsers'].setdefault(today, [])
            if user_id not in users:
                users.append(user_id)
            self.write(data)
        return entry

    def log_shop_selection(self, shop_name: str, total_price: float = 0.0,
                           items_available: int = 0) -> Dict[str, Any]:
        now = datetime.now()
        return self._append('shopSelections', {
            'timestamp': now.isoformat(),
            'shopName': shop_name,
            'totalPrice': total_price,
            'itemsAvailable': items_available,
            'day': now.date().isoformat(),
        })

    def log_error(self, error: BaseException, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        now = datetime.now()
        stack = None
        if error.__traceback__ is not None:
            stack = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
        return self._append('errors', {
            'timestamp': now.isoformat(),
            'error': str(error),
            'stack': stack,
            'context': context or {},
            'day': now.date().isoformat(),
        }, keep_last=self.max_errors)

    def log_match_performance(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        entry = dict(summary)
        entry['timestamp'] = datetime.now().isoformat()
        return self._append('matchPerformance', entry)

    def log_feedback(self, feedback: Dict[str, Any]) -> Dict[str, Any]:
        return self._append('feedback', dict(feedback))

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def _recent(self, entries: List[Dict[str, Any]], cutoff: Optional[datetime]) -> List[Dict[str, Any]]:
        if cutoff is None:
            return list(entries)
        recent = []
        for entry in entries:
            ts = _parse_time(entry.get('timestamp'))
            if ts is not None and ts.replace(tzinfo=None) > cutoff:
                recent.append(entry)
        return recent

    def unmatched_counts(self, days: Optional[int] = None) -> Dict[str, int]:
        """normalized phrase -> number of searches it went unmatched in"""
        cutoff = datetime.now() - timedelta(days=days) if days is not None else None
        counts = Counter()
        for search in self._recent(self.read()['searches'], cutoff):
            for item in search.get('unmatchedItems') or []:
                phrase = normalize(item)
                if phrase:
                    counts[phrase] += 1
        return dict(counts)

    def get_summary(self, days: int = 30) -> Dict[str, Any]:
        data = self.read()
        now = datetime.now()
        cutoff = now - timedelta(days=days)
        today = now.date().isoformat()

        recent_searches = self._recent(data['searches'], cutoff)
        today_searches = [s for s in data['searches'] if s.get('day') == today]

        item_counts = Counter()
        unmatched = Counter()
        for search in recent_searches:
            for item in search.get('items') or []:
                item_counts[str(item).lower().strip()] += 1
            for item in search.get('unmatchedItems') or []:
                unmatched[str(item).lower().strip()] += 1

        savings = [s.get('savings', 0) for s in recent_searches if (s.get('savings') or 0) > 0]
        average_savings = sum(savings) / len(savings) if savings else 0.0

        recent_selections = self._recent(data['shopSelections'], cutoff)
        shop_stats: Dict[str, Dict[str, Any]] = {}
        for selection in recent_selections:
            stats = shop_stats.setdefault(selection.get('shopName'), {'selections': 0, 'totalRevenue': 0.0})
            stats['selections'] += 1
            stats['totalRevenue'] += selection.get('totalPrice') or 0

        popular_shops = [
            {'name': name, **stats}
            for name, stats in sorted(shop_stats.items(), key=lambda kv: -kv[1]['selections'])
        ]

        return {
            'summary': {
                'totalSearches': len(recent_searches),
                'todaySearches': len(today_searches),
                'dailyActiveUsers': len(data['dailyUsers'].get(today, [])),
                'averageSavings': round(average_savings, 2),
                'totalItemsSearched': sum(len(s.get('items') or []) for s in recent_searches),
            },
            'mostSearchedItems': [{'item': i, 'count': c} for i, c in item_counts.most_common(10)],
            'itemsToAdd': [{'item': i, 'count': c} for i, c in unmatched.most_common(20)],
            'popularShops': popular_shops,
            'recentActivity': {
                'searches': list(reversed(recent_searches[-10:])),
                'selections': list(reversed(recent_selections[-10:])),
            },
        }
