#!/usr/bin/env python3
"""
Feedback Learner
Records user accept/correct decisions on suggested matches and feeds
corrections back into the SynonymStore.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from .synonym_store import SynonymStore

logger = logging.getLogger(__name__)


class FeedbackLearner:
    """Turn user feedback and unmatched history into synonym updates"""

    def __init__(self, synonym_store: SynonymStore,
                 feedback_sink: Optional[Callable[[Dict[str, Any]], Any]] = None):
        """
        Args:
            synonym_store: Store updated by corrections
            feedback_sink: Receives every feedback entry (e.g. SearchAnalytics.log_feedback)
        """
        self.synonym_store = synonym_store
        self.feedback_sink = feedback_sink

    def record_user_feedback(self, original_query: str, suggested_match: Optional[str],
                             user_correction: Optional[str], was_accepted: bool) -> Dict[str, Any]:
        """
        Record one feedback event.

        A correction is learned only when the user rejected the suggestion
        and supplied the right key.

        Returns:
            The feedback entry
        """
        feedback = {
            'timestamp': datetime.now().isoformat(),
            'originalQuery': original_query,
            'suggestedMatch': suggested_match,
            'userCorrection': user_correction,
            'wasAccepted': bool(was_accepted),
            'learned': False,
        }

        logger.info(
            f"User feedback: '{original_query}' suggested={suggested_match} "
            f"correction={user_correction} accepted={was_accepted}"
        )

        if user_correction and not was_accepted:
            feedback['learned'] = self.synonym_store.learn_from_correction(
                original_query, suggested_match, user_correction
            )

        if self.feedback_sink is not None:
            try:
                self.feedback_sink(feedback)
            except Exception as e:
                logger.warning(f"Feedback logging failed: {e}")

        return feedback

    def learn_from_unmatched(self, unmatched_counts: Mapping[str, int],
                             min_count: int = 2) -> Dict[str, str]:
        """
        Auto-learn synonyms for phrases that keep going unmatched.

        Args:
            unmatched_counts: normalized phrase -> times unmatched
            min_count: Minimum occurrences before a phrase is considered

        Returns:
            phrase -> key for every phrase that was attached
        """
        learned = {}
        candidates: List[str] = sorted(p for p, count in unmatched_counts.items() if count >= min_count)
        for phrase in candidates:
            key = self.synonym_store.auto_learn_synonym(phrase)
            if key:
                learned[phrase] = key

        logger.info(f"Auto-learning: {len(learned)} of {len(candidates)} frequent unmatched phrases attached")
        return learned
