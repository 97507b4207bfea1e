from __future__ import annotations

"""
In-memory store of pane corrections ("that was the right pane" / "wrong
pane") that biases later rankings.

Each record's influence decays linearly from 1 at registration to 0 at the
time-to-live. Reads prune expired records and evict the oldest ones above
``max_entries``, so every read mutates the retained set; all access goes
through one lock.
"""

import math
import threading
from typing import Dict, List, Optional, Tuple, Union

from loguru import logger

from .pipeline_types import FeedbackRating, FeedbackRecord


class InvalidFeedbackRecord(ValueError):
    """A feedback record is missing its pane id, rating or timestamp."""


def _coerce_rating(rating: Union[FeedbackRating, str, None]) -> Optional[FeedbackRating]:
    if isinstance(rating, FeedbackRating):
        return rating
    try:
        return FeedbackRating(rating)
    except ValueError:
        return None


def _validate(record: FeedbackRecord) -> FeedbackRecord:
    if not isinstance(record.pane_id, str) or not record.pane_id:
        raise InvalidFeedbackRecord("feedback record has no pane id")
    rating = _coerce_rating(record.rating)
    if rating is None:
        raise InvalidFeedbackRecord(f"unknown feedback rating: {record.rating!r}")
    ts = record.timestamp
    if isinstance(ts, bool) or not isinstance(ts, (int, float)) or not math.isfinite(ts):
        raise InvalidFeedbackRecord(f"feedback timestamp is not finite: {ts!r}")
    if rating is record.rating:
        return record
    return FeedbackRecord(
        pane_id=record.pane_id,
        rating=rating,
        timestamp=ts,
        hint_signature=record.hint_signature,
    )


def decay_factor(age: float, ttl_ms: float) -> float:
    """Linear decay clamped to [0, 1]: 1 at age 0, 0 at age >= ttl."""
    return min(max(1.0 - age / ttl_ms, 0.0), 1.0)


class FeedbackStore:
    def __init__(self, ttl_ms: float, max_entries: int, strict: bool = False):
        self.ttl_ms = max(1.0, float(ttl_ms))
        self.max_entries = max(0, int(max_entries))
        self.strict = strict
        self._records: List[FeedbackRecord] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def snapshot(self) -> Tuple[FeedbackRecord, ...]:
        """Retained records, as registered, without pruning."""
        with self._lock:
            return tuple(self._records)

    def register(self, record: FeedbackRecord) -> bool:
        """
        Append a correction. Malformed records are dropped with a warning
        (or raise ``InvalidFeedbackRecord`` when the store is strict).
        """
        try:
            valid = _validate(record)
        except InvalidFeedbackRecord as e:
            if self.strict:
                raise
            logger.warning("Dropping feedback record: {}", e)
            return False
        with self._lock:
            self._records.append(valid)
        return True

    def _prune_locked(self, now: float) -> int:
        before = len(self._records)
        self._records = [r for r in self._records if now - r.timestamp < self.ttl_ms]
        if len(self._records) > self.max_entries:
            self._records.sort(key=lambda r: r.timestamp)
            surplus = len(self._records) - self.max_entries
            self._records = self._records[surplus:]
        return before - len(self._records)

    def prune(self, now: float) -> int:
        """Drop expired records, then the oldest above max_entries. Returns evicted count."""
        with self._lock:
            return self._prune_locked(now)

    def get_adjustments(self, now: float) -> Dict[str, float]:
        with self._lock:
            evicted = self._prune_locked(now)
            if evicted:
                logger.debug("Feedback store evicted {} record(s)", evicted)
            adjustments: Dict[str, float] = {}
            for record in self._records:
                age = max(0.0, now - record.timestamp)
                sign = 1.0 if record.rating is FeedbackRating.MATCH else -1.0
                contribution = sign * decay_factor(age, self.ttl_ms)
                if contribution == 0:
                    continue
                adjustments[record.pane_id] = adjustments.get(record.pane_id, 0.0) + contribution
            return adjustments
