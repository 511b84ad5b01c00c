"""Pending candidates awaiting user review.

A thin wrapper over :class:`~money_tracker.persistence.Persistence` so callers
outside the review flow do not need the whole storage surface.
"""

from __future__ import annotations

from datetime import datetime

from .logging_setup import get_logger
from .models import Candidate, CandidateView
from .persistence import Persistence

_logger = get_logger("money_tracker.candidates")


class CandidateStore:
    def __init__(self, store: Persistence) -> None:
        self._store = store

    def add(self, candidate: Candidate, *, detected_at: datetime | None = None) -> CandidateView:
        when = detected_at or datetime.now().replace(microsecond=0)
        row = self._store.insert_candidate(candidate, when)
        _logger.info("stored candidate id=%d %r %s (%s)", row.id, row.item, row.cost, row.bank)
        return row

    def list(self) -> list[CandidateView]:
        return self._store.list_candidates()

    def get(self, candidate_id: int) -> CandidateView | None:
        return self._store.get_candidate(candidate_id)

    def delete(self, candidate_id: int) -> bool:
        return self._store.delete_candidate(candidate_id)

    def clear(self) -> int:
        return self._store.clear_candidates()


__all__ = ["CandidateStore"]
