"""
Memory Progress Repository Module

This module provides in-memory implementations of the ProgressStore and
ResponseLog interfaces for development and testing purposes.
"""

import copy
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from practiceiq.common.exceptions import ConcurrentUpdateError, NotFoundError
from practiceiq.common.logger import app_logger
from .model import Progress, ProgressKey, Response
from .repository import ProgressStore, ResponseLog

logger = app_logger.getChild("repository.memory")


class MemoryProgressStore(ProgressStore):
    """
    In-memory implementation of the ProgressStore.

    A single lock serialises writers, which gives the one-writer-per-key
    guarantee the engine relies on. Records handed out are copies, so
    changes only reach the store through ``update``.
    """

    def __init__(self, default_ease_factor: float = 2.5):
        """
        Initialize an empty store.

        Args:
            default_ease_factor: Ease factor given to newly created records
        """
        self.default_ease_factor = default_ease_factor
        self._records: Dict[str, Progress] = {}
        self._ids_by_key: Dict[Tuple[str, str, str], str] = {}
        self._lock = threading.RLock()

    @staticmethod
    def _index(key: ProgressKey) -> Tuple[str, str, str]:
        return key.user_id, key.unit_id, key.topic_key

    def find(self, key: ProgressKey) -> Optional[Progress]:
        with self._lock:
            progress_id = self._ids_by_key.get(self._index(key))
            return copy.deepcopy(self._records[progress_id]) if progress_id else None

    def create(self, key: ProgressKey) -> Progress:
        with self._lock:
            existing = self.find(key)
            if existing is not None:
                return existing
            progress = Progress.create(key, ease_factor=self.default_ease_factor)
            self._records[progress.id] = progress
            self._ids_by_key[self._index(key)] = progress.id
            logger.debug(f"Created progress {progress.id} for {key}")
            return copy.deepcopy(progress)

    def update(self, progress_id: str, changes: Dict[str, Any],
               expected_attempts: Optional[int] = None) -> Progress:
        with self._lock:
            current = self._records.get(progress_id)
            if current is None:
                raise NotFoundError("Progress", progress_id)
            if expected_attempts is not None and current.total_attempts != expected_attempts:
                raise ConcurrentUpdateError(progress_id, expected_attempts, current.total_attempts)

            changes = copy.deepcopy(dict(changes))
            changes.setdefault("updated_at", datetime.now())
            updated = current.with_changes(changes)
            self._records[progress_id] = updated
            return copy.deepcopy(updated)

    def due_for_review(self, user_id: str, as_of: datetime) -> List[Progress]:
        with self._lock:
            return [
                copy.deepcopy(progress) for progress in self._records.values()
                if progress.user_id == user_id and progress.is_due(as_of)
            ]

    def __len__(self) -> int:
        return len(self._records)


class MemoryResponseLog(ResponseLog):
    """In-memory, append-only response log."""

    def __init__(self):
        self._responses: List[Response] = []
        self._lock = threading.Lock()

    def append(self, response: Response) -> Response:
        with self._lock:
            self._responses.append(response)
        return response

    def recent(self, user_id: str, unit_id: str, limit: int) -> List[Response]:
        if limit <= 0:
            return []
        with self._lock:
            # Ties on created_at fall back to append order.
            matching = [
                (response.created_at, position, response)
                for position, response in enumerate(self._responses)
                if response.user_id == user_id and response.unit_id == unit_id
            ]
        matching.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [response for _, _, response in matching[:limit]]

    def __len__(self) -> int:
        return len(self._responses)
