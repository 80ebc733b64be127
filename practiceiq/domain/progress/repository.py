"""
Progress Repository Module

This module defines the storage contracts the adaptive learning engine
depends on: a store holding one progress record per composite key and an
append-only log of responses.
"""

import abc
from datetime import datetime
from typing import Any, Dict, List, Optional

from .model import Progress, ProgressKey, Response


class ProgressStore(abc.ABC):
    """
    Abstract base class for progress stores.

    Implementations must treat "no topic" as a single canonical key value and
    apply ``update`` atomically to one record.
    """

    @abc.abstractmethod
    def find(self, key: ProgressKey) -> Optional[Progress]:
        """
        Get the progress record for a composite key.

        Args:
            key: User, unit and optional topic

        Returns:
            The record if one exists, None otherwise
        """
        pass

    @abc.abstractmethod
    def create(self, key: ProgressKey) -> Progress:
        """
        Create a default record for ``key``.

        If a record for the key already exists (for example created by a
        concurrent submission) that record is returned instead.

        Args:
            key: User, unit and optional topic

        Returns:
            The stored record
        """
        pass

    @abc.abstractmethod
    def update(self, progress_id: str, changes: Dict[str, Any],
               expected_attempts: Optional[int] = None) -> Progress:
        """
        Apply ``changes`` to a record in one atomic step.

        Args:
            progress_id: ID of the record to update
            changes: Field values to set
            expected_attempts: If given, the update only applies when the stored
                ``total_attempts`` still equals this value

        Returns:
            The updated record

        Raises:
            NotFoundError: If no record has this ID
            ConcurrentUpdateError: If ``expected_attempts`` no longer matches
        """
        pass

    @abc.abstractmethod
    def due_for_review(self, user_id: str, as_of: datetime) -> List[Progress]:
        """
        Get a user's records whose review date is at or before ``as_of``.

        Args:
            user_id: The learner
            as_of: Reference time

        Returns:
            Due records in creation order
        """
        pass


class ResponseLog(abc.ABC):
    """
    Abstract base class for the response log.

    The log is the source of truth for windowed statistics; entries are
    never modified once appended.
    """

    @abc.abstractmethod
    def append(self, response: Response) -> Response:
        """
        Append a response.

        Args:
            response: The response to record

        Returns:
            The recorded response
        """
        pass

    @abc.abstractmethod
    def recent(self, user_id: str, unit_id: str, limit: int) -> List[Response]:
        """
        Get the most recent responses of a user in a unit.

        Args:
            user_id: The learner
            unit_id: The unit
            limit: Maximum number of responses to return

        Returns:
            Up to ``limit`` responses, newest first
        """
        pass
