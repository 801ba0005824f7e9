"""
Unit of Work

One database transaction per command. Events recorded by the models
touched inside it are handed to the message bus only once the
transaction has committed; a rollback drops them.
"""

from typing import List
import logging

from django.db import OperationalError, transaction

from shared.domain.base import DomainEvent
from shared.domain.exceptions import StorageError

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    ``transaction.atomic`` plus deferred event publication.

        with DjangoUnitOfWork() as uow:
            key = load_key(key_id, lock=True)
            key.mark_assigned(...)
            key.save()
            uow.collect_events(key)

    Database timeouts and lost connections, including ones raised while
    committing, leave the block as a retryable ``StorageError``.
    """

    def __init__(self):
        self._events: List[DomainEvent] = []
        self._atomic = transaction.atomic()

    def __enter__(self):
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        events, self._events = self._events, []
        if exc_type is None and events:
            transaction.on_commit(lambda: self._publish(events))
        elif events:
            logger.warning(f"Rolled back, dropping {len(events)} unpublished events")

        try:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)
        except OperationalError as exc:
            raise StorageError(f"Storage operation failed: {exc}") from exc

        if isinstance(exc_val, OperationalError):
            raise StorageError(f"Storage operation failed: {exc_val}") from exc_val
        return False

    def collect_events(self, aggregate):
        """Move the events recorded on ``aggregate`` into this unit of work."""
        recorded = aggregate.events
        if recorded:
            self._events.extend(recorded)
            aggregate.clear_events()
            logger.debug(f"{aggregate.__class__.__name__} {aggregate.pk} recorded {len(recorded)} events")

    @staticmethod
    def _publish(events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.info(f"Publishing {len(events)} domain events after commit")
        try:
            message_bus.publish_events(events)
        except Exception as e:
            logger.error(f"Error publishing events: {e}", exc_info=True)
