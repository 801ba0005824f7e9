"""Celery tasks for the overdue sweeper."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.keys import queries as key_queries
from apps.keys.domain.status import KeyStatus

from .sweeper import OverdueSweeper

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled through Celery Beat, see config/celery.py)
# ============================================================================

@shared_task(name="sweeper.run_overdue_sweep")
def run_overdue_sweep() -> dict[str, int]:
    """
    Flag overdue reservations, no-show candidates and overdue keys.

    Returns:
        dict: number of newly flagged records per scan
    """
    return OverdueSweeper().run()


@shared_task(name="sweeper.report_keys_needing_attention")
def report_keys_needing_attention() -> dict[str, int]:
    """Log how many keys are lost, damaged or out of service."""
    counts = {str(status): 0 for status in (KeyStatus.LOST, KeyStatus.DAMAGED, KeyStatus.OUT_OF_SERVICE)}
    for key in key_queries.keys_needing_attention().only("status"):
        counts[str(key.status)] += 1

    total = sum(counts.values())
    if total:
        logger.warning(f"{total} keys need attention: {counts}")
    return counts
