"""Celery tasks for batch investigations.

These tasks wrap the BatchCoordinator so a batch can run on a worker.
Results are returned as plain dicts (JSON serializer).
"""

from __future__ import annotations

from typing import Any

from celery import shared_task


@shared_task(bind=True)
def investigate_batch_task(
    self,
    request_data: dict[str, Any],
    max_concurrency: int | None = None,
) -> dict[str, Any]:
    """
    Celery task to investigate a batch of accounts.

    Args:
        request_data: InvestigationRequest as dict.
        max_concurrency: Optional override of INVESTIGATION_MAX_CONCURRENCY.

    Returns:
        BatchResult as dict.
    """
    from apps.investigation.batch import run_batch
    from apps.investigation.dtos import InvestigationRequest

    request = InvestigationRequest.from_dict(request_data)
    return run_batch(request, max_concurrency=max_concurrency).to_dict()
