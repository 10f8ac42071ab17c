"""
Batch Coordinator.

Fans a request's accounts out to the InvestigationEngine with at most
INVESTIGATION_MAX_CONCURRENCY investigations in flight, waits for all of
them, and tallies outcomes.

Failure policy: partial results. An account whose investigation fails or is
cancelled is reported as an InvestigationFailure and left out of the
counts; its siblings keep running.
"""

from __future__ import annotations

import asyncio
import logging
import time

from django.conf import settings

from apps.investigation.dtos import (
    Account,
    BatchResult,
    Classification,
    InvestigationFailure,
    InvestigationRequest,
    InvestigationResult,
)
from apps.investigation.engine import InvestigationEngine
from apps.investigation.exceptions import CapabilityError
from apps.investigation.signals import (
    SignalTags,
    emit_batch_completed,
    emit_batch_started,
    emit_investigation_failed,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5


class BatchCoordinator:
    """
    Runs investigations for every account in a request.

    Usage:
        coordinator = BatchCoordinator(InvestigationEngine.from_settings())
        batch = await coordinator.investigate_batch(request)
    """

    engine: InvestigationEngine
    max_concurrency: int

    def __init__(self, engine: InvestigationEngine, max_concurrency: int | None = None):
        self.engine = engine
        self.max_concurrency = (
            max_concurrency
            if max_concurrency is not None
            else int(getattr(settings, "INVESTIGATION_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY))
        )
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

    async def investigate_batch(
        self,
        request: InvestigationRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchResult:
        """
        Investigate every account in the request.

        Args:
            request: The batch request.
            cancel_event: Optional signal; once set, every queued and
                in-flight investigation is cancelled and reported as a
                cancelled failure.

        Returns:
            BatchResult with one entry (result or failure) per account.
        """
        start_time = time.perf_counter()
        tags = SignalTags(request_id=request.request_id)

        logger.info(
            f"Batch: {len(request.accounts)} accounts (request {request.request_id}, "
            f"max concurrency {self.max_concurrency})"
        )
        emit_batch_started(tags, len(request.accounts))

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _run(account: Account) -> InvestigationResult:
            async with semaphore:
                return await self.engine.investigate(account, request.request_id)

        tasks = [
            asyncio.create_task(_run(account), name=f"investigate:{account.account_id}")
            for account in request.accounts
        ]

        watcher = None
        if cancel_event is not None:
            watcher = asyncio.create_task(self._cancel_on(cancel_event, tasks))

        try:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            if watcher is not None:
                watcher.cancel()
                await asyncio.gather(watcher, return_exceptions=True)

        batch = BatchResult(request_id=request.request_id)
        for account, outcome in zip(request.accounts, outcomes):
            if isinstance(outcome, InvestigationResult):
                batch.results.append(outcome)
            else:
                batch.failures.append(self._record_failure(account, request.request_id, outcome))

        batch.reclassified_count = sum(1 for r in batch.results if r.was_reclassified)
        batch.stale_count = sum(
            1 for r in batch.results if r.final_classification == Classification.STALE
        )
        batch.orphaned_count = sum(
            1 for r in batch.results if r.final_classification == Classification.ORPHANED
        )
        batch.duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"Batch complete: {batch.reclassified_count} reclassified to Active, "
            f"{batch.stale_count} stale, {batch.orphaned_count} orphaned -> Agent B+C, "
            f"{len(batch.failures)} failed"
        )
        emit_batch_completed(
            tags,
            duration_ms=batch.duration_ms,
            reclassified=batch.reclassified_count,
            stale=batch.stale_count,
            orphaned=batch.orphaned_count,
            failed=len(batch.failures),
        )
        return batch

    @staticmethod
    async def _cancel_on(cancel_event: asyncio.Event, tasks: list[asyncio.Task]) -> None:
        await cancel_event.wait()
        logger.warning("Batch cancellation requested; cancelling in-flight investigations")
        for task in tasks:
            task.cancel()

    @staticmethod
    def _record_failure(
        account: Account, request_id: str, error: BaseException
    ) -> InvestigationFailure:
        cancelled = isinstance(error, asyncio.CancelledError)
        if cancelled:
            message = "Investigation cancelled before completion"
            logger.warning(f"{account.account_id}: {message}")
        elif isinstance(error, CapabilityError):
            message = str(error)
            logger.error(f"{account.account_id}: {message}")
        else:
            message = str(error) or type(error).__name__
            logger.error(
                f"{account.account_id}: unexpected investigation error",
                exc_info=(type(error), error, error.__traceback__),
            )

        emit_investigation_failed(
            SignalTags(
                request_id=request_id,
                account_id=account.account_id,
                classification=account.classification.value,
            ),
            error_type=type(error).__name__,
            error_message=message,
            cancelled=cancelled,
        )
        return InvestigationFailure(
            account_id=account.account_id,
            request_id=request_id,
            error_type=type(error).__name__,
            message=message,
            cancelled=cancelled,
        )


def run_batch(
    request: InvestigationRequest,
    engine: InvestigationEngine | None = None,
    max_concurrency: int | None = None,
) -> BatchResult:
    """Run a batch to completion from synchronous code (commands, tasks, views)."""
    coordinator = BatchCoordinator(
        engine or InvestigationEngine.from_settings(),
        max_concurrency=max_concurrency,
    )
    return asyncio.run(coordinator.investigate_batch(request))
