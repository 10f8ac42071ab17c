"""Tests for BatchCoordinator."""

import asyncio

from django.test import SimpleTestCase, override_settings

from apps.investigation._tests.fakes import (
    NOW,
    FakeResolver,
    FakeVerifier,
    found,
    make_account,
)
from apps.investigation.batch import BatchCoordinator, run_batch
from apps.investigation.dtos import Classification, InvestigationRequest
from apps.investigation.engine import InvestigationEngine
from apps.investigation.exceptions import ActivityVerificationError, ContextResolutionError


def _engine(verifier, resolver=None):
    return InvestigationEngine(verifier, resolver or FakeResolver(), clock=lambda: NOW)


def _mixed_request():
    accounts = (
        make_account("svc-a", Classification.STALE),
        make_account("svc-b", Classification.STALE),
        make_account("svc-c", Classification.ORPHANED),
        make_account("svc-d", Classification.ORPHANED),
        make_account("svc-e", Classification.STALE),
    )
    outcomes = {
        "svc-a": found("svc-a", days_ago=2),
        "svc-c": found("svc-c", days_ago=500),
    }
    return InvestigationRequest(accounts=accounts, request_id="req-batch"), outcomes


class BatchCountsTests(SimpleTestCase):
    """Cardinality and summary counts."""

    async def test_one_result_per_account(self):
        request, outcomes = _mixed_request()
        coordinator = BatchCoordinator(_engine(FakeVerifier(outcomes)))

        batch = await coordinator.investigate_batch(request)

        assert len(batch.results) == len(request.accounts)
        assert batch.failures == []
        assert batch.has_failures is False
        assert {r.account_id for r in batch.results} == {a.account_id for a in request.accounts}
        assert all(r.request_id == "req-batch" for r in batch.results)

    async def test_counts_add_up(self):
        request, outcomes = _mixed_request()
        coordinator = BatchCoordinator(_engine(FakeVerifier(outcomes)))

        batch = await coordinator.investigate_batch(request)

        assert batch.reclassified_count == 1
        assert batch.stale_count == 2
        assert batch.orphaned_count == 2
        assert (
            batch.reclassified_count + batch.stale_count + batch.orphaned_count
            == len(request.accounts)
        )

    async def test_empty_request(self):
        coordinator = BatchCoordinator(_engine(FakeVerifier()))

        batch = await coordinator.investigate_batch(InvestigationRequest(accounts=()))

        assert batch.results == []
        assert batch.total == 0


class ConcurrencyTests(SimpleTestCase):
    """No more than the configured number of investigations run at once."""

    async def test_default_bound_is_five(self):
        accounts = tuple(make_account(f"svc-{i}") for i in range(23))
        verifier = FakeVerifier(delay=0.01)
        resolver = FakeResolver(delay=0.01)
        coordinator = BatchCoordinator(_engine(verifier, resolver))

        batch = await coordinator.investigate_batch(InvestigationRequest(accounts=accounts))

        assert len(batch.results) == 23
        assert coordinator.max_concurrency == 5
        assert verifier.max_in_flight == 5
        assert resolver.max_in_flight <= 5

    async def test_outstanding_calls_never_exceed_bound(self):
        accounts = tuple(make_account(f"svc-{i}") for i in range(12))
        verifier = FakeVerifier(delay=0.005)
        resolver = FakeResolver(delay=0.005)
        peak = 0

        original_verify = verifier.verify
        original_resolve = resolver.resolve

        async def tracked_verify(account):
            nonlocal peak
            peak = max(peak, verifier.in_flight + resolver.in_flight + 1)
            return await original_verify(account)

        async def tracked_resolve(account):
            nonlocal peak
            peak = max(peak, verifier.in_flight + resolver.in_flight + 1)
            return await original_resolve(account)

        verifier.verify = tracked_verify
        resolver.resolve = tracked_resolve
        coordinator = BatchCoordinator(_engine(verifier, resolver))

        await coordinator.investigate_batch(InvestigationRequest(accounts=accounts))

        assert peak <= 5

    async def test_explicit_bound(self):
        accounts = tuple(make_account(f"svc-{i}") for i in range(6))
        verifier = FakeVerifier(delay=0.01)
        coordinator = BatchCoordinator(_engine(verifier), max_concurrency=2)

        await coordinator.investigate_batch(InvestigationRequest(accounts=accounts))

        assert verifier.max_in_flight == 2

    @override_settings(INVESTIGATION_MAX_CONCURRENCY=3)
    def test_bound_from_settings(self):
        coordinator = BatchCoordinator(_engine(FakeVerifier()))
        assert coordinator.max_concurrency == 3

    def test_bound_must_be_positive(self):
        with self.assertRaises(ValueError):
            BatchCoordinator(_engine(FakeVerifier()), max_concurrency=0)


class FailureIsolationTests(SimpleTestCase):
    """One failing account does not abort its siblings."""

    async def test_capability_failure_is_reported_per_account(self):
        request, outcomes = _mixed_request()
        outcomes["svc-b"] = ActivityVerificationError("svc-b", "SIEM unreachable")
        coordinator = BatchCoordinator(_engine(FakeVerifier(outcomes)))

        batch = await coordinator.investigate_batch(request)

        assert len(batch.results) == 4
        assert len(batch.failures) == 1
        failure = batch.failures[0]
        assert failure.account_id == "svc-b"
        assert failure.error_type == "ActivityVerificationError"
        assert "SIEM unreachable" in failure.message
        assert failure.cancelled is False
        assert batch.stale_count == 1
        assert batch.reclassified_count + batch.stale_count + batch.orphaned_count == 4

    async def test_unexpected_error_is_reported(self):
        account = make_account("svc-x")
        coordinator = BatchCoordinator(_engine(FakeVerifier({"svc-x": RuntimeError("boom")})))

        batch = await coordinator.investigate_batch(InvestigationRequest(accounts=(account,)))

        assert batch.results == []
        assert batch.failures[0].error_type == "RuntimeError"
        assert batch.failures[0].message == "boom"


    async def test_context_failure_is_reported_per_account(self):
        accounts = (
            make_account("svc-a", application_id="APP-1"),
            make_account("svc-b", application_id="APP-BROKEN"),
            make_account("svc-c", application_id="APP-3"),
        )

        class BrokenCatalogResolver(FakeResolver):
            async def resolve(self, account):
                if account.application_id == "APP-BROKEN":
                    raise ContextResolutionError(account.account_id, "catalog timeout")
                return await super().resolve(account)

        coordinator = BatchCoordinator(_engine(FakeVerifier(), BrokenCatalogResolver()))

        batch = await coordinator.investigate_batch(InvestigationRequest(accounts=accounts))

        assert [r.account_id for r in batch.results] == ["svc-a", "svc-c"]
        assert len(batch.failures) == 1
        assert batch.failures[0].account_id == "svc-b"
        assert batch.failures[0].error_type == "ContextResolutionError"
        assert batch.failures[0].cancelled is False
        assert batch.stale_count == 2


class CancellationTests(SimpleTestCase):
    """Cancellation stops investigations without producing case files."""

    async def test_cancel_event_cancels_in_flight_investigations(self):
        accounts = tuple(make_account(f"svc-{i}") for i in range(8))
        verifier = FakeVerifier(gate=asyncio.Event())
        cancel_event = asyncio.Event()
        coordinator = BatchCoordinator(_engine(verifier))

        batch_task = asyncio.create_task(
            coordinator.investigate_batch(InvestigationRequest(accounts=accounts), cancel_event)
        )
        await asyncio.sleep(0.01)
        cancel_event.set()
        batch = await batch_task

        assert batch.results == []
        assert len(batch.failures) == 8
        assert all(f.cancelled for f in batch.failures)
        assert all(f.error_type == "CancelledError" for f in batch.failures)
        assert batch.reclassified_count == batch.stale_count == batch.orphaned_count == 0
        assert verifier.in_flight == 0

    async def test_cancel_event_keeps_completed_results(self):
        fast = make_account("svc-fast")
        slow = make_account("svc-slow")
        gate = asyncio.Event()

        class SelectiveVerifier(FakeVerifier):
            async def verify(self, account):
                if account.account_id == "svc-slow":
                    await gate.wait()
                return await super().verify(account)

        cancel_event = asyncio.Event()
        coordinator = BatchCoordinator(_engine(SelectiveVerifier()))
        batch_task = asyncio.create_task(
            coordinator.investigate_batch(InvestigationRequest(accounts=(fast, slow)), cancel_event)
        )
        await asyncio.sleep(0.01)
        cancel_event.set()
        batch = await batch_task

        assert [r.account_id for r in batch.results] == ["svc-fast"]
        assert [f.account_id for f in batch.failures] == ["svc-slow"]
        assert batch.failures[0].cancelled is True

    async def test_cancel_event_reaches_context_resolution(self):
        accounts = tuple(make_account(f"svc-{i}") for i in range(3))
        verifier = FakeVerifier()
        resolver = FakeResolver(delay=5)
        cancel_event = asyncio.Event()
        coordinator = BatchCoordinator(_engine(verifier, resolver))

        batch_task = asyncio.create_task(
            coordinator.investigate_batch(InvestigationRequest(accounts=accounts), cancel_event)
        )
        await asyncio.sleep(0.01)
        assert resolver.in_flight == 3
        cancel_event.set()
        batch = await batch_task

        assert batch.results == []
        assert len(batch.failures) == 3
        assert all(f.cancelled for f in batch.failures)
        assert resolver.in_flight == 0

    async def test_cancelling_the_batch_propagates(self):
        accounts = tuple(make_account(f"svc-{i}") for i in range(3))
        verifier = FakeVerifier(gate=asyncio.Event())
        coordinator = BatchCoordinator(_engine(verifier))

        batch_task = asyncio.create_task(
            coordinator.investigate_batch(InvestigationRequest(accounts=accounts))
        )
        await asyncio.sleep(0.01)
        batch_task.cancel()

        with self.assertRaises(asyncio.CancelledError):
            await batch_task


class RunBatchTests(SimpleTestCase):
    """Synchronous entry point."""

    def test_run_batch(self):
        request, outcomes = _mixed_request()

        batch = run_batch(request, engine=_engine(FakeVerifier(outcomes)), max_concurrency=2)

        assert batch.request_id == "req-batch"
        assert len(batch.results) == 5
        assert batch.duration_ms >= 0
