"""Capability test doubles and builders shared by investigation tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from datetime import timezone as dt_tz

from apps.activity.verifiers.base import BaseActivityVerifier
from apps.catalog.resolvers.base import BaseContextResolver, unknown_context
from apps.investigation.dtos import (
    Account,
    ActivityVerificationResult,
    AppContext,
    AppStatus,
    Classification,
    ConfidenceLevel,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=dt_tz.utc)


def make_account(
    account_id: str = "svc-backup-01",
    classification: Classification = Classification.STALE,
    threshold: int = 30,
    **kwargs,
) -> Account:
    defaults = {
        "account_name": f"{account_id} service account",
        "application_id": "APP-100",
        "application_name": "Nightly Backup",
        "platform": "Application",
    }
    defaults.update(kwargs)
    return Account(
        account_id=account_id,
        classification=classification,
        inactivity_threshold_days=threshold,
        **defaults,
    )


def found(
    account_id: str = "svc-backup-01",
    days_ago: float = 10,
    source: str = "Splunk",
    confidence: ConfidenceLevel = ConfidenceLevel.HIGH,
) -> ActivityVerificationResult:
    return ActivityVerificationResult(
        account_id=account_id,
        confidence=confidence,
        activity_found=True,
        last_confirmed_activity=NOW - timedelta(days=days_ago),
        verified_by=source,
        summary=f"{source} saw activity {days_ago}d ago",
    )


def not_found(account_id: str = "svc-backup-01") -> ActivityVerificationResult:
    return ActivityVerificationResult(
        account_id=account_id,
        confidence=ConfidenceLevel.LOW,
        activity_found=False,
        summary="No activity in any source",
    )


class FakeVerifier(BaseActivityVerifier):
    """
    Returns canned results (or raises canned exceptions) per account id.

    Tracks calls and the peak number of verify() calls in flight.
    """

    name = "fake"

    def __init__(self, outcomes=None, delay: float = 0.0, gate: asyncio.Event | None = None):
        self.outcomes = outcomes or {}
        self.delay = delay
        self.gate = gate
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def verify(self, account: Account) -> ActivityVerificationResult:
        self.calls.append(account.account_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.delay:
                await asyncio.sleep(self.delay)
            outcome = self.outcomes.get(account.account_id)
            if isinstance(outcome, BaseException):
                raise outcome
            if outcome is None:
                return not_found(account.account_id)
            return outcome
        finally:
            self.in_flight -= 1


class FakeResolver(BaseContextResolver):
    """Returns a catalog entry per application id, or Unknown."""

    name = "fake"

    def __init__(self, contexts=None, error: BaseException | None = None, delay: float = 0.0):
        self.contexts = contexts or {}
        self.error = error
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def resolve(self, account: Account) -> AppContext:
        self.calls.append(account.account_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            context = self.contexts.get(account.application_id)
            return context if context is not None else unknown_context(account)
        finally:
            self.in_flight -= 1


def catalog_entry(
    application_id: str = "APP-100", status: AppStatus = AppStatus.ACTIVE
) -> AppContext:
    return AppContext(
        application_id=application_id,
        application_name="Nightly Backup",
        platform="Application",
        status=status,
        app_owner_name="Dana Ops",
        app_owner_email="dana@example.com",
        team_name="Storage",
    )
