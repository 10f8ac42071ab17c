"""
Investigation Engine.

Runs the per-account pipeline for a pre-classified Stale/Orphaned account:

1. Activity verification (primary SIEM, directory fallback, confidence label)
2. Reclassification check:
   - verified activity within the app-specific threshold -> Active,
     IGA data gap flagged, account dropped from further enrichment
   - otherwise -> upstream classification confirmed, continue
3. Application context resolution (status, owner, team)
4. Case file + routing to Agent B (risk) and Agent C (outreach)

Confidence is carried on the case file as a label; it never decides a branch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from django.utils import timezone

from apps.activity.verifiers.base import BaseActivityVerifier
from apps.catalog.resolvers.base import BaseContextResolver
from apps.investigation.dtos import (
    Account,
    ActivityVerificationResult,
    AppContext,
    AppStatus,
    Classification,
    DownstreamRouting,
    InvestigationResult,
)
from apps.investigation.signals import (
    SignalTags,
    emit_investigation_confirmed,
    emit_investigation_reclassified,
    emit_investigation_started,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

RECLASSIFIED_GOAL = "N/A — reclassified Active. IGA data gap flagged for reconciliation."
STALE_GOAL = "Get approval to disable account. Confirm usage details with owner."
ORPHANED_GOAL = "Transfer ownership. Confirm application status and usage with app team."
NO_ROUTING_GOAL = "N/A"


def days_since(moment: datetime, now: datetime) -> float:
    """Fractional days elapsed between moment and now."""
    return (now - moment).total_seconds() / SECONDS_PER_DAY


def check_reclassification(
    account: Account,
    verification: ActivityVerificationResult,
    now: datetime,
) -> tuple[bool, str | None]:
    """
    Decide whether verified activity contradicts the upstream classification.

    Returns (reclassified, reason). Only activity with a confirmed timestamp
    no older than the account's inactivity threshold overrides.
    """
    if not verification.activity_found or verification.last_confirmed_activity is None:
        return False, None

    elapsed = days_since(verification.last_confirmed_activity, now)
    threshold = account.inactivity_threshold_days

    if elapsed <= threshold:
        return True, (
            f"Reclassified to Active. {verification.verified_by} shows activity "
            f"{elapsed:.0f}d ago (threshold: {threshold}d). "
            f"IGA classified as {account.classification.value}: data gap flagged."
        )

    return False, None


def build_routing(classification: Classification) -> DownstreamRouting:
    """Both Stale and Orphaned go to risk and outreach; only the goal differs."""
    if classification == Classification.STALE:
        return DownstreamRouting(
            send_to_agent_b=True, send_to_agent_c=True, outreach_goal=STALE_GOAL
        )
    if classification == Classification.ORPHANED:
        return DownstreamRouting(
            send_to_agent_b=True, send_to_agent_c=True, outreach_goal=ORPHANED_GOAL
        )
    return DownstreamRouting(
        send_to_agent_b=False, send_to_agent_c=False, outreach_goal=NO_ROUTING_GOAL
    )


def reclassified_context(account: Account) -> AppContext:
    """Minimal context for an overridden account; the catalog is never consulted."""
    return AppContext(
        application_id=account.application_id,
        application_name=account.application_name,
        platform=account.platform,
        status=AppStatus.ACTIVE,
    )


class InvestigationEngine:
    """
    Runs the investigation pipeline for one account at a time.

    Usage:
        engine = InvestigationEngine(verifier, resolver)
        result = await engine.investigate(account, request_id)

    Only capability failures (CapabilityError) and cancellation
    (asyncio.CancelledError) escape investigate(); every business outcome
    is a case file.
    """

    verifier: BaseActivityVerifier
    resolver: BaseContextResolver

    def __init__(
        self,
        verifier: BaseActivityVerifier,
        resolver: BaseContextResolver,
        clock: Callable[[], datetime] | None = None,
    ):
        self.verifier = verifier
        self.resolver = resolver
        self.clock = clock or timezone.now

    @classmethod
    def from_settings(cls) -> InvestigationEngine:
        """Engine wired with the capabilities configured in Django settings."""
        from apps.activity.verifiers import get_configured_verifier
        from apps.catalog.resolvers import get_configured_resolver

        return cls(verifier=get_configured_verifier(), resolver=get_configured_resolver())

    async def investigate(self, account: Account, request_id: str) -> InvestigationResult:
        """
        Investigate a single account and build its case file.

        Args:
            account: Pre-classified account from IGA.
            request_id: Originating request ID, copied onto the case file.

        Returns:
            The immutable case file.
        """
        # One "now" per investigation keeps the threshold decision stable
        # however long verification takes.
        now = self.clock()
        tags = SignalTags(
            request_id=request_id,
            account_id=account.account_id,
            classification=account.classification.value,
        )

        logger.info(
            f"Investigation start: {account.account_id} "
            f"(upstream classification: {account.classification.value})",
            extra={"request_id": request_id, "account_id": account.account_id},
        )
        emit_investigation_started(tags)

        verification = await self.verifier.verify(account)

        reclassified, reason = check_reclassification(account, verification, now)

        if reclassified:
            logger.warning(
                f"{account.account_id}: reclassified to Active. IGA data gap. "
                "Dropping from pipeline.",
                extra={"request_id": request_id, "account_id": account.account_id},
            )
            emit_investigation_reclassified(
                tags,
                verified_by=verification.verified_by,
                days_since=days_since(verification.last_confirmed_activity, now),
            )
            return InvestigationResult(
                account_id=account.account_id,
                request_id=request_id,
                account=account,
                final_classification=Classification.ACTIVE,
                was_reclassified=True,
                reclassification_reason=reason,
                activity_verification=verification,
                application_context=reclassified_context(account),
                routing=DownstreamRouting(
                    send_to_agent_b=False,
                    send_to_agent_c=False,
                    outreach_goal=RECLASSIFIED_GOAL,
                ),
                investigated_at=self.clock(),
            )

        logger.info(
            f"{account.account_id}: confirmed {account.classification.value} | "
            f"{verification.confidence.value} confidence | continuing pipeline"
        )

        app_context = await self.resolver.resolve(account)
        routing = build_routing(account.classification)

        result = InvestigationResult(
            account_id=account.account_id,
            request_id=request_id,
            account=account,
            final_classification=account.classification,
            was_reclassified=False,
            activity_verification=verification,
            application_context=app_context,
            routing=routing,
            investigated_at=self.clock(),
        )

        logger.info(
            f"Investigation complete: {result.account_id} -> {result.final_classification.value} | "
            f"{verification.confidence.value} | B:{routing.send_to_agent_b} "
            f"C:{routing.send_to_agent_c} | Goal: {routing.outreach_goal}"
        )
        emit_investigation_confirmed(
            tags,
            confidence=verification.confidence.value,
            app_status=app_context.status.value,
        )

        return result
