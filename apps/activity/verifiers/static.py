"""
Static activity verifier.

Serves activity evidence from an in-memory mapping or a JSON fixture file,
keyed by account id:

    {
        "svc-backup-01": [
            {"source": "Splunk", "timestamp": "2026-10-01T08:00:00Z", "event_type": "login"}
        ]
    }

Records from a primary (security-event) source take precedence over
secondary directory sources, which decides the confidence label.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from apps.activity.verifiers.base import BaseActivityVerifier
from apps.investigation.dtos import (
    Account,
    ActivityRecord,
    ActivityVerificationResult,
    ConfidenceLevel,
)

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_SOURCES = ("Splunk",)


class StaticActivityVerifier(BaseActivityVerifier):
    """Fixture-backed verifier for local runs and tests."""

    name = "static"
    description = "Activity evidence from a static mapping or JSON fixture"

    def __init__(
        self,
        records: dict[str, list[dict[str, Any]]] | None = None,
        fixture_path: str | Path | None = None,
        primary_sources: list[str] | tuple[str, ...] = DEFAULT_PRIMARY_SOURCES,
        **kwargs: Any,
    ):
        self.primary_sources = {s.lower() for s in primary_sources}
        self._records: dict[str, list[dict[str, Any]]] = {}
        if fixture_path:
            self._records.update(self._load_fixture(Path(fixture_path)))
        if records:
            self._records.update(records)

    @staticmethod
    def _load_fixture(path: Path) -> dict[str, list[dict[str, Any]]]:
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Activity fixture must be a JSON object: {path}")
        logger.info("Loaded activity fixture for %d accounts from %s", len(data), path)
        return data

    def _evidence_for(self, account: Account) -> list[ActivityRecord]:
        evidence = []
        for raw in self._records.get(account.account_id, []):
            evidence.append(ActivityRecord.from_dict({"account_id": account.account_id, **raw}))
        return sorted(evidence, key=lambda r: r.timestamp, reverse=True)

    def _is_primary(self, record: ActivityRecord) -> bool:
        return record.source.lower() in self.primary_sources

    async def verify(self, account: Account) -> ActivityVerificationResult:
        evidence = self._evidence_for(account)
        if not evidence:
            return self.no_activity(account)

        primary = [r for r in evidence if self._is_primary(r)]
        if primary:
            newest = primary[0]
            confidence = ConfidenceLevel.HIGH
        else:
            newest = evidence[0]
            confidence = ConfidenceLevel.MEDIUM

        return ActivityVerificationResult(
            account_id=account.account_id,
            confidence=confidence,
            activity_found=True,
            last_confirmed_activity=newest.timestamp,
            verified_by=newest.source,
            summary=(
                f"{newest.source} recorded {newest.event_type or 'activity'} "
                f"at {newest.timestamp.isoformat()} ({len(evidence)} event(s) total)."
            ),
            evidence=tuple(evidence),
        )
