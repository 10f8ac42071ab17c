"""
Data Transfer Objects for the investigation pipeline.

These are the contracts between the engine, the two capabilities
(activity verification, application context) and whatever consumes the
batch result. Case files are immutable once produced.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, time
from datetime import timezone as dt_tz
from enum import Enum
from types import MappingProxyType
from typing import Any

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime


class Classification(Enum):
    """Upstream IGA classification. Only STALE/ORPHANED enter the pipeline."""

    ACTIVE = "Active"
    STALE = "Stale"
    ORPHANED = "Orphaned"


class ConfidenceLevel(Enum):
    """
    Data-quality label on activity evidence.

    HIGH: a primary security-event source (SIEM) corroborated activity.
    MEDIUM: only a secondary directory source found activity.
    LOW: no source could verify anything.

    Never used to decide classification or routing.
    """

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AppStatus(Enum):
    """Lifecycle status of the owning application."""

    ACTIVE = "Active"
    DECOMMISSIONED = "Decommissioned"
    DEPRECATED = "Deprecated"
    UNKNOWN = "Unknown"


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 timestamp (or date) into an aware datetime.

    Naive values are treated as UTC. Returns None for None/empty input and
    raises ValueError for anything unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = parse_datetime(str(value))
        if parsed is None:
            day = parse_date(str(value))
            if day is None:
                raise ValueError(f"Invalid timestamp: {value!r}")
            parsed = datetime.combine(day, time.min)
    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_tz.utc)
    return parsed


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _str_mapping(value: Any) -> dict[str, str]:
    return {str(k): str(v) for k, v in (value or {}).items()}


def _frozen_mapping(value: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class Account:
    """
    A pre-classified NHI account as issued by the upstream IGA engine.

    last_known_activity_per_iga is what IGA recorded and may be wrong; the
    pipeline verifies it against real activity sources.
    """

    account_id: str
    account_name: str
    application_id: str
    platform: str
    classification: Classification
    inactivity_threshold_days: int = 0
    application_name: str = ""
    owner_id: str | None = None
    owner_display_name: str | None = None
    owner_email: str | None = None
    last_known_activity_per_iga: datetime | None = None
    created_date: datetime | None = None
    attributes: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        for name in ("last_known_activity_per_iga", "created_date"):
            object.__setattr__(self, name, parse_timestamp(getattr(self, name)))
        object.__setattr__(self, "attributes", _frozen_mapping(self.attributes))

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "account_name": self.account_name,
            "application_id": self.application_id,
            "application_name": self.application_name,
            "platform": self.platform,
            "classification": self.classification.value,
            "owner_id": self.owner_id,
            "owner_display_name": self.owner_display_name,
            "owner_email": self.owner_email,
            "last_known_activity_per_iga": _iso(self.last_known_activity_per_iga),
            "inactivity_threshold_days": self.inactivity_threshold_days,
            "created_date": _iso(self.created_date),
            "attributes": dict(self.attributes),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Account:
        return cls(
            account_id=str(data["account_id"]),
            account_name=str(data.get("account_name", "")),
            application_id=str(data["application_id"]),
            application_name=str(data.get("application_name") or ""),
            platform=str(data.get("platform", "")),
            classification=Classification(data["classification"]),
            owner_id=data.get("owner_id"),
            owner_display_name=data.get("owner_display_name"),
            owner_email=data.get("owner_email"),
            last_known_activity_per_iga=parse_timestamp(data.get("last_known_activity_per_iga")),
            inactivity_threshold_days=int(data.get("inactivity_threshold_days", 0)),
            created_date=parse_timestamp(data.get("created_date")),
            attributes=_str_mapping(data.get("attributes")),
        )


@dataclass(frozen=True)
class ActivityRecord:
    """One observed event. Evidence only."""

    account_id: str
    source: str
    timestamp: datetime
    event_type: str
    target_resource: str | None = None
    source_ip: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        timestamp = parse_timestamp(self.timestamp)
        if timestamp is None:
            raise ValueError("ActivityRecord.timestamp is required")
        object.__setattr__(self, "timestamp", timestamp)
        object.__setattr__(self, "metadata", _frozen_mapping(self.metadata))

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "source": self.source,
            "timestamp": _iso(self.timestamp),
            "event_type": self.event_type,
            "target_resource": self.target_resource,
            "source_ip": self.source_ip,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActivityRecord:
        timestamp = parse_timestamp(data["timestamp"])
        if timestamp is None:
            raise ValueError("ActivityRecord.timestamp is required")
        return cls(
            account_id=str(data["account_id"]),
            source=str(data["source"]),
            timestamp=timestamp,
            event_type=str(data.get("event_type", "")),
            target_resource=data.get("target_resource"),
            source_ip=data.get("source_ip"),
            metadata=_str_mapping(data.get("metadata")),
        )


@dataclass(frozen=True)
class ActivityVerificationResult:
    """Output of the activity verification capability."""

    account_id: str
    confidence: ConfidenceLevel
    activity_found: bool
    summary: str
    last_confirmed_activity: datetime | None = None
    verified_by: str | None = None
    evidence: tuple[ActivityRecord, ...] = ()

    def __post_init__(self):
        # Naive timestamps from any verifier are read as UTC.
        object.__setattr__(
            self, "last_confirmed_activity", parse_timestamp(self.last_confirmed_activity)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "confidence": self.confidence.value,
            "activity_found": self.activity_found,
            "last_confirmed_activity": _iso(self.last_confirmed_activity),
            "verified_by": self.verified_by,
            "summary": self.summary,
            "evidence": [record.to_dict() for record in self.evidence],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActivityVerificationResult:
        account_id = str(data["account_id"])
        return cls(
            account_id=account_id,
            confidence=ConfidenceLevel(data["confidence"]),
            activity_found=bool(data["activity_found"]),
            last_confirmed_activity=parse_timestamp(data.get("last_confirmed_activity")),
            verified_by=data.get("verified_by"),
            summary=str(data.get("summary", "")),
            evidence=tuple(
                ActivityRecord.from_dict({"account_id": account_id, **r})
                for r in data.get("evidence") or []
            ),
        )


@dataclass(frozen=True)
class AppContext:
    """Owning application's lifecycle status and ownership, from the app catalog."""

    application_id: str
    application_name: str
    platform: str
    status: AppStatus
    decommission_date: str | None = None
    app_owner_id: str | None = None
    app_owner_name: str | None = None
    app_owner_email: str | None = None
    team_name: str | None = None
    team_distribution_list: str | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "application_id": self.application_id,
            "application_name": self.application_name,
            "platform": self.platform,
            "status": self.status.value,
            "decommission_date": self.decommission_date,
            "app_owner_id": self.app_owner_id,
            "app_owner_name": self.app_owner_name,
            "app_owner_email": self.app_owner_email,
            "team_name": self.team_name,
            "team_distribution_list": self.team_distribution_list,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppContext:
        return cls(
            application_id=str(data["application_id"]),
            application_name=str(data.get("application_name", "")),
            platform=str(data.get("platform", "")),
            status=AppStatus(data.get("status", AppStatus.UNKNOWN.value)),
            decommission_date=data.get("decommission_date"),
            app_owner_id=data.get("app_owner_id"),
            app_owner_name=data.get("app_owner_name"),
            app_owner_email=data.get("app_owner_email"),
            team_name=data.get("team_name"),
            team_distribution_list=data.get("team_distribution_list"),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class DownstreamRouting:
    """Which downstream agents act on the case file (B: risk, C: outreach)."""

    send_to_agent_b: bool
    send_to_agent_c: bool
    outreach_goal: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "send_to_agent_b": self.send_to_agent_b,
            "send_to_agent_c": self.send_to_agent_c,
            "outreach_goal": self.outreach_goal,
        }


@dataclass(frozen=True)
class InvestigationResult:
    """
    The case file for a single account.

    Created exactly once per account per run by the engine and only read
    afterwards by the risk and outreach consumers.
    """

    account_id: str
    request_id: str
    account: Account
    final_classification: Classification
    was_reclassified: bool
    activity_verification: ActivityVerificationResult
    application_context: AppContext
    routing: DownstreamRouting
    investigated_at: datetime
    reclassification_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "request_id": self.request_id,
            "account": self.account.to_dict(),
            "final_classification": self.final_classification.value,
            "was_reclassified": self.was_reclassified,
            "reclassification_reason": self.reclassification_reason,
            "activity_verification": self.activity_verification.to_dict(),
            "application_context": self.application_context.to_dict(),
            "routing": self.routing.to_dict(),
            "investigated_at": _iso(self.investigated_at),
        }


@dataclass(frozen=True)
class InvestigationRequest:
    """A batch of accounts selected for investigation."""

    accounts: tuple[Account, ...]
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    requested_by: str | None = None
    requested_at: datetime = field(default_factory=timezone.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "accounts": [account.to_dict() for account in self.accounts],
            "requested_by": self.requested_by,
            "requested_at": _iso(self.requested_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | list[Any]) -> InvestigationRequest:
        """Build a request from a dict, or from a bare list of accounts."""
        if isinstance(data, list):
            data = {"accounts": data}
        accounts = data.get("accounts")
        if not isinstance(accounts, list):
            raise ValueError("'accounts' must be a list")

        kwargs: dict[str, Any] = {
            "accounts": tuple(Account.from_dict(a) for a in accounts),
            "requested_by": data.get("requested_by"),
        }
        if data.get("request_id"):
            kwargs["request_id"] = str(data["request_id"])
        requested_at = parse_timestamp(data.get("requested_at"))
        if requested_at is not None:
            kwargs["requested_at"] = requested_at
        return cls(**kwargs)


@dataclass(frozen=True)
class InvestigationFailure:
    """An account whose investigation did not produce a case file."""

    account_id: str
    request_id: str
    error_type: str
    message: str
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "request_id": self.request_id,
            "error_type": self.error_type,
            "message": self.message,
            "cancelled": self.cancelled,
        }


@dataclass
class BatchResult:
    """
    Outcome of a batch run.

    Counts only include successful investigations; failed or cancelled
    accounts are listed individually in failures.
    """

    request_id: str
    results: list[InvestigationResult] = field(default_factory=list)
    failures: list[InvestigationFailure] = field(default_factory=list)
    reclassified_count: int = 0
    stale_count: int = 0
    orphaned_count: int = 0
    duration_ms: float = 0.0

    @property
    def has_failures(self) -> bool:
        return len(self.failures) > 0

    @property
    def total(self) -> int:
        return len(self.results) + len(self.failures)

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "results": [r.to_dict() for r in self.results],
            "failures": [f.to_dict() for f in self.failures],
            "reclassified_count": self.reclassified_count,
            "stale_count": self.stale_count,
            "orphaned_count": self.orphaned_count,
            "duration_ms": self.duration_ms,
        }
