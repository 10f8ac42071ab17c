"""
Monitoring signals for account investigations.

Emits structured signals at every investigation and batch boundary:
- investigation.started
- investigation.reclassified
- investigation.confirmed
- investigation.failed (with cancelled flag)
- batch.started
- batch.completed (with outcome counts)

Minimum tags/fields on every signal:
- request_id
- account_id (empty for batch signals)
- classification (upstream value)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings

logger = logging.getLogger("apps.investigation.signals")


@dataclass
class SignalTags:
    """Required tags for all investigation signals."""

    request_id: str
    account_id: str = ""
    classification: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        base = {
            "request_id": self.request_id,
            "account_id": self.account_id,
            "classification": self.classification,
        }
        base.update(self.extra)
        return base


class MonitoringBackend:
    """
    Abstract monitoring backend.

    Override emit() to send signals to your preferred monitoring system.
    """

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Emit a monitoring signal."""
        raise NotImplementedError


class LoggingBackend(MonitoringBackend):
    """Default backend: structured logging."""

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        data = {
            "signal": signal_name,
            "value": value,
            **tags.to_dict(),
            **(extra or {}),
        }
        logger.info(f"[SIGNAL] {signal_name}", extra={"signal_data": data})


class NullBackend(MonitoringBackend):
    """Discards every signal."""

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        return None


def get_monitoring_backend() -> MonitoringBackend:
    """Get configured monitoring backend."""
    backend_name = getattr(settings, "INVESTIGATION_SIGNALS_BACKEND", "logging")

    if backend_name == "null":
        return NullBackend()

    return LoggingBackend()


# Global backend instance (lazy initialized)
_backend: MonitoringBackend | None = None


def _get_backend() -> MonitoringBackend:
    global _backend
    if _backend is None:
        _backend = get_monitoring_backend()
    return _backend


def emit_investigation_started(tags: SignalTags) -> None:
    _get_backend().emit("investigation.started", tags)


def emit_investigation_reclassified(
    tags: SignalTags,
    verified_by: str | None,
    days_since: float,
) -> None:
    """Emit signal when an account is overridden to Active."""
    _get_backend().emit(
        "investigation.reclassified",
        tags,
        value=days_since,
        extra={"verified_by": verified_by},
    )


def emit_investigation_confirmed(tags: SignalTags, confidence: str, app_status: str) -> None:
    """Emit signal when the upstream classification is confirmed."""
    _get_backend().emit(
        "investigation.confirmed",
        tags,
        extra={"confidence": confidence, "app_status": app_status},
    )


def emit_investigation_failed(
    tags: SignalTags,
    error_type: str,
    error_message: str,
    cancelled: bool,
) -> None:
    """Emit signal when an investigation ends without a case file."""
    _get_backend().emit(
        "investigation.failed",
        tags,
        extra={
            "error_type": error_type,
            "error_message": error_message,
            "cancelled": cancelled,
        },
    )


def emit_batch_started(tags: SignalTags, account_count: int) -> None:
    _get_backend().emit("batch.started", tags, value=account_count)


def emit_batch_completed(
    tags: SignalTags,
    duration_ms: float,
    reclassified: int,
    stale: int,
    orphaned: int,
    failed: int,
) -> None:
    """Emit signal when every investigation in a batch has finished."""
    _get_backend().emit(
        "batch.completed",
        tags,
        value=duration_ms,
        extra={
            "reclassified": reclassified,
            "stale": stale,
            "orphaned": orphaned,
            "failed": failed,
        },
    )
