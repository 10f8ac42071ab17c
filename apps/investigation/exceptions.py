"""Failures raised by the external capabilities the pipeline depends on.

Business outcomes (reclassified vs. confirmed) are never exceptions; only
transport problems with a capability travel through this channel.
"""

from __future__ import annotations


class CapabilityError(Exception):
    """A capability could not produce a result for an account."""

    capability: str = "capability"

    def __init__(self, account_id: str, message: str, retryable: bool = True):
        self.account_id = account_id
        self.message = message
        self.retryable = retryable
        super().__init__(f"{self.capability} failed for {account_id}: {message}")


class ActivityVerificationError(CapabilityError):
    """Activity sources were unreachable or returned a malformed response."""

    capability = "activity_verification"


class ContextResolutionError(CapabilityError):
    """The application catalog lookup itself failed."""

    capability = "context_resolution"
