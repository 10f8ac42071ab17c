"""
Base interface for activity verifiers.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from apps.investigation.dtos import Account, ActivityVerificationResult, ConfidenceLevel

logger = logging.getLogger(__name__)


class BaseActivityVerifier(ABC):
    """
    Abstract base class for activity verifiers.

    A verifier checks real activity sources for an account and reports
    what it found together with a confidence label. "No activity" is a
    normal result, not an error; only transport failures raise
    ActivityVerificationError.
    """

    name: str = "base"
    description: str = "Base activity verifier"

    @abstractmethod
    async def verify(self, account: Account) -> ActivityVerificationResult:
        """
        Verify recent activity for an account.

        Args:
            account: The account under investigation.

        Returns:
            The verification result, with evidence in source order.

        Raises:
            ActivityVerificationError: If a source could not be queried.
        """
        ...

    def no_activity(self, account: Account, summary: str = "") -> ActivityVerificationResult:
        """Build the LOW-confidence result for an account with no activity."""
        return ActivityVerificationResult(
            account_id=account.account_id,
            confidence=ConfidenceLevel.LOW,
            activity_found=False,
            summary=summary or f"No activity found for {account.account_id} in any source.",
        )
