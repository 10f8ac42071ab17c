"""
Base interface for application context resolvers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from apps.investigation.dtos import Account, AppContext, AppStatus


def unknown_context(account: Account, notes: str | None = None) -> AppContext:
    """Context for an application the catalog does not know about."""
    return AppContext(
        application_id=account.application_id,
        application_name=account.application_name,
        platform=account.platform,
        status=AppStatus.UNKNOWN,
        notes=notes or f"Application {account.application_id} not found in catalog.",
    )


class BaseContextResolver(ABC):
    """Abstract base class for application context resolvers."""

    name: str = "base"
    description: str = "Base application context resolver"

    @abstractmethod
    async def resolve(self, account: Account) -> AppContext:
        """
        Resolve the owning application's context.

        Returns an UNKNOWN-status context for unrecognized applications.

        Raises:
            ContextResolutionError: If the lookup transport itself failed.
        """
        ...
