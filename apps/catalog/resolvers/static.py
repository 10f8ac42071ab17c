"""
Static application context resolver.

Catalog entries come from an in-memory mapping or a JSON fixture keyed by
application id. Missing fields fall back to the account's own values.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from apps.catalog.resolvers.base import BaseContextResolver, unknown_context
from apps.investigation.dtos import Account, AppContext

logger = logging.getLogger(__name__)


class StaticContextResolver(BaseContextResolver):
    """Fixture-backed resolver for local runs and tests."""

    name = "static"
    description = "Application catalog from a static mapping or JSON fixture"

    def __init__(
        self,
        catalog: dict[str, dict[str, Any]] | None = None,
        fixture_path: str | Path | None = None,
        **kwargs: Any,
    ):
        self._catalog: dict[str, dict[str, Any]] = {}
        if fixture_path:
            path = Path(fixture_path)
            with path.open(encoding="utf-8") as fh:
                data = json.load(fh)
            if not isinstance(data, dict):
                raise ValueError(f"Catalog fixture must be a JSON object: {path}")
            logger.info("Loaded %d catalog entries from %s", len(data), path)
            self._catalog.update(data)
        if catalog:
            self._catalog.update(catalog)

    async def resolve(self, account: Account) -> AppContext:
        entry = self._catalog.get(account.application_id)
        if entry is None:
            logger.info(
                f"{account.account_id}: application {account.application_id} not in catalog"
            )
            return unknown_context(account)

        return AppContext.from_dict(
            {
                "application_id": account.application_id,
                "application_name": account.application_name,
                "platform": account.platform,
                **entry,
            }
        )
