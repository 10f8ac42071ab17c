"""HTTP application context resolver backed by a remote app catalog / CMDB."""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
from typing import Any

from apps.catalog.resolvers.base import BaseContextResolver, unknown_context
from apps.investigation.dtos import Account, AppContext
from apps.investigation.exceptions import ContextResolutionError
from apps.investigation.transport import request_json

logger = logging.getLogger(__name__)


class HttpContextResolver(BaseContextResolver):
    """GETs <endpoint>/<application_id>; a 404 means the catalog does not know the app."""

    name = "http"
    description = "Remote application catalog"

    def __init__(
        self,
        endpoint: str = "",
        headers: dict[str, str] | None = None,
        timeout: float = 30,
        **kwargs: Any,
    ):
        if not endpoint.startswith(("http://", "https://")):
            raise ValueError("HttpContextResolver requires an http(s) endpoint")
        self.endpoint = endpoint.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout

    def _url_for(self, account: Account) -> str:
        return f"{self.endpoint}/{urllib.parse.quote(account.application_id, safe='')}"

    async def resolve(self, account: Account) -> AppContext:
        try:
            data = await asyncio.to_thread(
                request_json,
                self._url_for(account),
                headers=self.headers,
                timeout=self.timeout,
            )
        except urllib.error.HTTPError as e:
            if e.code == 404:
                return unknown_context(account)
            logger.error(f"App catalog HTTP error {e.code} for {account.application_id}")
            raise ContextResolutionError(
                account.account_id, f"HTTP error ({e.code})", retryable=e.code >= 500
            ) from e
        except (urllib.error.URLError, TimeoutError) as e:
            raise ContextResolutionError(account.account_id, f"Catalog unreachable: {e}") from e
        except json.JSONDecodeError as e:
            raise ContextResolutionError(
                account.account_id, "Malformed response (not JSON)", retryable=False
            ) from e

        if not isinstance(data, dict):
            raise ContextResolutionError(
                account.account_id, "Malformed response (expected object)", retryable=False
            )
        try:
            return AppContext.from_dict(
                {
                    "application_id": account.application_id,
                    "application_name": account.application_name,
                    "platform": account.platform,
                    **data,
                }
            )
        except ValueError as e:
            raise ContextResolutionError(
                account.account_id, f"Malformed response: {e}", retryable=False
            ) from e
