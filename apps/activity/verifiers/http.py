"""HTTP activity verifier backed by an external verification service."""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
from typing import Any

from apps.activity.verifiers.base import BaseActivityVerifier
from apps.investigation.dtos import Account, ActivityVerificationResult
from apps.investigation.exceptions import ActivityVerificationError
from apps.investigation.transport import request_json

logger = logging.getLogger(__name__)


class HttpActivityVerifier(BaseActivityVerifier):
    """
    POSTs the account to a verification endpoint and parses the result.

    The remote service owns the SIEM/directory fallback and the
    confidence label; this driver only moves data.
    """

    name = "http"
    description = "Remote activity verification service"

    def __init__(
        self,
        endpoint: str = "",
        headers: dict[str, str] | None = None,
        timeout: float = 30,
        **kwargs: Any,
    ):
        if not endpoint.startswith(("http://", "https://")):
            raise ValueError("HttpActivityVerifier requires an http(s) endpoint")
        self.endpoint = endpoint
        self.headers = headers or {}
        self.timeout = timeout

    async def verify(self, account: Account) -> ActivityVerificationResult:
        try:
            data = await asyncio.to_thread(
                request_json,
                self.endpoint,
                method="POST",
                payload=account.to_dict(),
                headers=self.headers,
                timeout=self.timeout,
            )
        except urllib.error.HTTPError as e:
            logger.error(f"Activity verification HTTP error {e.code} for {account.account_id}")
            raise ActivityVerificationError(
                account.account_id, f"HTTP error ({e.code})", retryable=e.code >= 500
            ) from e
        except (urllib.error.URLError, TimeoutError) as e:
            raise ActivityVerificationError(account.account_id, f"Source unreachable: {e}") from e
        except json.JSONDecodeError as e:
            raise ActivityVerificationError(
                account.account_id, "Malformed response (not JSON)", retryable=False
            ) from e

        try:
            if isinstance(data, dict):
                data.setdefault("account_id", account.account_id)
            return ActivityVerificationResult.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ActivityVerificationError(
                account.account_id, f"Malformed response: {e}", retryable=False
            ) from e
