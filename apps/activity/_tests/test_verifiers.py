"""Tests for activity verifiers."""

import json
import os
import tempfile
import urllib.error
from unittest.mock import patch

from django.test import SimpleTestCase, override_settings

from apps.activity.verifiers import (
    HttpActivityVerifier,
    StaticActivityVerifier,
    get_configured_verifier,
    get_verifier,
    list_verifiers,
)
from apps.investigation._tests.fakes import make_account
from apps.investigation.dtos import ConfidenceLevel
from apps.investigation.exceptions import ActivityVerificationError

RECORDS = {
    "svc-siem": [
        {"source": "Splunk", "timestamp": "2026-09-01T10:00:00Z", "event_type": "login"},
        {"source": "OpenLDAP", "timestamp": "2026-10-10T10:00:00Z", "event_type": "LDAPBind"},
    ],
    "svc-ldap": [
        {"source": "OpenLDAP", "timestamp": "2026-08-01T10:00:00Z", "event_type": "LDAPBind"},
        {"source": "OpenLDAP", "timestamp": "2026-09-15T10:00:00Z", "event_type": "LDAPBind"},
    ],
}


class StaticActivityVerifierTests(SimpleTestCase):
    async def test_no_records_is_low_confidence_without_activity(self):
        result = await StaticActivityVerifier(records=RECORDS).verify(make_account("svc-none"))

        assert result.activity_found is False
        assert result.confidence == ConfidenceLevel.LOW
        assert result.last_confirmed_activity is None
        assert result.verified_by is None

    async def test_primary_source_gives_high_confidence(self):
        result = await StaticActivityVerifier(records=RECORDS).verify(make_account("svc-siem"))

        assert result.activity_found is True
        assert result.confidence == ConfidenceLevel.HIGH
        assert result.verified_by == "Splunk"
        assert result.last_confirmed_activity.month == 9
        assert len(result.evidence) == 2

    async def test_secondary_source_only_gives_medium_confidence(self):
        result = await StaticActivityVerifier(records=RECORDS).verify(make_account("svc-ldap"))

        assert result.confidence == ConfidenceLevel.MEDIUM
        assert result.verified_by == "OpenLDAP"
        assert result.last_confirmed_activity.day == 15
        assert result.evidence[0].timestamp > result.evidence[1].timestamp

    async def test_custom_primary_sources(self):
        verifier = StaticActivityVerifier(records=RECORDS, primary_sources=["OpenLDAP"])
        result = await verifier.verify(make_account("svc-ldap"))

        assert result.confidence == ConfidenceLevel.HIGH

    async def test_fixture_file(self):
        fh = tempfile.NamedTemporaryFile("w", suffix=".json", delete=False)
        with fh:
            json.dump(RECORDS, fh)
        self.addCleanup(os.remove, fh.name)

        result = await StaticActivityVerifier(fixture_path=fh.name).verify(make_account("svc-siem"))

        assert result.verified_by == "Splunk"


class HttpActivityVerifierTests(SimpleTestCase):
    def _verifier(self):
        return HttpActivityVerifier(endpoint="https://verify.example.com/api/verify", timeout=5)

    def test_requires_http_endpoint(self):
        with self.assertRaises(ValueError):
            HttpActivityVerifier(endpoint="verify.example.com")

    @patch("apps.activity.verifiers.http.request_json")
    async def test_parses_response(self, mock_request):
        mock_request.return_value = {
            "confidence": "High",
            "activity_found": True,
            "last_confirmed_activity": "2026-10-12T08:30:00Z",
            "verified_by": "Splunk",
            "summary": "login",
            "evidence": [{"source": "Splunk", "timestamp": "2026-10-12T08:30:00Z", "event_type": "login"}],
        }
        account = make_account("svc-http")

        result = await self._verifier().verify(account)

        assert result.account_id == "svc-http"
        assert result.confidence == ConfidenceLevel.HIGH
        assert result.evidence[0].account_id == "svc-http"
        assert mock_request.call_args.kwargs["method"] == "POST"
        assert mock_request.call_args.kwargs["payload"]["account_id"] == "svc-http"

    @patch("apps.activity.verifiers.http.request_json")
    async def test_http_error_raises(self, mock_request):
        mock_request.side_effect = urllib.error.HTTPError(
            "https://verify.example.com/api/verify", 503, "Unavailable", None, None
        )

        with self.assertRaises(ActivityVerificationError) as cm:
            await self._verifier().verify(make_account())
        assert cm.exception.retryable is True

    @patch("apps.activity.verifiers.http.request_json")
    async def test_unreachable_raises(self, mock_request):
        mock_request.side_effect = urllib.error.URLError("connection refused")

        with self.assertRaises(ActivityVerificationError):
            await self._verifier().verify(make_account())

    @patch("apps.activity.verifiers.http.request_json")
    async def test_malformed_response_raises(self, mock_request):
        mock_request.return_value = {"activity_found": True}

        with self.assertRaises(ActivityVerificationError) as cm:
            await self._verifier().verify(make_account())
        assert cm.exception.retryable is False


class RegistryTests(SimpleTestCase):
    def test_list_verifiers(self):
        assert set(list_verifiers()) == {"static", "http"}

    def test_unknown_verifier(self):
        with self.assertRaises(KeyError):
            get_verifier("splunk-direct")

    @override_settings(
        ACTIVITY_VERIFIER={
            "driver": "http",
            "config": {"endpoint": "https://verify.example.com", "fixture_path": "", "timeout": 7},
        }
    )
    def test_configured_verifier(self):
        verifier = get_configured_verifier()

        assert isinstance(verifier, HttpActivityVerifier)
        assert verifier.timeout == 7
