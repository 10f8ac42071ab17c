"""
Activity verifier registry.

Verifiers report whether an account has recent activity and how much the
evidence can be trusted.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings

from apps.activity.verifiers.base import BaseActivityVerifier
from apps.activity.verifiers.http import HttpActivityVerifier
from apps.activity.verifiers.static import StaticActivityVerifier

# Registry of available verifiers
VERIFIERS: dict[str, type[BaseActivityVerifier]] = {
    "static": StaticActivityVerifier,
    "http": HttpActivityVerifier,
}


def get_verifier(name: str = "static", **kwargs: Any) -> BaseActivityVerifier:
    """
    Get a verifier instance by name.

    Args:
        name: Verifier name (e.g., 'static', 'http').
        **kwargs: Verifier-specific configuration.

    Raises:
        KeyError: If verifier name is not registered.
    """
    if name not in VERIFIERS:
        raise KeyError(f"Unknown verifier: {name}. Available: {list(VERIFIERS.keys())}")
    return VERIFIERS[name](**kwargs)


def get_configured_verifier() -> BaseActivityVerifier:
    """Build the verifier described by settings.ACTIVITY_VERIFIER."""
    conf = getattr(settings, "ACTIVITY_VERIFIER", {}) or {}
    config = {k: v for k, v in (conf.get("config") or {}).items() if v not in ("", None)}
    return get_verifier(conf.get("driver", "static"), **config)


def list_verifiers() -> list[str]:
    """List all registered verifier names."""
    return list(VERIFIERS.keys())


__all__ = [
    "BaseActivityVerifier",
    "HttpActivityVerifier",
    "StaticActivityVerifier",
    "VERIFIERS",
    "get_configured_verifier",
    "get_verifier",
    "list_verifiers",
]
