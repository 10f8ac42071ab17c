"""
Application context resolver registry.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings

from apps.catalog.resolvers.base import BaseContextResolver, unknown_context
from apps.catalog.resolvers.http import HttpContextResolver
from apps.catalog.resolvers.static import StaticContextResolver

RESOLVERS: dict[str, type[BaseContextResolver]] = {
    "static": StaticContextResolver,
    "http": HttpContextResolver,
}


def get_resolver(name: str = "static", **kwargs: Any) -> BaseContextResolver:
    """
    Get a resolver instance by name.

    Raises:
        KeyError: If resolver name is not registered.
    """
    if name not in RESOLVERS:
        raise KeyError(f"Unknown resolver: {name}. Available: {list(RESOLVERS.keys())}")
    return RESOLVERS[name](**kwargs)


def get_configured_resolver() -> BaseContextResolver:
    """Build the resolver described by settings.APP_CONTEXT_RESOLVER."""
    conf = getattr(settings, "APP_CONTEXT_RESOLVER", {}) or {}
    config = {k: v for k, v in (conf.get("config") or {}).items() if v not in ("", None)}
    return get_resolver(conf.get("driver", "static"), **config)


def list_resolvers() -> list[str]:
    return list(RESOLVERS.keys())


__all__ = [
    "BaseContextResolver",
    "HttpContextResolver",
    "RESOLVERS",
    "StaticContextResolver",
    "get_configured_resolver",
    "get_resolver",
    "list_resolvers",
    "unknown_context",
]
