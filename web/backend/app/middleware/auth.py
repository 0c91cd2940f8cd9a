"""Shared services and the admin-key dependency for the API.

Admin endpoints require ``X-Admin-Key: <key>`` matching the configured
``admin_api_key``. When no key is configured the admin API is disabled.
"""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Header, HTTPException, status

from contentguard.config import ModerationServices, build_services, configure_logging, load_config

# Shared services instance
_services: Optional[ModerationServices] = None


def get_services() -> ModerationServices:
    """Return the singleton ModerationServices instance."""
    global _services
    if _services is None:
        config = load_config()
        configure_logging(config.log_level)
        _services = build_services(config)
    return _services


def set_services(services: Optional[ModerationServices]) -> None:
    """Replace the shared services (tests, embedding applications)."""
    global _services
    _services = services


async def require_admin(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key"),
) -> str:
    """FastAPI dependency guarding the admin endpoints.

    Raises ``503`` if no admin key is configured and ``401`` if the header is
    missing or wrong.
    """
    expected = get_services().config.admin_api_key
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API disabled: no admin key configured",
        )
    if not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
        )
    return x_admin_key
