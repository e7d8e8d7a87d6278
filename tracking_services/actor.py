"""
Actor identity resolution.

The name recorded as ``completed_by`` comes from an external identity
collaborator that answers asynchronously.  It is resolved once before a
mutation is issued; failure, timeout or an empty answer yields a
placeholder name instead of blocking the operator.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from tracking_kernel.logging_config import get_logger

logger = get_logger("services.actor")

DEFAULT_ACTOR_NAME = "Unknown"
DEFAULT_TIMEOUT_SECONDS = 5.0


class ActorNameProvider(Protocol):
    """External collaborator that knows the current user's display name."""

    async def get_current_actor_name(self) -> str: ...


class StaticActorNameProvider:
    """Provider returning a fixed name (batch scripts, tests)."""

    def __init__(self, name: str):
        self._name = name

    async def get_current_actor_name(self) -> str:
        return self._name


async def resolve_actor_name(
    provider: ActorNameProvider | None,
    default: str = DEFAULT_ACTOR_NAME,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> str:
    """Await the provider's answer, falling back to ``default``."""
    if provider is None:
        return default
    try:
        name = await asyncio.wait_for(
            provider.get_current_actor_name(),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.warning(
            "actor_resolution_timeout",
            extra={"timeout_seconds": timeout_seconds, "fallback": default},
        )
        return default
    except Exception:
        logger.warning(
            "actor_resolution_failed",
            extra={"fallback": default},
            exc_info=True,
        )
        return default

    name = (name or "").strip()
    if not name:
        logger.warning("actor_resolution_empty", extra={"fallback": default})
        return default
    return name
