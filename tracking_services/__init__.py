"""
Tracking services -- operator-facing boundary over the tracking kernel.

Resolves the actor, calls kernel operations and returns result objects so
the UI layer never handles kernel exceptions.
"""

from tracking_services.actor import (
    DEFAULT_ACTOR_NAME,
    ActorNameProvider,
    StaticActorNameProvider,
    resolve_actor_name,
)
from tracking_services.batch_tracking_service import (
    BatchOperationResult,
    BatchOperationStatus,
    BatchTrackingService,
)

__all__ = [
    "ActorNameProvider",
    "BatchOperationResult",
    "BatchOperationStatus",
    "BatchTrackingService",
    "DEFAULT_ACTOR_NAME",
    "StaticActorNameProvider",
    "resolve_actor_name",
]
