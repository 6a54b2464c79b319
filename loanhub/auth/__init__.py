"""Actor identity for requests."""

from loanhub.auth.actor import SYSTEM_ACTOR, Actor, ActorRole
from loanhub.auth.dependencies import get_current_actor, require_admin, require_partner

__all__ = [
    "Actor",
    "ActorRole",
    "SYSTEM_ACTOR",
    "get_current_actor",
    "require_admin",
    "require_partner",
]
