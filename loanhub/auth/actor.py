"""
Acting user for a request.

Identity is established by the upstream auth gateway; the service only
receives the resulting actor id, role and display name.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ActorRole(str, Enum):
    """Roles allowed to act on leads."""
    ADMIN = "admin"
    PARTNER = "partner"
    SYSTEM = "system"


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole
    name: Optional[str] = None

    @property
    def label(self) -> str:
        """Name written to timeline entries."""
        return self.name or self.id

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @property
    def is_partner(self) -> bool:
        return self.role == ActorRole.PARTNER


SYSTEM_ACTOR = Actor(id="system", role=ActorRole.SYSTEM, name="System")
