"""
FastAPI dependencies for the acting user.

The auth gateway in front of the service authenticates the caller and
forwards identity headers:
    X-Actor-Id    opaque user id (required)
    X-Actor-Role  "admin" or "partner" (required)
    X-Actor-Name  display name for timelines (optional)
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from loanhub.auth.actor import Actor, ActorRole


async def get_current_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
    x_actor_name: Optional[str] = Header(None),
) -> Actor:
    """
    Get the acting user from gateway headers.

    Raises 401 if identity headers are missing or the role is unknown.
    """
    if not x_actor_id or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        role = ActorRole(x_actor_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown actor role",
        )

    if role == ActorRole.SYSTEM:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="System role cannot be used over HTTP",
        )

    return Actor(id=x_actor_id, role=role, name=x_actor_name)


async def require_admin(
    current_actor: Actor = Depends(get_current_actor),
) -> Actor:
    """
    Require the current actor to be an admin.

    Raises 403 otherwise.
    """
    if not current_actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_actor


async def require_partner(
    current_actor: Actor = Depends(get_current_actor),
) -> Actor:
    """
    Require the current actor to be a partner.

    Admins use the admin routes; partner routes are scoped to the
    partner's own leads.
    """
    if not current_actor.is_partner:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Partner access required",
        )
    return current_actor
