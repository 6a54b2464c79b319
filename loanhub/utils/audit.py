"""
Audit logging utilities.

Every state-changing lead or commission operation leaves one entry.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from loanhub.auth.actor import Actor
from loanhub.models.audit import AuditAction, AuditLog


async def log_action(
    db: AsyncSession,
    actor: Actor,
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
    extra: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Log an auditable action.

    Args:
        db: Database session
        actor: Who performed the action
        action: Type of action being performed
        target_type: Type of entity affected (e.g., "lead", "commission")
        target_id: ID of the affected entity
        before: Relevant fields before the change
        after: Relevant fields after the change
        extra: Additional context about the action
        ip_address: Client IP address

    Returns:
        Created AuditLog entry
    """
    metadata: dict[str, Any] = {}
    if before is not None:
        metadata["before"] = before
    if after is not None:
        metadata["after"] = after
    if extra:
        metadata.update(extra)

    log_entry = AuditLog(
        actor_id=actor.id,
        actor_role=actor.role.value,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=metadata or None,
        ip_address=ip_address,
    )
    db.add(log_entry)
    # Note: commit should happen in the calling context
    return log_entry


def get_client_ip(request) -> Optional[str]:
    """
    Extract client IP from request.

    Handles X-Forwarded-For header for reverse proxy setups.
    """
    # First IP in X-Forwarded-For is the client
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    if hasattr(request, "client") and request.client:
        return request.client.host

    return None
