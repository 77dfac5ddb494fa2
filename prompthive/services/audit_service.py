"""Audit trail for authentication and administration."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from sqlalchemy.orm import Session

from prompthive.models.audit_log import RESOURCE_AUTH, AuditLog
from prompthive.models.user import User

logger = logging.getLogger("prompthive.services.audit")


def log_auth_event(
    db: Session,
    *,
    user_id: Optional[uuid.UUID],
    action_type: str,
    success: bool,
    ip_address: Optional[str],
    user_agent: Optional[str],
    details: Optional[dict[str, Any]] = None,
) -> None:
    db.add(
        AuditLog(
            user_id=user_id,
            action_type=action_type,
            resource_type=RESOURCE_AUTH,
            details={"success": success, **(details or {})},
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
    db.commit()


def log_admin_event(
    db: Session,
    admin: User,
    action_type: str,
    resource_type: str,
    resource_id: Optional[uuid.UUID] = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    """Record a change made through the admin endpoints."""
    db.add(
        AuditLog(
            user_id=admin.id,
            action_type=action_type,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
        )
    )
    db.commit()
    logger.info("%s by %s on %s %s", action_type, admin.username, resource_type, resource_id or "")


def list_events(db: Session, user_id: Optional[uuid.UUID] = None, limit: int = 100) -> list[AuditLog]:
    query = db.query(AuditLog)
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    return query.order_by(AuditLog.created_at.desc()).limit(limit).all()
