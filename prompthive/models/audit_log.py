import uuid

from sqlalchemy import JSON, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import TimestampedUUIDModel

RESOURCE_AUTH = "auth"
RESOURCE_USER = "user"
RESOURCE_SETTINGS = "settings"


class AuditLog(TimestampedUUIDModel):
    """Sign-ins and administrative changes, kept after the acting user is gone."""

    __tablename__ = "audit_logs"
    __table_args__ = (Index("ix_audit_logs_user_action", "user_id", "action_type"),)

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False, default=RESOURCE_AUTH)
    # Not a foreign key: the target may be deleted by the very action logged
    resource_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    details: Mapped[dict] = mapped_column(JSON, default=dict)
    ip_address: Mapped[str | None] = mapped_column(String(50), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
