from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Table, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampedUUIDModel, utcnow

if TYPE_CHECKING:
    from .collection import Collection
    from .user import User


BACKUP_FREQUENCIES = ("DAILY", "WEEKLY", "MONTHLY")
GLOBAL_CONFIGURATION_ID = "GLOBAL"


settings_hidden_users = Table(
    "settings_hidden_users",
    Base.metadata,
    Column("settings_id", Uuid, ForeignKey("user_settings.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

settings_hidden_collections = Table(
    "settings_hidden_collections",
    Base.metadata,
    Column("settings_id", Uuid, ForeignKey("user_settings.id", ondelete="CASCADE"), primary_key=True),
    Column("collection_id", Uuid, ForeignKey("collections.id", ondelete="CASCADE"), primary_key=True),
)


class UserSettings(TimestampedUUIDModel):
    __tablename__ = "user_settings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    auto_backup_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    backup_path: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    backup_frequency: Mapped[str] = mapped_column(String(10), default="DAILY", nullable=False)
    last_backup_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    show_prompter_tips: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    tag_colors_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    workflow_visible: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped["User"] = relationship(back_populates="settings", foreign_keys=[user_id])
    hidden_users: Mapped[list["User"]] = relationship(secondary=settings_hidden_users)
    hidden_collections: Mapped[list["Collection"]] = relationship(
        secondary=settings_hidden_collections, back_populates="hidden_by"
    )


class GlobalConfiguration(Base):
    """Singleton row of feature switches."""

    __tablename__ = "global_configuration"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default=GLOBAL_CONFIGURATION_ID)
    registration_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    private_prompts_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
