from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import TimestampedUUIDModel

if TYPE_CHECKING:
    from .prompt import Prompt
    from .settings import UserSettings
    from .user import User


class Collection(TimestampedUUIDModel):
    """A folder of prompts. Collections nest through ``parent_id``."""

    __tablename__ = "collections"

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("collections.id", ondelete="CASCADE"), nullable=True, index=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    owner: Mapped["User"] = relationship()
    parent: Mapped["Collection | None"] = relationship(
        back_populates="children", remote_side="Collection.id"
    )
    children: Mapped[list["Collection"]] = relationship(
        back_populates="parent", order_by="Collection.title"
    )
    prompts: Mapped[list["Prompt"]] = relationship(
        secondary="prompt_collections", back_populates="collections"
    )
    hidden_by: Mapped[list["UserSettings"]] = relationship(
        secondary="settings_hidden_collections", back_populates="hidden_collections"
    )
