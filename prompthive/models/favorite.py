from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import TimestampedUUIDModel

if TYPE_CHECKING:
    from .prompt import Prompt
    from .user import User


class Favorite(TimestampedUUIDModel):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "prompt_id"),)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    prompt_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("prompts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    user: Mapped["User"] = relationship(back_populates="favorites")
    prompt: Mapped["Prompt"] = relationship(back_populates="favorites")
