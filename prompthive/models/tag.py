from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import TimestampedUUIDModel

if TYPE_CHECKING:
    from .prompt import Prompt


class Tag(TimestampedUUIDModel):
    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    prompts: Mapped[list["Prompt"]] = relationship(secondary="prompt_tags", back_populates="tags")
