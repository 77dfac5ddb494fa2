from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampedUUIDModel

if TYPE_CHECKING:
    from .collection import Collection
    from .favorite import Favorite
    from .tag import Tag
    from .user import User
    from .workflow import WorkflowStep


ATTACHMENT_ROLE = "ATTACHMENT"
RESULT_ROLE = "RESULT"


prompt_tags = Table(
    "prompt_tags",
    Base.metadata,
    Column("prompt_id", Uuid, ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

prompt_collections = Table(
    "prompt_collections",
    Base.metadata,
    Column("prompt_id", Uuid, ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True),
    Column("collection_id", Uuid, ForeignKey("collections.id", ondelete="CASCADE"), primary_key=True),
)

# A link is stored once (prompt -> related) and read from both sides
prompt_relations = Table(
    "prompt_relations",
    Base.metadata,
    Column("prompt_id", Uuid, ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True),
    Column("related_id", Uuid, ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True),
)


class Prompt(TimestampedUUIDModel):
    __tablename__ = "prompts"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    technical_id: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    resource: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    copy_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    current_version_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("prompt_versions.id", ondelete="SET NULL", use_alter=True, name="fk_prompts_current_version"),
        nullable=True,
    )

    created_by: Mapped["User"] = relationship()
    versions: Mapped[list["PromptVersion"]] = relationship(
        back_populates="prompt",
        cascade="all, delete-orphan",
        foreign_keys="PromptVersion.prompt_id",
        order_by="PromptVersion.version_number.desc()",
    )
    tags: Mapped[list["Tag"]] = relationship(secondary=prompt_tags, back_populates="prompts")
    collections: Mapped[list["Collection"]] = relationship(
        secondary=prompt_collections, back_populates="prompts"
    )
    related_prompts: Mapped[list["Prompt"]] = relationship(
        secondary=prompt_relations,
        primaryjoin=lambda: Prompt.id == prompt_relations.c.prompt_id,
        secondaryjoin=lambda: Prompt.id == prompt_relations.c.related_id,
        back_populates="related_to_prompts",
    )
    related_to_prompts: Mapped[list["Prompt"]] = relationship(
        secondary=prompt_relations,
        primaryjoin=lambda: Prompt.id == prompt_relations.c.related_id,
        secondaryjoin=lambda: Prompt.id == prompt_relations.c.prompt_id,
        back_populates="related_prompts",
    )
    favorites: Mapped[list["Favorite"]] = relationship(
        back_populates="prompt", cascade="all, delete-orphan"
    )
    workflow_steps: Mapped[list["WorkflowStep"]] = relationship(
        back_populates="prompt", cascade="all, delete-orphan"
    )

    @property
    def latest_version(self) -> "PromptVersion | None":
        return self.versions[0] if self.versions else None

    @property
    def current_version(self) -> "PromptVersion | None":
        for version in self.versions:
            if version.id == self.current_version_id:
                return version
        return self.latest_version


class PromptVersion(TimestampedUUIDModel):
    """One immutable snapshot of a prompt's content."""

    __tablename__ = "prompt_versions"
    __table_args__ = (UniqueConstraint("prompt_id", "version_number"),)

    prompt_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("prompts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    short_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    usage_example: Mapped[str | None] = mapped_column(Text, nullable=True)
    variable_definitions: Mapped[str | None] = mapped_column(Text, nullable=True)
    changelog: Mapped[str | None] = mapped_column(Text, nullable=True)
    result_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    result_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    prompt: Mapped["Prompt"] = relationship(back_populates="versions", foreign_keys=[prompt_id])
    created_by: Mapped["User | None"] = relationship()
    attachments: Mapped[list["Attachment"]] = relationship(
        back_populates="version", cascade="all, delete-orphan", order_by="Attachment.created_at"
    )


class Attachment(TimestampedUUIDModel):
    __tablename__ = "attachments"

    version_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("prompt_versions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)
    original_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ATTACHMENT_ROLE)

    version: Mapped["PromptVersion"] = relationship(back_populates="attachments")
