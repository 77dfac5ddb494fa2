"""Initial schema.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list:
    return [
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("username", sa.String(length=50), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="USER"),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        sa.Column("language", sa.String(length=5), nullable=False, server_default="en"),
        sa.Column("reset_token", sa.String(length=64), nullable=True, unique=True),
        sa.Column("reset_token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "collections",
        *_base_columns(),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "parent_id",
            sa.Uuid(),
            sa.ForeignKey("collections.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "owner_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    op.create_index("ix_collections_parent_id", "collections", ["parent_id"])
    op.create_index("ix_collections_owner_id", "collections", ["owner_id"])

    op.create_table(
        "prompts",
        *_base_columns(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("technical_id", sa.String(length=20), nullable=True, unique=True),
        sa.Column("resource", sa.String(length=1000), nullable=True),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("copy_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_by_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("current_version_id", sa.Uuid(), nullable=True),
    )
    op.create_index("ix_prompts_created_by_id", "prompts", ["created_by_id"])

    op.create_table(
        "prompt_versions",
        *_base_columns(),
        sa.Column(
            "prompt_id",
            sa.Uuid(),
            sa.ForeignKey("prompts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("short_content", sa.Text(), nullable=True),
        sa.Column("usage_example", sa.Text(), nullable=True),
        sa.Column("variable_definitions", sa.Text(), nullable=True),
        sa.Column("changelog", sa.Text(), nullable=True),
        sa.Column("result_text", sa.Text(), nullable=True),
        sa.Column("result_image", sa.String(length=500), nullable=True),
        sa.Column(
            "created_by_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.UniqueConstraint("prompt_id", "version_number"),
    )
    op.create_index("ix_prompt_versions_prompt_id", "prompt_versions", ["prompt_id"])

    # prompts <-> prompt_versions reference each other
    op.create_foreign_key(
        "fk_prompts_current_version",
        "prompts",
        "prompt_versions",
        ["current_version_id"],
        ["id"],
        ondelete="SET NULL",
    )

    op.create_table(
        "attachments",
        *_base_columns(),
        sa.Column(
            "version_id",
            sa.Uuid(),
            sa.ForeignKey("prompt_versions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("file_path", sa.String(length=500), nullable=False),
        sa.Column("file_type", sa.String(length=100), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="ATTACHMENT"),
    )
    op.create_index("ix_attachments_version_id", "attachments", ["version_id"])

    op.create_table(
        "tags",
        *_base_columns(),
        sa.Column("name", sa.String(length=50), nullable=False, unique=True),
        sa.Column("color", sa.String(length=20), nullable=True),
    )

    op.create_table(
        "prompt_tags",
        sa.Column("prompt_id", sa.Uuid(), sa.ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("tag_id", sa.Uuid(), sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "prompt_collections",
        sa.Column("prompt_id", sa.Uuid(), sa.ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "collection_id", sa.Uuid(), sa.ForeignKey("collections.id", ondelete="CASCADE"), primary_key=True
        ),
    )
    op.create_table(
        "prompt_relations",
        sa.Column("prompt_id", sa.Uuid(), sa.ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("related_id", sa.Uuid(), sa.ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "favorites",
        *_base_columns(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("prompt_id", sa.Uuid(), sa.ForeignKey("prompts.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("user_id", "prompt_id"),
    )
    op.create_index("ix_favorites_user_id", "favorites", ["user_id"])
    op.create_index("ix_favorites_prompt_id", "favorites", ["prompt_id"])

    op.create_table(
        "technical_id_sequences",
        *_base_columns(),
        sa.Column("prefix", sa.String(length=10), nullable=False, unique=True),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "user_settings",
        *_base_columns(),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
        ),
        sa.Column("auto_backup_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("backup_path", sa.String(length=1000), nullable=True),
        sa.Column("backup_frequency", sa.String(length=10), nullable=False, server_default="DAILY"),
        sa.Column("last_backup_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("show_prompter_tips", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("tag_colors_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("workflow_visible", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "settings_hidden_users",
        sa.Column(
            "settings_id", sa.Uuid(), sa.ForeignKey("user_settings.id", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "settings_hidden_collections",
        sa.Column(
            "settings_id", sa.Uuid(), sa.ForeignKey("user_settings.id", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column(
            "collection_id", sa.Uuid(), sa.ForeignKey("collections.id", ondelete="CASCADE"), primary_key=True
        ),
    )

    op.create_table(
        "global_configuration",
        sa.Column("id", sa.String(length=20), primary_key=True),
        sa.Column("registration_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("private_prompts_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "workflows",
        *_base_columns(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    )
    op.create_index("ix_workflows_owner_id", "workflows", ["owner_id"])
    op.create_table(
        "workflow_steps",
        *_base_columns(),
        sa.Column(
            "workflow_id", sa.Uuid(), sa.ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("prompt_id", sa.Uuid(), sa.ForeignKey("prompts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("input_mappings", sa.JSON(), nullable=True),
    )
    op.create_index("ix_workflow_steps_workflow_id", "workflow_steps", ["workflow_id"])

    op.create_table(
        "audit_logs",
        *_base_columns(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action_type", sa.String(length=50), nullable=False),
        sa.Column("resource_type", sa.String(length=50), nullable=False),
        sa.Column("resource_id", sa.Uuid(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(length=50), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
    )
    op.create_index("ix_audit_logs_user_action", "audit_logs", ["user_id", "action_type"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_user_action", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("workflow_steps")
    op.drop_table("workflows")
    op.drop_table("global_configuration")
    op.drop_table("settings_hidden_collections")
    op.drop_table("settings_hidden_users")
    op.drop_table("user_settings")
    op.drop_table("technical_id_sequences")
    op.drop_table("favorites")
    op.drop_table("prompt_relations")
    op.drop_table("prompt_collections")
    op.drop_table("prompt_tags")
    op.drop_table("tags")
    op.drop_table("attachments")
    op.drop_constraint("fk_prompts_current_version", "prompts", type_="foreignkey")
    op.drop_table("prompt_versions")
    op.drop_table("prompts")
    op.drop_table("collections")
    op.drop_table("users")
