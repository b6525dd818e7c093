"""Initial schema - categories, attribute groups and definitions, tools, audit log

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enums are stored as VARCHAR (native_enum=False on the models)
ATTRIBUTE_TYPES = ("TEXT", "NUMBER", "BOOLEAN", "DATE", "SELECT_SINGLE", "SELECT_MULTI")
AUDIT_OPERATIONS = ("CREATE", "UPDATE", "DELETE")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # 1. categories
    op.create_table(
        "categories",
        sa.Column("id", UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String, nullable=True),
        sa.Column("parent_id", UUID(as_uuid=True), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("parent_id", "name", name="uq_categories_parent_name"),
    )
    op.create_index("ix_categories_parent_id", "categories", ["parent_id"])
    op.create_index(
        "uq_categories_root_name",
        "categories",
        ["name"],
        unique=True,
        postgresql_where=sa.text("parent_id IS NULL"),
    )

    # 2. attribute_groups
    op.create_table(
        "attribute_groups",
        sa.Column("id", UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("category_id", UUID(as_uuid=True), sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sort_order", sa.Integer, server_default="0", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("category_id", "name", name="uq_attribute_groups_category_name"),
    )

    # 3. attribute_definitions
    op.create_table(
        "attribute_definitions",
        sa.Column("id", UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("category_id", UUID(as_uuid=True), sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "attribute_group_id",
            UUID(as_uuid=True),
            sa.ForeignKey("attribute_groups.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("label", sa.String(100), nullable=False),
        sa.Column(
            "attribute_type",
            sa.Enum(*ATTRIBUTE_TYPES, name="attributetype", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("is_required", sa.Boolean, server_default="false", nullable=False),
        sa.Column("default_value", JSONB, nullable=True),
        sa.Column("options", JSONB, nullable=True),
        sa.Column("validation_rules", JSONB, nullable=True),
        sa.Column("sort_order", sa.Integer, server_default="0", nullable=False),
        sa.Column("tooltip", sa.String(500), nullable=True),
        sa.Column("is_filterable", sa.Boolean, server_default="false", nullable=False),
        sa.Column("is_searchable", sa.Boolean, server_default="false", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("category_id", "name", name="uq_attribute_definitions_category_name"),
    )
    op.create_index("ix_attribute_definitions_group_id", "attribute_definitions", ["attribute_group_id"])

    # 4. tools
    op.create_table(
        "tools",
        sa.Column("id", UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("tool_number", sa.String(100), unique=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String, nullable=True),
        sa.Column("category_id", UUID(as_uuid=True), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("sku", sa.String(100), nullable=True),
        sa.Column("serial_number", sa.String(100), nullable=True),
        sa.Column("quantity", sa.Integer, server_default="0", nullable=False),
        sa.Column("unit_of_measure", sa.String(50), nullable=False),
        sa.Column("custom_attributes", JSONB, server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("version", sa.Integer, server_default="1", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("quantity >= 0", name="ck_tools_quantity_non_negative"),
    )
    op.create_index("ix_tools_category_id", "tools", ["category_id"])

    # 5. audit_log
    op.create_table(
        "audit_log",
        sa.Column("id", UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "operation",
            sa.Enum(*AUDIT_OPERATIONS, name="auditoperation", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("changed_fields", JSONB, nullable=True),
        sa.Column("changed_by_id", UUID(as_uuid=True), nullable=True),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_audit_log_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("tools")
    op.drop_table("attribute_definitions")
    op.drop_table("attribute_groups")
    op.drop_table("categories")
