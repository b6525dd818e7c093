from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from toolcrib.database.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin
from toolcrib.models.enums import AttributeType


class AttributeDefinition(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A typed custom attribute declared by a category.

    ``options`` is an ordered list of ``{"value", "label"}`` objects and
    ``validation_rules`` a type-specific object; both are stored as JSON and
    only interpreted through :mod:`toolcrib.modules.catalog.attribute_rules`.
    """

    __tablename__ = "attribute_definitions"

    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    attribute_group_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("attribute_groups.id", ondelete="RESTRICT"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    attribute_type: Mapped[AttributeType] = mapped_column(
        Enum(AttributeType, native_enum=False, length=20), nullable=False
    )
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    default_value: Mapped[Any | None] = mapped_column(JSONType)
    options: Mapped[list | None] = mapped_column(JSONType)
    validation_rules: Mapped[dict | None] = mapped_column(JSONType)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    tooltip: Mapped[str | None] = mapped_column(String(500))
    is_filterable: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    is_searchable: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)

    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uq_attribute_definitions_category_name"),
        Index("ix_attribute_definitions_group_id", "attribute_group_id"),
    )
