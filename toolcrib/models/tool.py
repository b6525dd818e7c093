from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from toolcrib.database.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class Tool(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "tools"

    tool_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String)
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False
    )
    sku: Mapped[str | None] = mapped_column(String(100))
    serial_number: Mapped[str | None] = mapped_column(String(100))
    quantity: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    unit_of_measure: Mapped[str] = mapped_column(String(50), nullable=False)
    # Keyed by AttributeDefinition.name; checked at write time, not by the database
    custom_attributes: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, server_default="1", nullable=False)

    __table_args__ = (
        Index("ix_tools_category_id", "category_id"),
        CheckConstraint("quantity >= 0", name="ck_tools_quantity_non_negative"),
    )
