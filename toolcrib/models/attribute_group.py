from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from toolcrib.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class AttributeGroup(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "attribute_groups"

    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uq_attribute_groups_category_name"),
    )
