"""Attribute group service — display sections of a category's attributes."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from toolcrib.exceptions import ConflictException, NotFoundException
from toolcrib.models.attribute_definition import AttributeDefinition
from toolcrib.models.attribute_group import AttributeGroup
from toolcrib.models.category import Category
from toolcrib.modules.catalog.schemas import AttributeGroupCreate, AttributeGroupUpdate

logger = logging.getLogger(__name__)


class AttributeGroupService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_groups(self, category_id: uuid.UUID) -> list[AttributeGroup]:
        await self._ensure_category(category_id)
        result = await self._session.execute(
            select(AttributeGroup)
            .where(AttributeGroup.category_id == category_id)
            .order_by(AttributeGroup.sort_order, AttributeGroup.name)
        )
        return list(result.scalars().all())

    async def get_group(self, category_id: uuid.UUID, group_id: uuid.UUID) -> AttributeGroup:
        """Fetch a group through its category; a group of another category is not found."""
        group = await self._session.get(AttributeGroup, group_id)
        if group is None or group.category_id != category_id:
            raise NotFoundException(f"Attribute group {group_id} not found in category {category_id}")
        return group

    async def create_group(self, category_id: uuid.UUID, data: AttributeGroupCreate) -> AttributeGroup:
        await self._ensure_category(category_id)
        await self._ensure_unique_name(category_id, data.name)

        sort_order = data.sort_order
        if sort_order is None:
            result = await self._session.execute(
                select(func.max(AttributeGroup.sort_order)).where(AttributeGroup.category_id == category_id)
            )
            current_max = result.scalar()
            sort_order = 0 if current_max is None else current_max + 1

        group = AttributeGroup(category_id=category_id, name=data.name, sort_order=sort_order)
        self._session.add(group)
        await self._session.flush()

        logger.info("Created attribute group %s (%s) in category %s", group.id, group.name, category_id)
        return group

    async def update_group(
        self,
        category_id: uuid.UUID,
        group_id: uuid.UUID,
        data: AttributeGroupUpdate,
    ) -> AttributeGroup:
        group = await self.get_group(category_id, group_id)
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        if "name" in update_data and update_data["name"] != group.name:
            await self._ensure_unique_name(category_id, update_data["name"], exclude_id=group_id)

        for field, value in update_data.items():
            setattr(group, field, value)
        await self._session.flush()
        return group

    async def delete_group(self, category_id: uuid.UUID, group_id: uuid.UUID) -> None:
        group = await self.get_group(category_id, group_id)

        result = await self._session.execute(
            select(func.count()).select_from(AttributeDefinition).where(
                AttributeDefinition.attribute_group_id == group_id
            )
        )
        attribute_count = result.scalar() or 0
        if attribute_count:
            raise ConflictException(
                f"Attribute group '{group.name}' has {attribute_count} attributes and cannot be deleted"
            )

        await self._session.delete(group)
        await self._session.flush()
        logger.info("Deleted attribute group %s from category %s", group_id, category_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _ensure_category(self, category_id: uuid.UUID) -> None:
        if await self._session.get(Category, category_id) is None:
            raise NotFoundException(f"Category {category_id} not found")

    async def _ensure_unique_name(
        self,
        category_id: uuid.UUID,
        name: str,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        stmt = select(AttributeGroup.id).where(
            AttributeGroup.category_id == category_id,
            AttributeGroup.name == name,
        )
        if exclude_id is not None:
            stmt = stmt.where(AttributeGroup.id != exclude_id)
        result = await self._session.execute(stmt.limit(1))
        if result.scalar_one_or_none() is not None:
            raise ConflictException(f"An attribute group named '{name}' already exists in this category")
