"""Category service — tree CRUD, reparenting with cycle prevention, ancestor walks."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from toolcrib.exceptions import ConflictException, InvalidArgumentException, NotFoundException
from toolcrib.models.attribute_definition import AttributeDefinition
from toolcrib.models.attribute_group import AttributeGroup
from toolcrib.models.category import Category
from toolcrib.models.tool import Tool
from toolcrib.modules.catalog.schemas import (
    AttributeGroupSummary,
    CategoryCreate,
    CategoryDetailResponse,
    CategoryListItem,
    CategorySummary,
    CategoryTreeNode,
    CategoryUpdate,
)

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_category(self, data: CategoryCreate) -> Category:
        if data.parent_id is not None:
            await self._get_category_or_404(data.parent_id)

        await self._ensure_unique_name(data.name, data.parent_id)

        category = Category(
            name=data.name,
            description=data.description,
            parent_id=data.parent_id,
        )
        self._session.add(category)
        await self._session.flush()

        logger.info("Created category %s (%s) under parent %s", category.id, category.name, category.parent_id)
        return category

    async def get_category(self, category_id: uuid.UUID) -> Category:
        return await self._get_category_or_404(category_id)

    async def get_category_detail(self, category_id: uuid.UUID) -> CategoryDetailResponse:
        """Category with parent summary, children, groups and usage counts."""
        category = await self._get_category_or_404(category_id)

        parent = None
        if category.parent_id is not None:
            parent_row = await self._session.get(Category, category.parent_id)
            if parent_row is not None:
                parent = CategorySummary.model_validate(parent_row)

        children_result = await self._session.execute(
            select(Category).where(Category.parent_id == category_id).order_by(Category.name)
        )
        children = [CategorySummary.model_validate(c) for c in children_result.scalars().all()]

        # Attribute count per group
        attr_count_sub = (
            select(
                AttributeDefinition.attribute_group_id.label("group_id"),
                func.count().label("attribute_count"),
            )
            .where(AttributeDefinition.category_id == category_id)
            .group_by(AttributeDefinition.attribute_group_id)
            .subquery()
        )
        groups_result = await self._session.execute(
            select(AttributeGroup, func.coalesce(attr_count_sub.c.attribute_count, 0))
            .outerjoin(attr_count_sub, attr_count_sub.c.group_id == AttributeGroup.id)
            .where(AttributeGroup.category_id == category_id)
            .order_by(AttributeGroup.sort_order, AttributeGroup.name)
        )
        groups = [
            AttributeGroupSummary(
                id=group.id,
                name=group.name,
                sort_order=group.sort_order,
                attribute_count=attribute_count,
            )
            for group, attribute_count in groups_result.all()
        ]

        attribute_count = await self._count(
            select(func.count()).select_from(AttributeDefinition).where(
                AttributeDefinition.category_id == category_id
            )
        )
        tool_count = await self._count(
            select(func.count()).select_from(Tool).where(Tool.category_id == category_id)
        )

        detail = CategoryDetailResponse.model_validate(category)
        detail.parent = parent
        detail.children = children
        detail.attribute_groups = groups
        detail.attribute_count = attribute_count
        detail.tool_count = tool_count
        return detail

    async def get_all_categories(self) -> list[CategoryListItem]:
        """Flat list of every category with child, tool and group counts."""
        children_sub = (
            select(
                Category.parent_id.label("cat_id"),
                func.count().label("children_count"),
            )
            .where(Category.parent_id.is_not(None))
            .group_by(Category.parent_id)
            .subquery()
        )
        tool_sub = (
            select(
                Tool.category_id.label("cat_id"),
                func.count().label("tool_count"),
            )
            .group_by(Tool.category_id)
            .subquery()
        )
        group_sub = (
            select(
                AttributeGroup.category_id.label("cat_id"),
                func.count().label("attribute_group_count"),
            )
            .group_by(AttributeGroup.category_id)
            .subquery()
        )

        stmt = (
            select(
                Category,
                func.coalesce(children_sub.c.children_count, 0),
                func.coalesce(tool_sub.c.tool_count, 0),
                func.coalesce(group_sub.c.attribute_group_count, 0),
            )
            .outerjoin(children_sub, children_sub.c.cat_id == Category.id)
            .outerjoin(tool_sub, tool_sub.c.cat_id == Category.id)
            .outerjoin(group_sub, group_sub.c.cat_id == Category.id)
            .order_by(Category.name)
        )
        result = await self._session.execute(stmt)

        items = []
        for category, children_count, tool_count, group_count in result.all():
            item = CategoryListItem.model_validate(category)
            item.children_count = children_count
            item.tool_count = tool_count
            item.attribute_group_count = group_count
            items.append(item)
        return items

    async def get_category_tree(self) -> list[CategoryTreeNode]:
        """Nested tree of every category, roots first, siblings by name."""
        flat = await self.get_all_categories()

        nodes: dict[uuid.UUID, CategoryTreeNode] = {
            item.id: CategoryTreeNode(
                id=item.id,
                name=item.name,
                description=item.description,
                parent_id=item.parent_id,
                tool_count=item.tool_count,
            )
            for item in flat
        }

        roots: list[CategoryTreeNode] = []
        for item in flat:
            node = nodes[item.id]
            parent = nodes.get(item.parent_id) if item.parent_id is not None else None
            if parent is None:
                roots.append(node)
            else:
                parent.children.append(node)
        return roots

    async def update_category(self, category_id: uuid.UUID, data: CategoryUpdate) -> Category:
        """Rename, describe or reparent a category.

        The category and every ancestor walked during the cycle check are
        locked ``FOR UPDATE`` so that two concurrent reparents cannot each
        pass the check and together close a loop.
        """
        category = await self._get_category_or_404(category_id, for_update=True)
        update_data = data.model_dump(exclude_unset=True)

        new_parent_id = update_data.get("parent_id", category.parent_id)
        new_name = update_data.get("name") or category.name

        if "parent_id" in update_data and new_parent_id is not None:
            if new_parent_id == category_id:
                raise InvalidArgumentException("A category cannot be its own parent")
            await self._get_category_or_404(new_parent_id, for_update=True)
            if await self.is_descendant_of(new_parent_id, category_id, for_update=True):
                raise InvalidArgumentException(
                    "Cannot move a category under one of its own descendants"
                )

        if new_name != category.name or new_parent_id != category.parent_id:
            await self._ensure_unique_name(new_name, new_parent_id, exclude_id=category_id)

        moved = new_parent_id != category.parent_id
        if "name" in update_data and update_data["name"] is not None:
            category.name = update_data["name"]
        if "description" in update_data:
            category.description = update_data["description"]
        category.parent_id = new_parent_id

        await self._session.flush()

        if moved:
            logger.info("Moved category %s under parent %s", category_id, new_parent_id)
        return category

    async def delete_category(self, category_id: uuid.UUID) -> None:
        category = await self._get_category_or_404(category_id)

        children_count = await self._count(
            select(func.count()).select_from(Category).where(Category.parent_id == category_id)
        )
        if children_count:
            raise ConflictException(
                f"Category '{category.name}' has {children_count} child categories and cannot be deleted"
            )

        tool_count = await self._count(
            select(func.count()).select_from(Tool).where(Tool.category_id == category_id)
        )
        if tool_count:
            raise ConflictException(
                f"Category '{category.name}' has {tool_count} tools and cannot be deleted"
            )

        # Definitions reference groups, so they go first
        await self._session.execute(
            delete(AttributeDefinition).where(AttributeDefinition.category_id == category_id)
        )
        await self._session.execute(
            delete(AttributeGroup).where(AttributeGroup.category_id == category_id)
        )
        await self._session.delete(category)
        await self._session.flush()

        logger.info("Deleted category %s (%s)", category_id, category.name)

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    async def get_ancestor_ids(self, category_id: uuid.UUID) -> list[uuid.UUID]:
        """Ancestor chain of *category_id*, nearest first, excluding itself.

        Stops at a repeated id so a corrupted chain cannot loop forever.
        """
        ancestors: list[uuid.UUID] = []
        seen = {category_id}
        current = await self._get_parent_id(category_id)
        while current is not None and current not in seen:
            ancestors.append(current)
            seen.add(current)
            current = await self._get_parent_id(current)
        return ancestors

    async def is_descendant_of(
        self,
        candidate_id: uuid.UUID,
        ancestor_id: uuid.UUID,
        for_update: bool = False,
    ) -> bool:
        """Walk up from *candidate_id*; True if *ancestor_id* is on the chain."""
        seen: set[uuid.UUID] = set()
        current: uuid.UUID | None = candidate_id
        while current is not None and current not in seen:
            if current == ancestor_id:
                return True
            seen.add(current)
            current = await self._get_parent_id(current, for_update=for_update)
        return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_category_or_404(self, category_id: uuid.UUID, for_update: bool = False) -> Category:
        category = await self._session.get(Category, category_id, with_for_update=for_update)
        if category is None:
            raise NotFoundException(f"Category {category_id} not found")
        return category

    async def _get_parent_id(self, category_id: uuid.UUID, for_update: bool = False) -> uuid.UUID | None:
        stmt = select(Category.parent_id).where(Category.id == category_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _ensure_unique_name(
        self,
        name: str,
        parent_id: uuid.UUID | None,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        stmt = select(Category.id).where(Category.name == name)
        if parent_id is None:
            stmt = stmt.where(Category.parent_id.is_(None))
        else:
            stmt = stmt.where(Category.parent_id == parent_id)
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)

        result = await self._session.execute(stmt.limit(1))
        if result.scalar_one_or_none() is not None:
            scope = "at the root" if parent_id is None else "under this parent"
            raise ConflictException(f"A category named '{name}' already exists {scope}")

    async def _count(self, stmt) -> int:
        result = await self._session.execute(stmt)
        return result.scalar() or 0
