"""Attribute schema resolver — merges a category's own and inherited definitions.

The effective schema of a category is the union of the attribute definitions
declared on it and on every ancestor up to the root. When two levels declare
the same attribute name the nearest one wins. Definitions are bucketed by
attribute group for display; anything whose group is not part of the merged
set lands in a trailing "General" bucket.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from toolcrib.models.attribute_definition import AttributeDefinition
from toolcrib.models.attribute_group import AttributeGroup
from toolcrib.modules.catalog.category_service import CategoryService
from toolcrib.modules.catalog.constants import (
    UNGROUPED_GROUP_ID,
    UNGROUPED_GROUP_NAME,
    UNGROUPED_SORT_ORDER,
)

logger = logging.getLogger(__name__)


@dataclass
class ResolvedGroup:
    id: str
    name: str
    sort_order: int
    category_id: uuid.UUID | None = None
    attributes: list[AttributeDefinition] = field(default_factory=list)


@dataclass
class EffectiveSchema:
    category_id: uuid.UUID
    groups: list[ResolvedGroup]

    @property
    def definitions(self) -> list[AttributeDefinition]:
        """Flat definition list in display order, as consumed by the value validator."""
        return [attribute for group in self.groups for attribute in group.attributes]


class SchemaResolver:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._categories = CategoryService(session)

    async def resolve_effective_schema(self, category_id: uuid.UUID) -> EffectiveSchema:
        """Resolve the grouped, deduplicated schema for *category_id*.

        Raises :class:`NotFoundException` if the category does not exist.
        """
        await self._categories.get_category(category_id)
        chain = [category_id, *await self._categories.get_ancestor_ids(category_id)]
        depth_of = {cid: depth for depth, cid in enumerate(chain)}

        definitions_result = await self._session.execute(
            select(AttributeDefinition).where(AttributeDefinition.category_id.in_(chain))
        )
        groups_result = await self._session.execute(
            select(AttributeGroup).where(AttributeGroup.category_id.in_(chain))
        )

        # Nearest category first, so the first definition seen for a name wins
        merged: dict[str, AttributeDefinition] = {}
        for definition in sorted(
            definitions_result.scalars().all(),
            key=lambda d: (depth_of[d.category_id], d.sort_order, d.name),
        ):
            merged.setdefault(definition.name, definition)

        groups = sorted(
            groups_result.scalars().all(),
            key=lambda g: (g.sort_order, depth_of[g.category_id], g.name),
        )
        buckets: dict[uuid.UUID, ResolvedGroup] = {
            group.id: ResolvedGroup(
                id=str(group.id),
                name=group.name,
                sort_order=group.sort_order,
                category_id=group.category_id,
            )
            for group in groups
        }
        ungrouped = ResolvedGroup(
            id=UNGROUPED_GROUP_ID,
            name=UNGROUPED_GROUP_NAME,
            sort_order=UNGROUPED_SORT_ORDER,
        )

        for definition in merged.values():
            bucket = buckets.get(definition.attribute_group_id) if definition.attribute_group_id else None
            (bucket or ungrouped).attributes.append(definition)

        resolved = [bucket for bucket in buckets.values() if bucket.attributes]
        if ungrouped.attributes:
            resolved.append(ungrouped)
        for bucket in resolved:
            bucket.attributes.sort(key=lambda d: (d.sort_order, depth_of[d.category_id], d.name))

        logger.debug(
            "Resolved %d attributes in %d groups for category %s across %d levels",
            len(merged),
            len(resolved),
            category_id,
            len(chain),
        )
        return EffectiveSchema(category_id=category_id, groups=resolved)
