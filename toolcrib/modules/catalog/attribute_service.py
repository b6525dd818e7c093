"""Attribute definition service — typed custom attributes owned by a category."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from toolcrib.exceptions import ConflictException, InvalidArgumentException, NotFoundException
from toolcrib.models.attribute_definition import AttributeDefinition
from toolcrib.models.attribute_group import AttributeGroup
from toolcrib.models.category import Category
from toolcrib.models.enums import AttributeType
from toolcrib.modules.catalog.attribute_rules import check_options, check_rules_shape
from toolcrib.modules.catalog.schemas import AttributeDefinitionCreate, AttributeDefinitionUpdate
from toolcrib.modules.catalog.value_validator import validate_value

logger = logging.getLogger(__name__)

# Fields copied onto the candidate definition on update
_UPDATABLE_FIELDS = (
    "label",
    "attribute_type",
    "attribute_group_id",
    "is_required",
    "default_value",
    "options",
    "validation_rules",
    "sort_order",
    "tooltip",
    "is_filterable",
    "is_searchable",
)

# Columns that cannot hold NULL; an explicit null in a patch leaves them as they are
_NON_NULLABLE_FIELDS = frozenset(
    {"label", "attribute_type", "is_required", "sort_order", "is_filterable", "is_searchable"}
)


class AttributeService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_attributes(self, category_id: uuid.UUID) -> list[AttributeDefinition]:
        """Definitions declared directly on the category, not inherited ones."""
        await self._ensure_category(category_id)
        result = await self._session.execute(
            select(AttributeDefinition)
            .where(AttributeDefinition.category_id == category_id)
            .order_by(AttributeDefinition.sort_order, AttributeDefinition.name)
        )
        return list(result.scalars().all())

    async def get_attribute(self, category_id: uuid.UUID, attribute_id: uuid.UUID) -> AttributeDefinition:
        attribute = await self._session.get(AttributeDefinition, attribute_id)
        if attribute is None or attribute.category_id != category_id:
            raise NotFoundException(f"Attribute {attribute_id} not found in category {category_id}")
        return attribute

    async def create_attribute(
        self,
        category_id: uuid.UUID,
        data: AttributeDefinitionCreate,
    ) -> AttributeDefinition:
        await self._ensure_category(category_id)

        existing = await self._session.execute(
            select(AttributeDefinition.id).where(
                AttributeDefinition.category_id == category_id,
                AttributeDefinition.name == data.name,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictException(f"Attribute '{data.name}' already exists in this category")

        sort_order = data.sort_order
        if sort_order is None:
            result = await self._session.execute(
                select(func.max(AttributeDefinition.sort_order)).where(
                    AttributeDefinition.category_id == category_id
                )
            )
            current_max = result.scalar()
            sort_order = 0 if current_max is None else current_max + 1

        attribute = AttributeDefinition(
            category_id=category_id,
            attribute_group_id=data.attribute_group_id,
            name=data.name,
            label=data.label,
            attribute_type=data.attribute_type,
            is_required=data.is_required,
            default_value=data.default_value,
            options=[opt.model_dump() for opt in data.options] if data.options is not None else None,
            validation_rules=data.validation_rules,
            sort_order=sort_order,
            tooltip=data.tooltip,
            is_filterable=data.is_filterable,
            is_searchable=data.is_searchable,
        )
        await self.validate_attribute_definition(attribute)

        self._session.add(attribute)
        await self._session.flush()

        logger.info(
            "Created %s attribute %s (%s) in category %s",
            attribute.attribute_type.value,
            attribute.name,
            attribute.id,
            category_id,
        )
        return attribute

    async def update_attribute(
        self,
        category_id: uuid.UUID,
        attribute_id: uuid.UUID,
        data: AttributeDefinitionUpdate,
    ) -> AttributeDefinition:
        attribute = await self.get_attribute(category_id, attribute_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("options") is not None:
            update_data["options"] = [dict(opt) for opt in update_data["options"]]
        update_data = {
            field: value
            for field, value in update_data.items()
            if value is not None or field not in _NON_NULLABLE_FIELDS
        }

        # Validate the merged state on a detached copy before touching the row
        candidate = AttributeDefinition(
            category_id=attribute.category_id,
            name=attribute.name,
            **{field: update_data.get(field, getattr(attribute, field)) for field in _UPDATABLE_FIELDS},
        )
        await self.validate_attribute_definition(candidate)

        for field, value in update_data.items():
            setattr(attribute, field, value)
        await self._session.flush()

        logger.info("Updated attribute %s (%s) in category %s", attribute.name, attribute_id, category_id)
        return attribute

    async def delete_attribute(self, category_id: uuid.UUID, attribute_id: uuid.UUID) -> None:
        """Delete a definition. Values already stored on tools become orphaned keys."""
        attribute = await self.get_attribute(category_id, attribute_id)
        await self._session.delete(attribute)
        await self._session.flush()
        logger.info("Deleted attribute %s (%s) from category %s", attribute.name, attribute_id, category_id)

    async def validate_attribute_definition(self, definition: AttributeDefinition) -> None:
        """Structural checks for a definition about to be written.

        Raises :class:`InvalidArgumentException` for bad options, rules, group
        ownership or default value, and :class:`NotFoundException` for an
        unknown group.
        """
        attribute_type = AttributeType(definition.attribute_type)

        check_options(attribute_type, definition.options)
        check_rules_shape(attribute_type, definition.validation_rules)

        if definition.attribute_group_id is not None:
            group = await self._session.get(AttributeGroup, definition.attribute_group_id)
            if group is None:
                raise NotFoundException(f"Attribute group {definition.attribute_group_id} not found")
            if group.category_id != definition.category_id:
                raise InvalidArgumentException(
                    f"Attribute group '{group.name}' does not belong to this category"
                )

        if definition.default_value is not None:
            error = validate_value(definition, definition.default_value)
            if error is not None:
                raise InvalidArgumentException(
                    f"Invalid default value: {error}",
                    details=[{"field": "default_value", "message": error}],
                )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _ensure_category(self, category_id: uuid.UUID) -> None:
        if await self._session.get(Category, category_id) is None:
            raise NotFoundException(f"Category {category_id} not found")
