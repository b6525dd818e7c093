"""Tests for effective schema resolution down the category tree."""

from __future__ import annotations

import uuid

import pytest

from toolcrib.exceptions import NotFoundException
from toolcrib.models.enums import AttributeType
from toolcrib.modules.catalog.attribute_group_service import AttributeGroupService
from toolcrib.modules.catalog.attribute_service import AttributeService
from toolcrib.modules.catalog.category_service import CategoryService
from toolcrib.modules.catalog.schema_resolver import SchemaResolver
from toolcrib.modules.catalog.schemas import (
    AttributeDefinitionCreate,
    AttributeGroupCreate,
    CategoryCreate,
)
from toolcrib.modules.catalog.value_validator import validate_values


def _number(name: str, **kwargs) -> AttributeDefinitionCreate:
    return AttributeDefinitionCreate(
        name=name,
        label=kwargs.pop("label", name.title()),
        attribute_type=AttributeType.NUMBER,
        **kwargs,
    )


class TestResolveEffectiveSchema:
    @pytest.mark.asyncio
    async def test_leaf_inherits_parent_definitions(self, db_session, cutting_tools) -> None:
        schema = await SchemaResolver(db_session).resolve_effective_schema(cutting_tools["end_mills"])

        assert [g.name for g in schema.groups] == ["Physical Properties"]
        assert [d.name for d in schema.definitions] == ["diameter", "material"]
        assert schema.groups[0].category_id == cutting_tools["root"]

    @pytest.mark.asyncio
    async def test_full_ancestor_chain(self, db_session, cutting_tools) -> None:
        categories = CategoryService(db_session)
        ball_nose = await categories.create_category(
            CategoryCreate(name="Ball Nose", parent_id=cutting_tools["end_mills"])
        )
        await AttributeService(db_session).create_attribute(cutting_tools["end_mills"], _number("flutes"))
        await AttributeService(db_session).create_attribute(ball_nose.id, _number("ball_radius"))

        schema = await SchemaResolver(db_session).resolve_effective_schema(ball_nose.id)

        names = [d.name for d in schema.definitions]
        assert sorted(names) == ["ball_radius", "diameter", "flutes", "material"]
        assert len(names) == len(set(names))

    @pytest.mark.asyncio
    async def test_nearest_definition_wins(self, db_session, cutting_tools) -> None:
        override = await AttributeService(db_session).create_attribute(
            cutting_tools["end_mills"],
            _number("diameter", label="Shank diameter", is_required=False),
        )

        schema = await SchemaResolver(db_session).resolve_effective_schema(cutting_tools["end_mills"])
        diameters = [d for d in schema.definitions if d.name == "diameter"]

        assert [d.id for d in diameters] == [override.id]
        # Inherited required flag no longer applies
        assert validate_values(schema.definitions, {}).is_valid

    @pytest.mark.asyncio
    async def test_group_and_attribute_ordering(self, db_session, cutting_tools) -> None:
        groups = AttributeGroupService(db_session)
        attributes = AttributeService(db_session)
        leaf = cutting_tools["end_mills"]

        geometry = await groups.create_group(leaf, AttributeGroupCreate(name="Geometry", sort_order=0))
        await groups.create_group(leaf, AttributeGroupCreate(name="Unused", sort_order=5))
        await attributes.create_attribute(leaf, _number("helix", attribute_group_id=geometry.id, sort_order=2))
        await attributes.create_attribute(leaf, _number("flutes", attribute_group_id=geometry.id, sort_order=1))
        await attributes.create_attribute(leaf, _number("stickout", sort_order=0))

        schema = await SchemaResolver(db_session).resolve_effective_schema(leaf)

        # Empty "Unused" group is omitted; ungrouped bucket trails
        assert [g.name for g in schema.groups] == ["Geometry", "Physical Properties", "General"]
        assert [d.name for d in schema.groups[0].attributes] == ["flutes", "helix"]
        assert schema.groups[-1].id == "no_group"
        assert schema.groups[-1].sort_order == 999
        assert [d.name for d in schema.groups[-1].attributes] == ["stickout"]

    @pytest.mark.asyncio
    async def test_group_sort_ties_prefer_nearer_category(self, db_session, cutting_tools) -> None:
        leaf = cutting_tools["end_mills"]
        near = await AttributeGroupService(db_session).create_group(
            leaf, AttributeGroupCreate(name="Zeta", sort_order=1)
        )
        await AttributeService(db_session).create_attribute(leaf, _number("flutes", attribute_group_id=near.id))

        schema = await SchemaResolver(db_session).resolve_effective_schema(leaf)

        assert [g.name for g in schema.groups] == ["Zeta", "Physical Properties"]

    @pytest.mark.asyncio
    async def test_no_ungrouped_bucket_when_empty(self, db_session, cutting_tools) -> None:
        schema = await SchemaResolver(db_session).resolve_effective_schema(cutting_tools["root"])
        assert all(g.id != "no_group" for g in schema.groups)

    @pytest.mark.asyncio
    async def test_category_without_definitions(self, db_session) -> None:
        category = await CategoryService(db_session).create_category(CategoryCreate(name="Fixtures"))
        schema = await SchemaResolver(db_session).resolve_effective_schema(category.id)
        assert schema.groups == []
        assert schema.definitions == []

    @pytest.mark.asyncio
    async def test_unknown_category(self, db_session) -> None:
        with pytest.raises(NotFoundException):
            await SchemaResolver(db_session).resolve_effective_schema(uuid.uuid4())


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_subcategory_sees_parent_number_attribute(self, db_session) -> None:
        categories = CategoryService(db_session)
        cutting_tools = await categories.create_category(CategoryCreate(name="Cutting Tools"))
        group = await AttributeGroupService(db_session).create_group(
            cutting_tools.id, AttributeGroupCreate(name="Physical Properties")
        )
        await AttributeService(db_session).create_attribute(
            cutting_tools.id,
            _number(
                "diameter",
                attribute_group_id=group.id,
                validation_rules={"min": 0.1, "max": 100, "step": 0.1},
            ),
        )
        end_mills = await categories.create_category(
            CategoryCreate(name="End Mills", parent_id=cutting_tools.id)
        )

        schema = await SchemaResolver(db_session).resolve_effective_schema(end_mills.id)

        assert [g.name for g in schema.groups] == ["Physical Properties"]
        assert [d.name for d in schema.definitions] == ["diameter"]
        assert validate_values(schema.definitions, {"diameter": 6.3}).is_valid
        assert validate_values(schema.definitions, {"diameter": 6.35}).errors == {
            "diameter": "Diameter must be a multiple of 0.1"
        }
