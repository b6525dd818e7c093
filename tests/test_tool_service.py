"""Tests for tool CRUD with custom attribute validation and audit logging."""

from __future__ import annotations

import logging
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from toolcrib.exceptions import ConflictException, NotFoundException, ValidationException
from toolcrib.models.audit import AuditLog
from toolcrib.models.enums import AttributeType, AuditOperation
from toolcrib.modules.catalog.attribute_service import AttributeService
from toolcrib.modules.catalog.category_service import CategoryService
from toolcrib.modules.catalog.schema_resolver import EffectiveSchema
from toolcrib.modules.catalog.schemas import AttributeDefinitionCreate, AttributeOption, CategoryCreate
from toolcrib.modules.tool.schemas import ToolCreate, ToolUpdate
from toolcrib.modules.tool.service import ToolService


def _end_mill(category_id: uuid.UUID, **overrides) -> ToolCreate:
    data = {
        "name": '1/4" 4-Flute Carbide End Mill',
        "category_id": category_id,
        "quantity": 15,
        "custom_attributes": {"diameter": 6.3, "material": "carbide"},
    }
    data.update(overrides)
    return ToolCreate(**data)


class TestCreateTool:
    @pytest.mark.asyncio
    async def test_valid_tool_gets_sequential_number(self, db_session, cutting_tools, admin_user) -> None:
        svc = ToolService(db_session)
        first = await svc.create_tool(_end_mill(cutting_tools["end_mills"]), admin_user)
        second = await svc.create_tool(_end_mill(cutting_tools["end_mills"], name="Second"), admin_user)

        assert first.tool_number == "TOOL-00001"
        assert second.tool_number == "TOOL-00002"
        assert first.custom_attributes == {"diameter": 6.3, "material": "carbide"}
        assert first.version == 1

    @pytest.mark.asyncio
    async def test_explicit_tool_number_must_be_unique(self, db_session, cutting_tools, admin_user) -> None:
        svc = ToolService(db_session)
        await svc.create_tool(_end_mill(cutting_tools["end_mills"], tool_number="EM-001"), admin_user)
        with pytest.raises(ConflictException, match="EM-001"):
            await svc.create_tool(_end_mill(cutting_tools["end_mills"], tool_number="EM-001"), admin_user)

    @pytest.mark.asyncio
    async def test_hand_entered_prefix_numbers_do_not_reset_sequence(
        self, db_session, cutting_tools, admin_user
    ) -> None:
        svc = ToolService(db_session)
        category_id = cutting_tools["end_mills"]
        first = await svc.create_tool(_end_mill(category_id), admin_user)
        await svc.create_tool(_end_mill(category_id, name="Spare", tool_number="TOOL-SPARE"), admin_user)
        third = await svc.create_tool(_end_mill(category_id, name="Third"), admin_user)

        assert first.tool_number == "TOOL-00001"
        assert third.tool_number == "TOOL-00002"

    @pytest.mark.asyncio
    async def test_sequence_orders_numerically_past_five_digits(
        self, db_session, cutting_tools, admin_user
    ) -> None:
        svc = ToolService(db_session)
        category_id = cutting_tools["end_mills"]
        await svc.create_tool(_end_mill(category_id, tool_number="TOOL-99999"), admin_user)

        assert (await svc.create_tool(_end_mill(category_id, name="A"), admin_user)).tool_number == "TOOL-100000"
        assert (await svc.create_tool(_end_mill(category_id, name="B"), admin_user)).tool_number == "TOOL-100001"

    @pytest.mark.asyncio
    async def test_racing_duplicate_number_is_conflict(self, admin_user) -> None:
        category_id = uuid.uuid4()
        session = AsyncMock()
        session.add = MagicMock()
        lookup = MagicMock()
        lookup.scalar_one_or_none.return_value = None
        session.execute.return_value = lookup
        session.flush.side_effect = IntegrityError(
            "INSERT INTO tools", {}, Exception("UNIQUE constraint failed: tools.tool_number")
        )

        svc = ToolService(session)
        svc._resolver = MagicMock()
        svc._resolver.resolve_effective_schema = AsyncMock(
            return_value=EffectiveSchema(category_id=category_id, groups=[])
        )

        with pytest.raises(ConflictException, match="TOOL-00042"):
            await svc.create_tool(
                _end_mill(category_id, tool_number="TOOL-00042", custom_attributes={}),
                admin_user,
            )

    @pytest.mark.asyncio
    async def test_invalid_values_report_every_field(self, db_session, cutting_tools, admin_user) -> None:
        svc = ToolService(db_session)
        data = _end_mill(cutting_tools["end_mills"], custom_attributes={"diameter": 6.35, "material": "titanium"})

        with pytest.raises(ValidationException) as exc_info:
            await svc.create_tool(data, admin_user)

        assert exc_info.value.message == "Diameter must be a multiple of 0.1"
        assert exc_info.value.details == [
            {"field": "diameter", "message": "Diameter must be a multiple of 0.1"},
            {"field": "material", "message": "Material must be one of: hss, carbide, diamond, ceramic"},
        ]

    @pytest.mark.asyncio
    async def test_required_inherited_attribute(self, db_session, cutting_tools, admin_user) -> None:
        with pytest.raises(ValidationException, match="Diameter is required"):
            await ToolService(db_session).create_tool(
                _end_mill(cutting_tools["end_mills"], custom_attributes={"material": "hss"}), admin_user
            )

    @pytest.mark.asyncio
    async def test_defaults_fill_absent_attributes(self, db_session, cutting_tools, admin_user) -> None:
        await AttributeService(db_session).create_attribute(
            cutting_tools["root"],
            AttributeDefinitionCreate(
                name="coating",
                label="Coating",
                attribute_type=AttributeType.SELECT_MULTI,
                options=[AttributeOption(value="tin", label="TiN"), AttributeOption(value="none", label="None")],
                default_value=["none"],
            ),
        )
        tool = await ToolService(db_session).create_tool(_end_mill(cutting_tools["end_mills"]), admin_user)
        assert tool.custom_attributes["coating"] == ["none"]

    @pytest.mark.asyncio
    async def test_orphaned_keys_are_kept_and_logged(self, db_session, cutting_tools, admin_user, caplog) -> None:
        data = _end_mill(
            cutting_tools["end_mills"],
            custom_attributes={"diameter": 6.3, "legacy_bin": "A-2"},
        )
        with caplog.at_level(logging.WARNING, logger="toolcrib.modules.tool.service"):
            tool = await ToolService(db_session).create_tool(data, admin_user)

        assert tool.custom_attributes["legacy_bin"] == "A-2"
        assert "legacy_bin" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_category(self, db_session, admin_user) -> None:
        with pytest.raises(NotFoundException):
            await ToolService(db_session).create_tool(_end_mill(uuid.uuid4()), admin_user)

    @pytest.mark.asyncio
    async def test_create_writes_audit_log(self, db_session, cutting_tools, admin_user) -> None:
        tool = await ToolService(db_session).create_tool(_end_mill(cutting_tools["end_mills"]), admin_user)

        result = await db_session.execute(select(AuditLog).where(AuditLog.entity_id == tool.id))
        entry = result.scalar_one()
        assert entry.operation == AuditOperation.CREATE
        assert entry.entity_type == "Tool"
        assert entry.changed_by_id == admin_user.id
        assert entry.changed_fields["name"] == tool.name


class TestUpdateAndDeleteTool:
    @pytest.mark.asyncio
    async def test_update_bumps_version(self, db_session, cutting_tools, admin_user) -> None:
        svc = ToolService(db_session)
        tool = await svc.create_tool(_end_mill(cutting_tools["end_mills"]), admin_user)

        updated = await svc.update_tool(tool.id, ToolUpdate(quantity=3, version=1), admin_user)

        assert updated.quantity == 3
        assert updated.version == 2

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, db_session, cutting_tools, admin_user) -> None:
        svc = ToolService(db_session)
        tool = await svc.create_tool(_end_mill(cutting_tools["end_mills"]), admin_user)
        await svc.update_tool(tool.id, ToolUpdate(quantity=3), admin_user)

        with pytest.raises(ConflictException, match="Version conflict"):
            await svc.update_tool(tool.id, ToolUpdate(quantity=4, version=1), admin_user)

    @pytest.mark.asyncio
    async def test_update_values_revalidated(self, db_session, cutting_tools, admin_user) -> None:
        svc = ToolService(db_session)
        tool = await svc.create_tool(_end_mill(cutting_tools["end_mills"]), admin_user)

        with pytest.raises(ValidationException, match="at most 100"):
            await svc.update_tool(tool.id, ToolUpdate(custom_attributes={"diameter": 600}), admin_user)
        assert tool.custom_attributes["diameter"] == 6.3

    @pytest.mark.asyncio
    async def test_moving_category_revalidates_stored_values(self, db_session, cutting_tools, admin_user) -> None:
        categories = CategoryService(db_session)
        holders = await categories.create_category(CategoryCreate(name="Holders"))
        await AttributeService(db_session).create_attribute(
            holders.id,
            AttributeDefinitionCreate(
                name="taper", label="Taper", attribute_type=AttributeType.TEXT, is_required=True
            ),
        )
        svc = ToolService(db_session)
        tool = await svc.create_tool(_end_mill(cutting_tools["end_mills"]), admin_user)

        with pytest.raises(ValidationException, match="Taper is required"):
            await svc.update_tool(tool.id, ToolUpdate(category_id=holders.id), admin_user)

    @pytest.mark.asyncio
    async def test_delete_writes_audit_log(self, db_session, cutting_tools, admin_user) -> None:
        svc = ToolService(db_session)
        tool = await svc.create_tool(_end_mill(cutting_tools["end_mills"]), admin_user)
        tool_id = tool.id

        await svc.delete_tool(tool_id, admin_user)

        with pytest.raises(NotFoundException):
            await svc.get_tool(tool_id)
        result = await db_session.execute(select(AuditLog.operation).where(AuditLog.entity_id == tool_id))
        assert sorted(result.scalars().all()) == [AuditOperation.CREATE, AuditOperation.DELETE]

    @pytest.mark.asyncio
    async def test_list_filters(self, db_session, cutting_tools, admin_user) -> None:
        svc = ToolService(db_session)
        await svc.create_tool(_end_mill(cutting_tools["end_mills"], name="Ball Mill 6mm"), admin_user)
        await svc.create_tool(_end_mill(cutting_tools["end_mills"], name="Square Mill 8mm"), admin_user)

        tools, total = await svc.list_tools(search="ball")
        assert total == 1
        assert tools[0].name == "Ball Mill 6mm"

        tools, total = await svc.list_tools(category_id=cutting_tools["end_mills"], limit=1)
        assert total == 2
        assert len(tools) == 1
