"""Tool service — CRUD with custom attributes checked against the category schema."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from toolcrib.exceptions import ConflictException, NotFoundException, ValidationException
from toolcrib.models.audit import AuditLog
from toolcrib.models.enums import AuditOperation
from toolcrib.models.tool import Tool
from toolcrib.modules.auth.auth import AuthenticatedUser
from toolcrib.modules.catalog.schema_resolver import EffectiveSchema, SchemaResolver
from toolcrib.modules.catalog.value_validator import validate_values
from toolcrib.modules.tool.constants import AUDIT_ENTITY_TYPE, TOOL_NUMBER_DIGITS, TOOL_NUMBER_PREFIX
from toolcrib.modules.tool.schemas import ToolCreate, ToolUpdate

logger = logging.getLogger(__name__)


class ToolService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._resolver = SchemaResolver(session)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_tool(self, data: ToolCreate, user: AuthenticatedUser) -> Tool:
        schema = await self._resolver.resolve_effective_schema(data.category_id)

        # Fill in declared defaults for attributes the caller left out
        custom_attributes = dict(data.custom_attributes)
        for definition in schema.definitions:
            if custom_attributes.get(definition.name) is None and definition.default_value is not None:
                custom_attributes[definition.name] = definition.default_value
        self._check_custom_attributes(schema, custom_attributes)

        if data.tool_number is not None:
            tool_number = data.tool_number
            existing = await self._session.execute(
                select(Tool.id).where(Tool.tool_number == tool_number)
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictException(f"Tool number '{tool_number}' already exists")
        else:
            tool_number = await self.generate_tool_number()

        tool = Tool(
            tool_number=tool_number,
            name=data.name,
            description=data.description,
            category_id=data.category_id,
            sku=data.sku,
            serial_number=data.serial_number,
            quantity=data.quantity,
            unit_of_measure=data.unit_of_measure,
            custom_attributes=custom_attributes,
        )
        self._session.add(tool)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            # A concurrent create took the same number between the check and the insert
            if "tool_number" in str(exc):
                raise ConflictException(f"Tool number '{tool_number}' already exists") from exc
            raise

        await self._audit_log(
            entity_id=tool.id,
            operation=AuditOperation.CREATE,
            changed_fields=data.model_dump(mode="json"),
            changed_by_id=user.id,
            version=tool.version,
        )

        logger.info("Created tool %s (%s) in category %s", tool.tool_number, tool.id, tool.category_id)
        return tool

    async def get_tool(self, tool_id: uuid.UUID) -> Tool:
        return await self._get_tool_or_404(tool_id)

    async def list_tools(
        self,
        category_id: uuid.UUID | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Tool], int]:
        stmt = select(Tool)
        count_stmt = select(func.count()).select_from(Tool)

        if category_id is not None:
            stmt = stmt.where(Tool.category_id == category_id)
            count_stmt = count_stmt.where(Tool.category_id == category_id)
        if search is not None:
            escaped = re.sub(r"([%_\\])", r"\\\1", search)
            like_pattern = f"%{escaped}%"
            search_filter = (
                Tool.name.ilike(like_pattern, escape="\\")
                | Tool.tool_number.ilike(like_pattern, escape="\\")
                | Tool.description.ilike(like_pattern, escape="\\")
            )
            stmt = stmt.where(search_filter)
            count_stmt = count_stmt.where(search_filter)

        total_result = await self._session.execute(count_stmt)
        total = total_result.scalar() or 0

        stmt = stmt.order_by(Tool.name, Tool.tool_number).limit(limit).offset(offset)
        result = await self._session.execute(stmt)
        tools = list(result.scalars().all())

        return tools, total

    async def update_tool(
        self,
        tool_id: uuid.UUID,
        data: ToolUpdate,
        user: AuthenticatedUser,
    ) -> Tool:
        tool = await self._get_tool_or_404(tool_id)

        # Optimistic locking check
        if data.version is not None and tool.version != data.version:
            raise ConflictException(
                f"Version conflict: expected {data.version}, actual {tool.version}"
            )

        update_data = data.model_dump(exclude_unset=True, exclude={"version"})
        for field in ("name", "category_id", "quantity", "unit_of_measure", "custom_attributes"):
            if field in update_data and update_data[field] is None:
                del update_data[field]

        # A new category or new values both re-check the stored attribute bag
        if "category_id" in update_data or "custom_attributes" in update_data:
            category_id = update_data.get("category_id", tool.category_id)
            custom_attributes = update_data.get("custom_attributes", tool.custom_attributes)
            schema = await self._resolver.resolve_effective_schema(category_id)
            self._check_custom_attributes(schema, custom_attributes)

        for field, value in update_data.items():
            setattr(tool, field, value)
        tool.version += 1

        await self._session.flush()

        await self._audit_log(
            entity_id=tool.id,
            operation=AuditOperation.UPDATE,
            changed_fields=data.model_dump(mode="json", exclude_unset=True, exclude={"version"}),
            changed_by_id=user.id,
            version=tool.version,
        )
        return tool

    async def delete_tool(self, tool_id: uuid.UUID, user: AuthenticatedUser) -> None:
        tool = await self._get_tool_or_404(tool_id)
        await self._audit_log(
            entity_id=tool.id,
            operation=AuditOperation.DELETE,
            changed_fields=None,
            changed_by_id=user.id,
            version=tool.version,
        )
        await self._session.delete(tool)
        await self._session.flush()
        logger.info("Deleted tool %s (%s)", tool.tool_number, tool_id)

    async def generate_tool_number(self) -> str:
        """Next number after the highest numeric ``TOOL-nnnnn`` suffix.

        Compared as integers so hand-entered numbers such as ``TOOL-SPARE``
        are skipped and ``TOOL-100000`` ranks above ``TOOL-99999``.
        """
        result = await self._session.execute(
            select(Tool.tool_number).where(Tool.tool_number.like(f"{TOOL_NUMBER_PREFIX}%"))
        )
        suffixes = (number[len(TOOL_NUMBER_PREFIX):] for number in result.scalars().all())
        highest = max(
            (int(suffix) for suffix in suffixes if suffix.isascii() and suffix.isdigit()),
            default=0,
        )
        return f"{TOOL_NUMBER_PREFIX}{highest + 1:0{TOOL_NUMBER_DIGITS}d}"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_custom_attributes(self, schema: EffectiveSchema, values: dict[str, Any]) -> None:
        result = validate_values(schema.definitions, values)

        if result.orphaned_keys:
            logger.warning(
                "Custom attributes %s match no definition in category %s",
                ", ".join(result.orphaned_keys),
                schema.category_id,
            )

        if not result.is_valid:
            details = [{"field": name, "message": message} for name, message in result.errors.items()]
            raise ValidationException(message=details[0]["message"], details=details)

    async def _get_tool_or_404(self, tool_id: uuid.UUID) -> Tool:
        tool = await self._session.get(Tool, tool_id)
        if tool is None:
            raise NotFoundException(f"Tool {tool_id} not found")
        return tool

    async def _audit_log(
        self,
        entity_id: uuid.UUID,
        operation: AuditOperation,
        changed_fields: dict | None,
        changed_by_id: uuid.UUID | None,
        version: int,
    ) -> None:
        self._session.add(AuditLog(
            entity_type=AUDIT_ENTITY_TYPE,
            entity_id=entity_id,
            operation=operation,
            changed_fields=changed_fields,
            changed_by_id=changed_by_id,
            version=version,
        ))
        await self._session.flush()
