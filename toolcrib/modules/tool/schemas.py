"""Pydantic request/response schemas for the tool module."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from toolcrib.modules.tool.constants import DEFAULT_UNIT_OF_MEASURE


class ToolCreate(BaseModel):
    # Generated as TOOL-00001, TOOL-00002, ... when omitted
    tool_number: str | None = Field(None, min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    category_id: uuid.UUID
    sku: str | None = Field(None, max_length=100)
    serial_number: str | None = Field(None, max_length=100)
    quantity: int = Field(0, ge=0)
    unit_of_measure: str = Field(DEFAULT_UNIT_OF_MEASURE, min_length=1, max_length=50)
    custom_attributes: dict[str, Any] = Field(default_factory=dict)


class ToolUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    category_id: uuid.UUID | None = None
    sku: str | None = Field(None, max_length=100)
    serial_number: str | None = Field(None, max_length=100)
    quantity: int | None = Field(None, ge=0)
    unit_of_measure: str | None = Field(None, min_length=1, max_length=50)
    custom_attributes: dict[str, Any] | None = None
    version: int | None = Field(None, description="Expected version for optimistic locking")


class ToolResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tool_number: str
    name: str
    description: str | None
    category_id: uuid.UUID
    sku: str | None
    serial_number: str | None
    quantity: int
    unit_of_measure: str
    custom_attributes: dict[str, Any]
    version: int
    created_at: datetime
    updated_at: datetime


class ToolListResponse(BaseModel):
    items: list[ToolResponse]
    total: int
    limit: int
    offset: int
