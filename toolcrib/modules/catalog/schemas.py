"""Pydantic request/response schemas for the catalog module."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from toolcrib.models.enums import AttributeType
from toolcrib.modules.catalog.constants import (
    ATTRIBUTE_LABEL_MAX_LENGTH,
    ATTRIBUTE_NAME_MAX_LENGTH,
    ATTRIBUTE_NAME_PATTERN,
)


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    parent_id: uuid.UUID | None = None


class CategoryUpdate(BaseModel):
    """Partial update. An explicit ``parent_id: null`` moves the category to the root."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    parent_id: uuid.UUID | None = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None
    parent_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class CategorySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class CategoryListItem(CategoryResponse):
    children_count: int = 0
    tool_count: int = 0
    attribute_group_count: int = 0


class CategoryTreeNode(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    parent_id: uuid.UUID | None = None
    tool_count: int = 0
    children: list[CategoryTreeNode] = []


class AttributeGroupSummary(BaseModel):
    id: uuid.UUID
    name: str
    sort_order: int
    attribute_count: int = 0


class CategoryDetailResponse(CategoryResponse):
    parent: CategorySummary | None = None
    children: list[CategorySummary] = []
    attribute_groups: list[AttributeGroupSummary] = []
    attribute_count: int = 0
    tool_count: int = 0


# ---------------------------------------------------------------------------
# Attribute Groups
# ---------------------------------------------------------------------------

class AttributeGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sort_order: int | None = Field(None, ge=0)


class AttributeGroupUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    sort_order: int | None = Field(None, ge=0)


class AttributeGroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    category_id: uuid.UUID
    name: str
    sort_order: int
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Attribute Definitions
# ---------------------------------------------------------------------------

class AttributeOption(BaseModel):
    value: str = Field(..., min_length=1, max_length=100)
    label: str = Field(..., min_length=1, max_length=255)


class AttributeDefinitionCreate(BaseModel):
    name: str = Field(..., pattern=ATTRIBUTE_NAME_PATTERN, max_length=ATTRIBUTE_NAME_MAX_LENGTH)
    label: str = Field(..., min_length=1, max_length=ATTRIBUTE_LABEL_MAX_LENGTH)
    attribute_type: AttributeType
    attribute_group_id: uuid.UUID | None = None
    is_required: bool = False
    default_value: Any = None
    options: list[AttributeOption] | None = None
    validation_rules: dict[str, Any] | None = None
    sort_order: int | None = Field(None, ge=0)
    tooltip: str | None = Field(None, max_length=500)
    is_filterable: bool = False
    is_searchable: bool = False


class AttributeDefinitionUpdate(BaseModel):
    """Partial update. ``name`` is the storage key of tool values and cannot change."""

    label: str | None = Field(None, min_length=1, max_length=ATTRIBUTE_LABEL_MAX_LENGTH)
    attribute_type: AttributeType | None = None
    attribute_group_id: uuid.UUID | None = None
    is_required: bool | None = None
    default_value: Any = None
    options: list[AttributeOption] | None = None
    validation_rules: dict[str, Any] | None = None
    sort_order: int | None = Field(None, ge=0)
    tooltip: str | None = Field(None, max_length=500)
    is_filterable: bool | None = None
    is_searchable: bool | None = None


class AttributeDefinitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    category_id: uuid.UUID
    attribute_group_id: uuid.UUID | None
    name: str
    label: str
    attribute_type: AttributeType
    is_required: bool
    default_value: Any = None
    options: list[AttributeOption] | None = None
    validation_rules: dict[str, Any] | None = None
    sort_order: int
    tooltip: str | None
    is_filterable: bool
    is_searchable: bool
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Effective Schema
# ---------------------------------------------------------------------------

class EffectiveGroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    # "no_group" for the trailing ungrouped bucket
    id: str
    name: str
    sort_order: int
    category_id: uuid.UUID | None = None
    attributes: list[AttributeDefinitionResponse] = []


class EffectiveSchemaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: uuid.UUID
    groups: list[EffectiveGroupResponse]


class AttributeValuesValidateRequest(BaseModel):
    values: dict[str, Any] = Field(default_factory=dict)


class ValidationResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_valid: bool
    errors: dict[str, str] = {}
    orphaned_keys: list[str] = []
