"""Catalog module API router — categories, attribute groups, attribute definitions."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from toolcrib.app import limiter
from toolcrib.database.session import get_db
from toolcrib.modules.auth.auth import AuthenticatedUser, get_current_user
from toolcrib.modules.auth.dependencies import require_catalog_editor
from toolcrib.modules.catalog.attribute_group_service import AttributeGroupService
from toolcrib.modules.catalog.attribute_service import AttributeService
from toolcrib.modules.catalog.cache import EffectiveSchemaCache, get_schema_cache
from toolcrib.modules.catalog.category_service import CategoryService
from toolcrib.modules.catalog.schema_resolver import SchemaResolver
from toolcrib.modules.catalog.schemas import (
    AttributeDefinitionCreate,
    AttributeDefinitionResponse,
    AttributeDefinitionUpdate,
    AttributeGroupCreate,
    AttributeGroupResponse,
    AttributeGroupUpdate,
    AttributeValuesValidateRequest,
    CategoryCreate,
    CategoryDetailResponse,
    CategoryListItem,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdate,
    EffectiveSchemaResponse,
    ValidationResultResponse,
)
from toolcrib.modules.catalog.value_validator import validate_values
from toolcrib.schemas.responses import ERROR_RESPONSES

category_router = APIRouter(prefix="/categories", tags=["categories"], responses=ERROR_RESPONSES)


# --- Static category routes FIRST (before /{category_id}) ---


@category_router.get("", response_model=list[CategoryListItem])
@limiter.limit("120/minute")
async def list_categories(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[CategoryListItem]:
    svc = CategoryService(db)
    return await svc.get_all_categories()


@category_router.get("/tree", response_model=list[CategoryTreeNode])
@limiter.limit("120/minute")
async def get_category_tree(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[CategoryTreeNode]:
    svc = CategoryService(db)
    return await svc.get_category_tree()


@category_router.post("", response_model=CategoryResponse, status_code=201)
@limiter.limit("30/minute")
async def create_category(
    request: Request,
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_catalog_editor),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> CategoryResponse:
    svc = CategoryService(db)
    category = await svc.create_category(data)
    await cache.invalidate_all()
    return CategoryResponse.model_validate(category)


# --- Parameterized category routes ---


@category_router.get("/{category_id}", response_model=CategoryDetailResponse)
@limiter.limit("120/minute")
async def get_category(
    request: Request,
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> CategoryDetailResponse:
    svc = CategoryService(db)
    return await svc.get_category_detail(category_id)


@category_router.put("/{category_id}", response_model=CategoryResponse)
@limiter.limit("30/minute")
async def update_category(
    request: Request,
    category_id: uuid.UUID,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_catalog_editor),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> CategoryResponse:
    svc = CategoryService(db)
    category = await svc.update_category(category_id, data)
    await cache.invalidate_all()
    return CategoryResponse.model_validate(category)


@category_router.delete("/{category_id}", status_code=204)
@limiter.limit("30/minute")
async def delete_category(
    request: Request,
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_catalog_editor),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> None:
    svc = CategoryService(db)
    await svc.delete_category(category_id)
    await cache.invalidate_all()


# --- Effective schema ---


@category_router.get("/{category_id}/attributes", response_model=EffectiveSchemaResponse)
@limiter.limit("120/minute")
async def get_effective_schema(
    request: Request,
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> dict:
    async def _resolve() -> dict:
        schema = await SchemaResolver(db).resolve_effective_schema(category_id)
        return EffectiveSchemaResponse.model_validate(schema).model_dump(mode="json")

    return await cache.get_or_set(category_id, _resolve)


@category_router.post("/{category_id}/attributes/validate", response_model=ValidationResultResponse)
@limiter.limit("60/minute")
async def validate_attribute_values(
    request: Request,
    category_id: uuid.UUID,
    data: AttributeValuesValidateRequest,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> ValidationResultResponse:
    schema = await SchemaResolver(db).resolve_effective_schema(category_id)
    result = validate_values(schema.definitions, data.values)
    return ValidationResultResponse.model_validate(result)


# --- Attribute groups ---


@category_router.get("/{category_id}/attribute-groups", response_model=list[AttributeGroupResponse])
@limiter.limit("120/minute")
async def list_attribute_groups(
    request: Request,
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[AttributeGroupResponse]:
    svc = AttributeGroupService(db)
    groups = await svc.list_groups(category_id)
    return [AttributeGroupResponse.model_validate(g) for g in groups]


@category_router.post(
    "/{category_id}/attribute-groups",
    response_model=AttributeGroupResponse,
    status_code=201,
)
@limiter.limit("30/minute")
async def create_attribute_group(
    request: Request,
    category_id: uuid.UUID,
    data: AttributeGroupCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_catalog_editor),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> AttributeGroupResponse:
    svc = AttributeGroupService(db)
    group = await svc.create_group(category_id, data)
    await cache.invalidate_all()
    return AttributeGroupResponse.model_validate(group)


@category_router.put(
    "/{category_id}/attribute-groups/{group_id}",
    response_model=AttributeGroupResponse,
)
@limiter.limit("30/minute")
async def update_attribute_group(
    request: Request,
    category_id: uuid.UUID,
    group_id: uuid.UUID,
    data: AttributeGroupUpdate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_catalog_editor),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> AttributeGroupResponse:
    svc = AttributeGroupService(db)
    group = await svc.update_group(category_id, group_id, data)
    await cache.invalidate_all()
    return AttributeGroupResponse.model_validate(group)


@category_router.delete("/{category_id}/attribute-groups/{group_id}", status_code=204)
@limiter.limit("30/minute")
async def delete_attribute_group(
    request: Request,
    category_id: uuid.UUID,
    group_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_catalog_editor),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> None:
    svc = AttributeGroupService(db)
    await svc.delete_group(category_id, group_id)
    await cache.invalidate_all()


# --- Attribute definitions ---


@category_router.get(
    "/{category_id}/attribute-definitions",
    response_model=list[AttributeDefinitionResponse],
)
@limiter.limit("120/minute")
async def list_attribute_definitions(
    request: Request,
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[AttributeDefinitionResponse]:
    svc = AttributeService(db)
    attributes = await svc.list_attributes(category_id)
    return [AttributeDefinitionResponse.model_validate(a) for a in attributes]


@category_router.post(
    "/{category_id}/attributes",
    response_model=AttributeDefinitionResponse,
    status_code=201,
)
@limiter.limit("30/minute")
async def create_attribute_definition(
    request: Request,
    category_id: uuid.UUID,
    data: AttributeDefinitionCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_catalog_editor),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> AttributeDefinitionResponse:
    svc = AttributeService(db)
    attribute = await svc.create_attribute(category_id, data)
    await cache.invalidate_all()
    return AttributeDefinitionResponse.model_validate(attribute)


@category_router.put(
    "/{category_id}/attributes/{attribute_id}",
    response_model=AttributeDefinitionResponse,
)
@limiter.limit("30/minute")
async def update_attribute_definition(
    request: Request,
    category_id: uuid.UUID,
    attribute_id: uuid.UUID,
    data: AttributeDefinitionUpdate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_catalog_editor),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> AttributeDefinitionResponse:
    svc = AttributeService(db)
    attribute = await svc.update_attribute(category_id, attribute_id, data)
    await cache.invalidate_all()
    return AttributeDefinitionResponse.model_validate(attribute)


@category_router.delete("/{category_id}/attributes/{attribute_id}", status_code=204)
@limiter.limit("30/minute")
async def delete_attribute_definition(
    request: Request,
    category_id: uuid.UUID,
    attribute_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_catalog_editor),
    cache: EffectiveSchemaCache = Depends(get_schema_cache),
) -> None:
    svc = AttributeService(db)
    await svc.delete_attribute(category_id, attribute_id)
    await cache.invalidate_all()
