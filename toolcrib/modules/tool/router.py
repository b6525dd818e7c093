"""Tool module API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from toolcrib.app import limiter
from toolcrib.database.session import get_db
from toolcrib.modules.auth.auth import AuthenticatedUser, get_current_user
from toolcrib.modules.tool.schemas import ToolCreate, ToolListResponse, ToolResponse, ToolUpdate
from toolcrib.modules.tool.service import ToolService
from toolcrib.schemas.responses import ERROR_RESPONSES

tool_router = APIRouter(prefix="/tools", tags=["tools"], responses=ERROR_RESPONSES)


@tool_router.get("", response_model=ToolListResponse)
@limiter.limit("60/minute")
async def list_tools(
    request: Request,
    category_id: uuid.UUID | None = None,
    search: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> ToolListResponse:
    svc = ToolService(db)
    tools, total = await svc.list_tools(
        category_id=category_id,
        search=search,
        limit=limit,
        offset=offset,
    )
    return ToolListResponse(
        items=[ToolResponse.model_validate(t) for t in tools],
        total=total,
        limit=limit,
        offset=offset,
    )


@tool_router.post("", response_model=ToolResponse, status_code=201)
@limiter.limit("30/minute")
async def create_tool(
    request: Request,
    data: ToolCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> ToolResponse:
    svc = ToolService(db)
    tool = await svc.create_tool(data, user)
    return ToolResponse.model_validate(tool)


@tool_router.get("/{tool_id}", response_model=ToolResponse)
@limiter.limit("60/minute")
async def get_tool(
    request: Request,
    tool_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> ToolResponse:
    svc = ToolService(db)
    tool = await svc.get_tool(tool_id)
    return ToolResponse.model_validate(tool)


@tool_router.put("/{tool_id}", response_model=ToolResponse)
@limiter.limit("30/minute")
async def update_tool(
    request: Request,
    tool_id: uuid.UUID,
    data: ToolUpdate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> ToolResponse:
    svc = ToolService(db)
    tool = await svc.update_tool(tool_id, data, user)
    return ToolResponse.model_validate(tool)


@tool_router.delete("/{tool_id}", status_code=204)
@limiter.limit("30/minute")
async def delete_tool(
    request: Request,
    tool_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> None:
    svc = ToolService(db)
    await svc.delete_tool(tool_id, user)
