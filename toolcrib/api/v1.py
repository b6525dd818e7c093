"""Centralized v1 API router — all module routers are included here."""

from fastapi import APIRouter

from toolcrib.modules.catalog.router import category_router
from toolcrib.modules.tool.router import tool_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(category_router)
v1_router.include_router(tool_router)
