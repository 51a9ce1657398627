"""
Dashboard API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies
from core.db import QueryExecutor, get_executor
from core.http import unwrap
from core.schema import SchemaCapabilities, get_capabilities

from . import service

router = APIRouter(prefix="/dashboard", dependencies=[Depends(auth_dependencies.get_current_actor)])


@router.get("/stats")
async def stats(
    db: QueryExecutor = Depends(get_executor),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
) -> dict:
    return unwrap(await service.get_stats(db, majors_archivable=capabilities.major_archivable))


@router.get("/activities")
async def activities(db: QueryExecutor = Depends(get_executor)) -> dict:
    return unwrap(await service.get_activities(db))
