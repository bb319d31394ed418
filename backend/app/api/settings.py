"""UI settings endpoints (catalog column visibility)."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session
from app.schemas.settings import ColumnVisibility, ColumnVisibilityUpdate
from app.services import column_settings as column_svc

router = APIRouter()


@router.get(
    "/columns",
    response_model=ColumnVisibility,
    summary="Get catalog column visibility",
)
async def get_columns(
    db: Annotated[AsyncSession, Depends(get_session)],
):
    return ColumnVisibility.model_validate(await column_svc.get_column_visibility(db))


@router.put(
    "/columns",
    response_model=ColumnVisibility,
    summary="Update catalog column visibility",
)
async def update_columns(
    body: ColumnVisibilityUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
):
    normalized = await column_svc.set_column_visibility(db, body.columns)
    return ColumnVisibility.model_validate(normalized)
