"""Column visibility for the catalog tables, persisted in ``app_settings``."""
import json
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.app_setting import AppSetting

logger = logging.getLogger(__name__)

SETTINGS_KEY = "column_visibility"

COLUMN_KEYS = (
    "specialId",
    "mainCategory",
    "quality",
    "className",
    "classFeatures",
    "classWeight",
    "classPrice",
    "classVideo",
)
DEFAULT_VISIBILITY: dict[str, bool] = {key: True for key in COLUMN_KEYS}


def normalize_visibility(visibility: Mapping[str, Any] | None) -> dict[str, bool]:
    """Fill in defaults, drop unknown keys, and never hide every column."""
    normalized = dict(DEFAULT_VISIBILITY)
    for key in COLUMN_KEYS:
        if visibility and key in visibility:
            normalized[key] = bool(visibility[key])
    if not any(normalized.values()):
        return dict(DEFAULT_VISIBILITY)
    return normalized


async def get_column_visibility(db: AsyncSession) -> dict[str, bool]:
    row = (
        await db.execute(select(AppSetting).where(AppSetting.key == SETTINGS_KEY))
    ).scalar_one_or_none()
    if row is None:
        return dict(DEFAULT_VISIBILITY)
    try:
        stored = json.loads(row.value)
    except json.JSONDecodeError:
        logger.warning("Stored column visibility is not valid JSON; using defaults")
        return dict(DEFAULT_VISIBILITY)
    if not isinstance(stored, dict):
        return dict(DEFAULT_VISIBILITY)
    return normalize_visibility(stored)


async def set_column_visibility(db: AsyncSession, visibility: Mapping[str, Any]) -> dict[str, bool]:
    normalized = normalize_visibility(visibility)
    value = json.dumps(normalized)

    row = (
        await db.execute(select(AppSetting).where(AppSetting.key == SETTINGS_KEY))
    ).scalar_one_or_none()
    if row is None:
        db.add(AppSetting(key=SETTINGS_KEY, value=value))
    else:
        row.value = value
        db.add(row)
    await db.commit()
    return normalized
