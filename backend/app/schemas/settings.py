"""Pydantic schemas for UI settings endpoints."""
from typing import Any

from pydantic import BaseModel

from app.schemas.catalog_class import CamelModel


class ColumnVisibility(CamelModel):
    special_id: bool = True
    main_category: bool = True
    quality: bool = True
    class_name: bool = True
    class_features: bool = True
    class_weight: bool = True
    class_price: bool = True
    class_video: bool = True


class ColumnVisibilityUpdate(BaseModel):
    columns: dict[str, Any]
