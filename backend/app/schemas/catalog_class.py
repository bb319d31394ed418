"""Pydantic schemas for catalog class endpoints.

Field names are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ─── Record ───

class CatalogClassOut(CamelModel):
    id: int
    special_id: str
    main_category: str | None = None
    quality: str | None = None
    class_name: str
    class_name_arabic: str | None = None
    class_name_english: str | None = None
    class_features: str | None = None
    class_weight: float | None = None
    class_price: float | None = None
    class_quantity: int | None = None
    class_video: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ─── Misc responses ───

class NextSpecialIdResponse(CamelModel):
    special_id: str


class DeleteResponse(CamelModel):
    message: str
    deleted_count: int
