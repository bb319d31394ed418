"""Pydantic schemas for spreadsheet bulk import results."""
from app.schemas.catalog_class import CamelModel


class SkippedRow(CamelModel):
    index: int
    reason: str


class BulkUploadResult(CamelModel):
    processed_count: int = 0
    skipped_count: int = 0
    skipped: list[SkippedRow] = []


class BulkUploadFailure(BulkUploadResult):
    """Partial report returned when a store failure aborts an import midway."""

    message: str
    failed_row: int
