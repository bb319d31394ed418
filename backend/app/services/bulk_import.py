"""Spreadsheet bulk import of catalog classes.

Rows are read from the first worksheet of an .xlsx workbook (header in row 1),
normalized one at a time and persisted in file order. Rows that fail
validation are reported as ``{index, reason}`` and do not stop the import.
Each imported row is committed on its own, so a store failure midway leaves
earlier rows in place; it aborts the rest of the file with
``BulkImportAborted`` carrying the partial report.
"""
import io
import logging
import re
import zipfile
from collections.abc import Iterable, Mapping
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.catalog_class import CatalogClass
from app.schemas.imports import BulkUploadResult, SkippedRow
from app.services.class_payload import ClassPayloadError, parse_class_payload
from app.services.special_id import next_special_id

logger = logging.getLogger(__name__)

# ─── Column mapping ───

# normalized header -> payload field
HEADER_ALIASES: dict[str, str] = {
    "specialid": "specialId",
    "maincategory": "mainCategory",
    "category": "mainCategory",
    "group": "quality",
    "quality": "quality",
    "classname": "className",
    "classnamearabic": "classNameArabic",
    "arabicname": "classNameArabic",
    "classnameenglish": "classNameEnglish",
    "englishname": "classNameEnglish",
    "classfeatures": "classFeatures",
    "features": "classFeatures",
    "classprice": "classPrice",
    "price": "classPrice",
    "classkg": "classWeight",
    "classweight": "classWeight",
    "weight": "classWeight",
    "weightkg": "classWeight",
    "classquantity": "classQuantity",
    "quantity": "classQuantity",
    "classvideo": "classVideoUrl",
    "video": "classVideoUrl",
    "classvideourl": "classVideoUrl",
}
REQUIRED_FIELD = "className"


class SpreadsheetError(Exception):
    """The upload cannot be read as a class spreadsheet at all."""


class BulkImportAborted(Exception):
    """A store failure stopped the import; ``result`` holds what was done so far."""

    def __init__(self, result: BulkUploadResult, failed_row: int, cause: Exception):
        self.result = result
        self.failed_row = failed_row
        self.cause = cause
        super().__init__(f"Bulk import aborted at row {failed_row}: {cause}")


def _normalize_header(value: Any) -> str:
    return re.sub(r"[\s_\-()]+", "", str(value or "")).lower()


def _is_blank_row(values: Iterable[Any]) -> bool:
    return all(v is None or str(v).strip() == "" for v in values)


# ─── Reading ───

def read_workbook_rows(content: bytes) -> list[tuple[int, dict[str, Any]]]:
    """Parse the first worksheet into ``(index, raw_payload)`` pairs.

    ``index`` is the 1-based data row position (header excluded). Completely
    blank rows are dropped but keep their place in the numbering.
    """
    try:
        workbook = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise SpreadsheetError("Unable to read the uploaded file. Upload an .xlsx spreadsheet.") from exc

    try:
        sheet = workbook.worksheets[0] if workbook.worksheets else None
        if sheet is None:
            raise SpreadsheetError("The spreadsheet has no worksheets.")

        rows_iter = sheet.iter_rows(values_only=True)
        header = next(rows_iter, None)
        if header is None:
            raise SpreadsheetError("The spreadsheet is empty.")

        columns: dict[int, str] = {}
        for pos, cell in enumerate(header):
            field = HEADER_ALIASES.get(_normalize_header(cell))
            if field and field not in columns.values():
                columns[pos] = field
        if REQUIRED_FIELD not in columns.values():
            raise SpreadsheetError("Missing required column: Class Name.")

        rows: list[tuple[int, dict[str, Any]]] = []
        for index, values in enumerate(rows_iter, start=1):
            if values is None or _is_blank_row(values):
                continue
            raw = {
                field: (values[pos] if pos < len(values) else None)
                for pos, field in columns.items()
            }
            rows.append((index, raw))
        return rows
    finally:
        workbook.close()


# ─── Import ───

async def _special_id_exists(db: AsyncSession, special_id: str) -> bool:
    result = await db.execute(
        select(CatalogClass.id).where(CatalogClass.special_id == special_id)
    )
    return result.scalar_one_or_none() is not None


async def import_rows(
    db: AsyncSession,
    rows: Iterable[tuple[int, Mapping[str, Any]]],
) -> BulkUploadResult:
    """Validate and persist rows sequentially, collecting a skip report."""
    result = BulkUploadResult()
    seen_ids: set[str] = set()

    def skip(index: int, reason: str) -> None:
        logger.debug("Bulk import row %d skipped: %s", index, reason)
        result.skipped.append(SkippedRow(index=index, reason=reason))
        result.skipped_count += 1

    for index, raw in rows:
        try:
            fields = parse_class_payload(raw)
        except ClassPayloadError as exc:
            skip(index, exc.message)
            continue

        if not fields.get("class_name"):
            skip(index, "Class name is required.")
            continue

        special_id = fields.get("special_id")
        try:
            if special_id:
                if special_id in seen_ids:
                    skip(index, f"Special ID {special_id} is duplicated in this file.")
                    continue
                if await _special_id_exists(db, special_id):
                    skip(index, f"Special ID {special_id} already exists.")
                    continue
            else:
                fields["special_id"] = special_id = await next_special_id(db)

            db.add(CatalogClass(**fields))
            await db.commit()
        except IntegrityError:
            await db.rollback()
            skip(index, f"Special ID {special_id} already exists.")
            continue
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Bulk import aborted at row %d: %s", index, exc)
            raise BulkImportAborted(result, index, exc) from exc

        seen_ids.add(special_id)
        result.processed_count += 1

    logger.info(
        "Bulk import finished: %d processed, %d skipped",
        result.processed_count, result.skipped_count,
    )
    return result


async def import_workbook(db: AsyncSession, content: bytes) -> BulkUploadResult:
    """Read an .xlsx upload and import its rows."""
    rows = read_workbook_rows(content)
    return await import_rows(db, rows)
