"""Catalog class API endpoints: listing, CRUD, special-ID preview, bulk import."""
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.core.config import settings
from app.core.limiter import limiter
from app.db.session import get_session
from app.models.catalog_class import CatalogClass
from app.schemas.catalog_class import CatalogClassOut, DeleteResponse, NextSpecialIdResponse
from app.schemas.imports import BulkUploadFailure, BulkUploadResult
from app.services import bulk_import as bulk_svc
from app.services import storage as storage_svc
from app.services.class_payload import ClassPayloadError, parse_class_payload
from app.services.special_id import InvalidPrefixError, next_special_id

logger = logging.getLogger(__name__)

router = APIRouter()

# ─── Constants ───

VIDEO_FIELD = "classVideo"
SPREADSHEET_EXTENSIONS = (".xlsx", ".xlsm")


# ─── Helpers ───

async def _read_class_input(request: Request) -> tuple[dict[str, Any], StarletteUploadFile | None]:
    """Return (raw fields, optional video upload) from a form or JSON body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Expected a JSON object.",
            )
        return body, None

    form = await request.form()
    raw: dict[str, Any] = {}
    video: StarletteUploadFile | None = None
    for key, value in form.multi_items():
        if isinstance(value, StarletteUploadFile):
            if key == VIDEO_FIELD and value.filename:
                video = value
            continue
        raw[key] = value
    return raw, video


def _parse_or_422(raw: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    try:
        return parse_class_payload(raw, partial=partial)
    except ClassPayloadError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message)


async def _store_video(video: StarletteUploadFile) -> str:
    try:
        return await storage_svc.save_video(video)
    except storage_svc.VideoUploadError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)


async def _get_or_404(db: AsyncSession, class_id: int) -> CatalogClass:
    record = (
        await db.execute(select(CatalogClass).where(CatalogClass.id == class_id))
    ).scalar_one_or_none()
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found.")
    return record


async def _ensure_unique(db: AsyncSession, special_id: str, exclude_id: int | None = None) -> None:
    stmt = select(CatalogClass.id).where(CatalogClass.special_id == special_id)
    if exclude_id is not None:
        stmt = stmt.where(CatalogClass.id != exclude_id)
    if (await db.execute(stmt)).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Special ID '{special_id}' already exists.",
        )


async def _commit_or_409(db: AsyncSession, special_id: str, new_video: str | None) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        storage_svc.delete_video(new_video)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Special ID '{special_id}' already exists.",
        )
    except Exception:
        storage_svc.delete_video(new_video)
        raise


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ─── List classes ───

@router.get(
    "",
    response_model=list[CatalogClassOut],
    summary="List classes with optional search and filters",
)
async def list_classes(
    db: Annotated[AsyncSession, Depends(get_session)],
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    quality: str | None = Query(default=None),
):
    stmt = select(CatalogClass)

    if search and search.strip():
        term = _like_pattern(search.strip())
        stmt = stmt.where(
            or_(
                CatalogClass.special_id.ilike(term, escape="\\"),
                CatalogClass.class_name.ilike(term, escape="\\"),
                CatalogClass.class_name_arabic.ilike(term, escape="\\"),
                CatalogClass.class_name_english.ilike(term, escape="\\"),
                CatalogClass.class_features.ilike(term, escape="\\"),
                CatalogClass.main_category.ilike(term, escape="\\"),
                CatalogClass.quality.ilike(term, escape="\\"),
            )
        )
    if category:
        stmt = stmt.where(CatalogClass.main_category == category.strip())
    if quality:
        stmt = stmt.where(CatalogClass.quality == quality.strip())

    rows = (await db.execute(stmt.order_by(CatalogClass.id.asc()))).scalars().all()
    return [CatalogClassOut.model_validate(r) for r in rows]


# ─── Next special ID ───

@router.get(
    "/next-id",
    response_model=NextSpecialIdResponse,
    summary="Preview the next special ID for a prefix",
)
async def get_next_special_id(
    db: Annotated[AsyncSession, Depends(get_session)],
    prefix: str | None = Query(default=None),
):
    try:
        special_id = await next_special_id(db, prefix)
    except InvalidPrefixError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return NextSpecialIdResponse(special_id=special_id)


# ─── Bulk upload ───

@router.post(
    "/bulk",
    response_model=BulkUploadResult,
    summary="Bulk import classes from an Excel spreadsheet",
    responses={500: {"model": BulkUploadFailure}},
)
@limiter.limit(settings.BULK_UPLOAD_RATE_LIMIT)
async def bulk_upload_classes(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_session)],
    file: UploadFile = File(...),
):
    filename = (file.filename or "").lower()
    if not filename.endswith(SPREADSHEET_EXTENSIONS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Upload an Excel .xlsx file.",
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty.")
    if len(content) > settings.MAX_SPREADSHEET_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.MAX_SPREADSHEET_SIZE_MB} MB limit ({len(content)} bytes).",
        )

    try:
        return await bulk_svc.import_workbook(db, content)
    except bulk_svc.SpreadsheetError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except bulk_svc.BulkImportAborted as exc:
        failure = BulkUploadFailure(
            message=f"Import stopped at row {exc.failed_row}; earlier rows were saved.",
            failed_row=exc.failed_row,
            **exc.result.model_dump(),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=failure.model_dump(mode="json", by_alias=True),
        )


# ─── Get class ───

@router.get(
    "/{class_id}",
    response_model=CatalogClassOut,
    summary="Get a single class",
)
async def get_class(
    class_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
):
    return CatalogClassOut.model_validate(await _get_or_404(db, class_id))


# ─── Create class ───

@router.post(
    "",
    response_model=CatalogClassOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a class (multipart form with optional video)",
)
async def create_class(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_session)],
):
    raw, video = await _read_class_input(request)
    fields = _parse_or_422(raw)

    if not fields.get("class_name"):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Class name is required.")

    if fields.get("special_id"):
        await _ensure_unique(db, fields["special_id"])
    else:
        fields["special_id"] = await next_special_id(db)

    new_video = None
    if video is not None:
        new_video = fields["class_video"] = await _store_video(video)

    record = CatalogClass(**fields)
    db.add(record)
    await _commit_or_409(db, fields["special_id"], new_video)
    await db.refresh(record)

    logger.info("Created class %s (id=%s)", record.special_id, record.id)
    return CatalogClassOut.model_validate(record)


# ─── Update class ───

@router.put(
    "/{class_id}",
    response_model=CatalogClassOut,
    summary="Update a class (multipart form with optional replacement video)",
)
async def update_class(
    class_id: int,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_session)],
):
    record = await _get_or_404(db, class_id)
    raw, video = await _read_class_input(request)
    updates = _parse_or_422(raw, partial=True)

    if "class_name" in updates and not updates["class_name"]:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Class name is required.")

    if updates.get("special_id") and updates["special_id"] != record.special_id:
        await _ensure_unique(db, updates["special_id"], exclude_id=record.id)

    old_video = record.class_video
    new_video = None
    if video is not None:
        new_video = updates["class_video"] = await _store_video(video)

    for field, value in updates.items():
        setattr(record, field, value)
    db.add(record)
    await _commit_or_409(db, record.special_id, new_video)
    await db.refresh(record)

    if old_video and old_video != record.class_video:
        storage_svc.delete_video(old_video)

    logger.info("Updated class %s (id=%s)", record.special_id, record.id)
    return CatalogClassOut.model_validate(record)


# ─── Delete ───

@router.delete(
    "/{class_id}",
    response_model=DeleteResponse,
    summary="Delete a class and its uploaded video",
)
async def delete_class(
    class_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
):
    record = await _get_or_404(db, class_id)
    video = record.class_video

    await db.delete(record)
    await db.commit()
    storage_svc.delete_video(video)

    logger.info("Deleted class %s (id=%s)", record.special_id, class_id)
    return DeleteResponse(message="Class deleted.", deleted_count=1)


@router.delete(
    "",
    response_model=DeleteResponse,
    summary="Delete every class and every uploaded video",
)
async def delete_all_classes(
    db: Annotated[AsyncSession, Depends(get_session)],
):
    videos = (await db.execute(select(CatalogClass.class_video))).scalars().all()

    result = await db.execute(delete(CatalogClass))
    await db.commit()

    for video in videos:
        storage_svc.delete_video(video)

    deleted = result.rowcount or 0
    logger.info("Deleted all classes (%d rows)", deleted)
    return DeleteResponse(message="All classes deleted.", deleted_count=deleted)
