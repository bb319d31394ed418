"""Tests for spreadsheet bulk import.

Service-level tests run against an in-memory SQLite session; the endpoint
tests go through the ASGI app with the session dependency overridden.
"""
from unittest.mock import patch

import pytest
from sqlalchemy import delete, select
from sqlalchemy.exc import OperationalError

from app.models.catalog_class import CatalogClass
from app.services.bulk_import import (
    BulkImportAborted,
    SpreadsheetError,
    import_rows,
    import_workbook,
    read_workbook_rows,
)


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _row(name, special_id=None, price=None, weight=None, category="Chairs", group="Standard", video=None):
    return [special_id, category, group, name, None, price, weight, video]


async def _special_ids(db) -> list[str]:
    result = await db.execute(select(CatalogClass.special_id).order_by(CatalogClass.id))
    return list(result.scalars().all())


# ─── Reading ──────────────────────────────────────────────────────────────────

def test_read_rows_maps_headers_and_indexes_from_one(build_workbook):
    content = build_workbook([_row("Oak Chair", "cr05", 12.5, 3), _row("Pine Chair")])

    rows = read_workbook_rows(content)

    assert [index for index, _ in rows] == [1, 2]
    first = rows[0][1]
    assert first["specialId"] == "cr05"
    assert first["mainCategory"] == "Chairs"
    assert first["quality"] == "Standard"
    assert first["className"] == "Oak Chair"
    assert first["classPrice"] == 12.5
    assert first["classWeight"] == 3


def test_read_rows_header_matching_is_lenient(build_workbook):
    content = build_workbook(
        [["Table", "45", "tables", "Extra"]],
        header=["class_name", "PRICE", "main category", "Unknown Column"],
    )

    rows = read_workbook_rows(content)

    assert rows == [(1, {"className": "Table", "classPrice": "45", "mainCategory": "tables"})]


def test_blank_rows_are_dropped_but_keep_numbering(build_workbook):
    content = build_workbook([_row("A"), ["  ", None, None, None], _row("C")])

    rows = read_workbook_rows(content)

    assert [index for index, _ in rows] == [1, 3]


def test_missing_class_name_column_rejected(build_workbook):
    content = build_workbook([["CR01", "Chairs"]], header=["Special ID", "Main Category"])

    with pytest.raises(SpreadsheetError):
        read_workbook_rows(content)


def test_unreadable_file_rejected():
    with pytest.raises(SpreadsheetError):
        read_workbook_rows(b"this is not a spreadsheet")


# ─── Import ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_row_with_empty_class_name_is_skipped(db, build_workbook):
    content = build_workbook([_row("A"), _row("B"), _row(""), _row("D"), _row("E")])

    result = await import_workbook(db, content)

    assert result.processed_count == 4
    assert result.skipped_count == 1
    assert len(result.skipped) == 1
    assert result.skipped[0].index == 3
    assert result.skipped[0].reason
    assert await _special_ids(db) == ["CR01", "CR02", "CR03", "CR04"]


@pytest.mark.asyncio
async def test_invalid_numeric_value_is_skipped_with_reason(db, build_workbook):
    content = build_workbook([_row("A", price="abc"), _row("B", weight="1.5")])

    result = await import_workbook(db, content)

    assert result.processed_count == 1
    assert result.skipped[0].index == 1
    assert "Invalid numeric value" in result.skipped[0].reason


@pytest.mark.asyncio
async def test_explicit_ids_and_generated_ids_interleave(db, build_workbook):
    content = build_workbook([_row("A", "cr07"), _row("B"), _row("C")])

    result = await import_workbook(db, content)

    assert result.processed_count == 3
    assert await _special_ids(db) == ["CR07", "CR08", "CR09"]


@pytest.mark.asyncio
async def test_duplicate_special_id_within_file_is_skipped(db, build_workbook):
    content = build_workbook([_row("A", "CR10"), _row("B", "cr10")])

    result = await import_workbook(db, content)

    assert result.processed_count == 1
    assert result.skipped_count == 1
    assert result.skipped[0].index == 2
    assert "CR10" in result.skipped[0].reason


@pytest.mark.asyncio
async def test_special_id_already_in_store_is_skipped(db, build_workbook):
    db.add(CatalogClass(special_id="CR01", class_name="Existing"))
    await db.commit()

    result = await import_workbook(db, build_workbook([_row("New", "CR01"), _row("Other")]))

    assert result.processed_count == 1
    assert result.skipped[0].index == 1
    assert "already exists" in result.skipped[0].reason
    assert await _special_ids(db) == ["CR01", "CR02"]


@pytest.mark.asyncio
async def test_video_column_and_numbers_are_stored(db, build_workbook):
    content = build_workbook([_row("A", price="19.99", weight=2, video=" https://cdn.example.com/a.mp4 ")])

    await import_workbook(db, content)

    record = (await db.execute(select(CatalogClass))).scalar_one()
    assert float(record.class_price) == pytest.approx(19.99)
    assert float(record.class_weight) == 2
    assert record.class_video == "https://cdn.example.com/a.mp4"


@pytest.mark.asyncio
async def test_import_is_deterministic_on_replay(db, build_workbook):
    content = build_workbook([
        _row("A"), _row("", "CR40"), _row("C", "cr05"), _row("D", price="x"), _row("E"),
    ])

    first = await import_workbook(db, content)
    first_ids = await _special_ids(db)

    await db.execute(delete(CatalogClass))
    await db.commit()

    second = await import_workbook(db, content)

    assert first == second
    assert await _special_ids(db) == first_ids == ["CR01", "CR05", "CR06"]


@pytest.mark.asyncio
async def test_store_failure_aborts_and_keeps_earlier_rows(db):
    rows = [(1, {"className": "A"}), (2, {"className": "B"}), (3, {"className": "C"})]

    real_commit = db.commit
    calls = {"n": 0}

    async def flaky_commit():
        calls["n"] += 1
        if calls["n"] == 2:
            raise OperationalError("INSERT INTO classes", {}, Exception("database is locked"))
        await real_commit()

    with patch.object(db, "commit", new=flaky_commit):
        with pytest.raises(BulkImportAborted) as exc_info:
            await import_rows(db, rows)

    assert exc_info.value.failed_row == 2
    assert exc_info.value.result.processed_count == 1
    assert await _special_ids(db) == ["CR01"]


@pytest.mark.asyncio
async def test_oversized_values_are_skipped_not_aborted(db, build_workbook):
    content = build_workbook([
        _row("A"), _row("B", price="1e20"), _row("x" * 300), _row("D", "CR" + "9" * 60), _row("E"),
    ])

    result = await import_workbook(db, content)

    assert result.processed_count == 2
    assert [s.index for s in result.skipped] == [2, 3, 4]
    assert "out of range" in result.skipped[0].reason
    assert "exceeds 255 characters" in result.skipped[1].reason
    assert "exceeds 50 characters" in result.skipped[2].reason
    assert await _special_ids(db) == ["CR01", "CR02"]


@pytest.mark.asyncio
async def test_conflict_at_insert_time_becomes_skip_entry(db, monkeypatch):
    async def not_found(db, special_id):
        return False

    db.add(CatalogClass(special_id="CR01", class_name="Existing"))
    await db.commit()
    monkeypatch.setattr("app.services.bulk_import._special_id_exists", not_found)

    result = await import_rows(db, [(1, {"className": "A", "specialId": "CR01"}), (2, {"className": "B"})])

    assert result.processed_count == 1
    assert [(s.index, s.reason) for s in result.skipped] == [(1, "Special ID CR01 already exists.")]
    assert await _special_ids(db) == ["CR01", "CR02"]


# ─── Endpoint ─────────────────────────────────────────────────────────────────

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.mark.asyncio
async def test_bulk_endpoint_returns_camel_case_report(client, build_workbook):
    content = build_workbook([_row("A"), _row(""), _row("C", price="bad")])

    response = await client.post(
        "/api/classes/bulk",
        files={"file": ("classes.xlsx", content, XLSX_MIME)},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["processedCount"] == 1
    assert data["skippedCount"] == 2
    assert [s["index"] for s in data["skipped"]] == [2, 3]

    listing = (await client.get("/api/classes")).json()
    assert [c["specialId"] for c in listing] == ["CR01"]


@pytest.mark.asyncio
async def test_bulk_endpoint_rejects_non_excel_upload(client):
    response = await client.post(
        "/api/classes/bulk",
        files={"file": ("classes.csv", b"className\nA\n", "text/csv")},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_bulk_endpoint_rejects_corrupt_workbook(client):
    response = await client.post(
        "/api/classes/bulk",
        files={"file": ("classes.xlsx", b"not really a workbook", XLSX_MIME)},
    )
    assert response.status_code == 400
    assert "xlsx" in response.json()["detail"]


@pytest.mark.asyncio
async def test_bulk_endpoint_reports_partial_result_when_store_fails(client, build_workbook, monkeypatch):
    async def failing_next_id(db, prefix=None):
        raise OperationalError("SELECT special_id FROM classes", {}, Exception("database is locked"))

    monkeypatch.setattr("app.services.bulk_import.next_special_id", failing_next_id)
    content = build_workbook([_row("A", "CR01"), _row("", "CR02"), _row("C"), _row("D", "CR04")])

    response = await client.post(
        "/api/classes/bulk",
        files={"file": ("classes.xlsx", content, XLSX_MIME)},
    )

    assert response.status_code == 500
    data = response.json()
    assert data["processedCount"] == 1
    assert data["skippedCount"] == 1
    assert data["failedRow"] == 3
    assert data["message"] == "Import stopped at row 3; earlier rows were saved."

    listing = (await client.get("/api/classes")).json()
    assert [c["specialId"] for c in listing] == ["CR01"]
