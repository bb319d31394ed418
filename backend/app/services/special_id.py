"""Sequential special-ID generation (e.g. CR01, CR02, ... CR100).

The next ID for a prefix is computed by scanning existing records that start
with the prefix and incrementing the largest numeric suffix. There is no lock:
two concurrent callers can compute the same ID, in which case the unique index
on ``classes.special_id`` rejects the second insert.
"""
import logging
import re
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.catalog_class import CatalogClass

logger = logging.getLogger(__name__)

MIN_WIDTH = 2
_PREFIX_RE = re.compile(r"[A-Z]+")


class InvalidPrefixError(ValueError):
    """Raised when a prefix is not made of letters only."""


def normalize_prefix(prefix: str | None) -> str:
    cleaned = (prefix or "").strip().upper() or settings.SPECIAL_ID_PREFIX.upper()
    if not _PREFIX_RE.fullmatch(cleaned):
        raise InvalidPrefixError(f"Invalid prefix '{prefix}': use letters only (e.g. CR).")
    return cleaned


def compute_next_special_id(prefix: str, existing_ids: Iterable[str]) -> str:
    """Return the ID following the highest existing ``<prefix><number>``.

    Suffixes are compared numerically. The result is padded to the width of
    the winning suffix (at least ``MIN_WIDTH``); padding never truncates, so
    ``CR99`` is followed by ``CR100``. A suffix that is not an integer counts
    as 0.
    """
    best: tuple[int, int] | None = None  # (value, width)
    for special_id in existing_ids:
        if not special_id or not special_id.startswith(prefix):
            continue
        suffix = special_id[len(prefix):]
        numeric = suffix.isascii() and suffix.isdigit()
        value = int(suffix) if numeric else 0
        width = len(suffix) if numeric else MIN_WIDTH
        if best is None or (value, width) > best:
            best = (value, width)

    if best is None:
        return f"{prefix}{1:0{MIN_WIDTH}d}"

    value, width = best
    return f"{prefix}{value + 1:0{max(width, MIN_WIDTH)}d}"


async def next_special_id(db: AsyncSession, prefix: str | None = None) -> str:
    """Compute the next free special ID for ``prefix`` from the store."""
    clean_prefix = normalize_prefix(prefix)
    result = await db.execute(
        select(CatalogClass.special_id).where(CatalogClass.special_id.like(f"{clean_prefix}%"))
    )
    next_id = compute_next_special_id(clean_prefix, result.scalars().all())
    logger.debug("Next special ID for %s: %s", clean_prefix, next_id)
    return next_id
