"""Normalization of raw class input (form fields, JSON bodies, spreadsheet rows).

Input keys use the wire (camelCase) names; the returned dict uses model
attribute names and only contains the fields that were supplied, so it can be
applied directly to a ``CatalogClass`` with ``setattr``. Numeric fields are the
exception for full payloads (create, spreadsheet rows): they are always present
and default to ``None``. Partial payloads (update) leave absent numeric fields
out as well.

Values are bounded by the ``classes`` column sizes.
"""
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from app.models.catalog_class import CatalogClass

# wire name -> model attribute
STRING_FIELDS = {
    "mainCategory": "main_category",
    "quality": "quality",
    "className": "class_name",
    "classNameArabic": "class_name_arabic",
    "classNameEnglish": "class_name_english",
    "classFeatures": "class_features",
}
DECIMAL_FIELDS = {
    "classPrice": "class_price",
    "classWeight": "class_weight",
}
INTEGER_FIELDS = {
    "classQuantity": "class_quantity",
}
FIELD_LABELS = {
    "specialId": "special ID",
    "mainCategory": "main category",
    "quality": "group",
    "className": "class name",
    "classNameArabic": "Arabic class name",
    "classNameEnglish": "English class name",
    "classFeatures": "class features",
    "classPrice": "price",
    "classWeight": "weight",
    "classQuantity": "quantity",
    "classVideoUrl": "video URL",
}

# 32-bit INTEGER column
MAX_INTEGER = 2**31 - 1


class ClassPayloadError(ValueError):
    """A field could not be coerced into its canonical form."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)


def _column_type(attr: str):
    return CatalogClass.__table__.c[attr].type


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _invalid(field: str, value: Any) -> ClassPayloadError:
    label = FIELD_LABELS.get(field, field)
    return ClassPayloadError(field, f"Invalid numeric value for {label}: '{value}'.")


def _out_of_range(field: str, value: Any) -> ClassPayloadError:
    label = FIELD_LABELS.get(field, field)
    return ClassPayloadError(field, f"Numeric value for {label} is out of range: '{value}'.")


def _check_length(field: str, attr: str, value: str) -> str:
    limit = getattr(_column_type(attr), "length", None)
    if limit is not None and len(value) > limit:
        label = FIELD_LABELS.get(field, field)
        raise ClassPayloadError(field, f"Value for {label} exceeds {limit} characters.")
    return value


def parse_decimal(field: str, value: Any, precision: int | None = None, scale: int = 0) -> Decimal | None:
    """Parse a non-negative decimal, optionally bounded to NUMERIC(precision, scale)."""
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        raise _invalid(field, value)
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise _invalid(field, value)
    if not parsed.is_finite() or parsed < 0:
        raise _invalid(field, value)
    if precision is not None:
        limit = Decimal(10) ** (precision - scale)
        # compared after rounding to the column scale
        if parsed >= limit or parsed.quantize(Decimal(1).scaleb(-scale)) >= limit:
            raise _out_of_range(field, value)
    return parsed


def parse_integer(field: str, value: Any) -> int | None:
    parsed = parse_decimal(field, value)
    if parsed is None:
        return None
    if parsed != parsed.to_integral_value():
        raise _invalid(field, value)
    if parsed > MAX_INTEGER:
        raise _out_of_range(field, value)
    return int(parsed)


def parse_class_payload(payload: Mapping[str, Any], partial: bool = False) -> dict[str, Any]:
    """Coerce a raw field mapping into model attributes.

    With ``partial=True`` only supplied keys are returned, numeric ones included.

    Raises:
        ClassPayloadError: a numeric field holds a non-numeric, negative,
            out-of-range or fractional (for quantity) value, or a text field
            is longer than its column.
    """
    parsed: dict[str, Any] = {}

    for wire, attr in DECIMAL_FIELDS.items():
        if partial and wire not in payload:
            continue
        column = _column_type(attr)
        parsed[attr] = parse_decimal(wire, payload.get(wire), column.precision, column.scale)
    for wire, attr in INTEGER_FIELDS.items():
        if partial and wire not in payload:
            continue
        parsed[attr] = parse_integer(wire, payload.get(wire))

    for wire, attr in STRING_FIELDS.items():
        if wire in payload:
            value = payload[wire]
            parsed[attr] = _check_length(wire, attr, str(value).strip()) if value is not None else None

    special_id = payload.get("specialId")
    if not _is_blank(special_id):
        parsed["special_id"] = _check_length("specialId", "special_id", str(special_id).strip().upper())

    if "classVideoUrl" in payload:
        video = payload["classVideoUrl"]
        video = str(video).strip() if video is not None else ""
        parsed["class_video"] = _check_length("classVideoUrl", "class_video", video) or None

    return parsed
