# src/app/adapters/document_records.py
"""
Normalisiert lose typisierte Dokumente (z.B. aus Firestore-Exporten oder
älteren Clients) in die kanonischen Records der Domain.

Die Dokumente verwenden je nach Client unterschiedliche Feldnamen
(``price`` / ``selling_price`` / ``sellingPrice`` ...). Die Auflösung passiert
ausschließlich hier, damit Cache und Services nur ein Schema kennen.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from app.domain.models import MetricRecord, ProductRecord, SaleRecord

logger = logging.getLogger(__name__)

_PRODUCT_NAME = ("name", "product_name", "productName")
_PRODUCT_COST = ("cost", "material_cost", "materialCost")
_PRODUCT_PRICE = ("price", "selling_price", "sellingPrice")
_PRODUCT_QUANTITY = ("quantity", "qty", "stock")
_UPDATED_AT = ("updated_at", "updatedAt", "created_at", "createdAt")

_SALE_PRODUCT_ID = ("product_id", "productId")
_SALE_PRODUCT_NAME = ("product_name", "productName", "name")
_SALE_UNIT_PRICE = ("unit_price", "price_per_unit", "pricePerUnit", "price")
_SALE_DATE = ("sale_date", "saleDate", "date", "created_at")

_METRIC_TYPE = ("metric_type", "metricType", "type")
_METRIC_DATE = ("recorded_on", "date_recorded", "dateRecorded", "date", "created_at")


def _first(doc: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = doc.get(key)
        if value is not None and value != "":
            return value
    return None


def _safe_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        return default
    return parsed if parsed.is_finite() else default


def _non_negative(value: Any) -> Decimal:
    return max(_safe_decimal(value), Decimal("0"))


def _to_datetime(value: Any) -> datetime | None:
    """Akzeptiert datetime, date, ISO-Strings, Epoch-Millisekunden und Firestore-Timestamps."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    # Firestore Timestamp / DatetimeWithNanoseconds
    to_datetime = getattr(value, "to_datetime", None)
    if callable(to_datetime):
        return _to_datetime(to_datetime())
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            logger.warning("Timestamp %s out of range in document", value)
            return None
    if isinstance(value, str):
        try:
            return _to_datetime(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            logger.warning("Unparseable timestamp '%s' in document", value)
    return None


def _to_date(value: Any) -> date | None:
    parsed = _to_datetime(value)
    return parsed.date() if parsed else None


def product_from_document(doc: Mapping[str, Any]) -> ProductRecord:
    fields: dict[str, Any] = {
        "name": str(_first(doc, _PRODUCT_NAME) or ""),
        "cost": _non_negative(_first(doc, _PRODUCT_COST)),
        "price": _non_negative(_first(doc, _PRODUCT_PRICE)),
        "quantity": _non_negative(_first(doc, _PRODUCT_QUANTITY)),
        "category": doc.get("category"),
        "display_color": doc.get("display_color") or doc.get("color"),
        "notes": doc.get("notes"),
    }
    if doc.get("id"):
        fields["id"] = str(doc["id"])
    updated_at = _to_datetime(_first(doc, _UPDATED_AT))
    if updated_at is not None:
        fields["updated_at"] = updated_at
    return ProductRecord(**fields)


def sale_from_document(doc: Mapping[str, Any]) -> SaleRecord:
    product_id = _first(doc, _SALE_PRODUCT_ID)
    fields: dict[str, Any] = {
        "product_id": str(product_id) if product_id is not None else None,
        "product_name": str(_first(doc, _SALE_PRODUCT_NAME) or ""),
        "quantity": _non_negative(_first(doc, ("quantity", "qty"))),
        "unit_price": _non_negative(_first(doc, _SALE_UNIT_PRICE)),
    }
    if doc.get("id"):
        fields["id"] = str(doc["id"])
    sale_date = _to_date(_first(doc, _SALE_DATE))
    if sale_date is not None:
        fields["sale_date"] = sale_date
    return SaleRecord(**fields)


def metric_from_document(doc: Mapping[str, Any]) -> MetricRecord:
    fields: dict[str, Any] = {
        "metric_type": str(_first(doc, _METRIC_TYPE) or ""),
        "value": _safe_decimal(doc.get("value")),
        "note": doc.get("note") or doc.get("notes"),
    }
    if doc.get("id"):
        fields["id"] = str(doc["id"])
    recorded_on = _to_date(_first(doc, _METRIC_DATE))
    if recorded_on is not None:
        fields["recorded_on"] = recorded_on
    return MetricRecord(**fields)
