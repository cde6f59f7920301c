from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

_MISSING = object()

# (canonical field, fallbacks for loosely-typed records, default)
_PRODUCT_FIELDS: tuple[tuple[str, tuple[str, ...], Any], ...] = (
    ("id", (), ""),
    ("name", ("product_name",), ""),
    ("cost", ("material_cost",), 0),
    ("price", ("selling_price",), 0),
    ("quantity", ("qty",), 0),
    ("updated_at", ("created_at",), None),
)

_SALE_FIELDS: tuple[tuple[str, tuple[str, ...], Any], ...] = (
    ("id", (), ""),
    ("product_id", ("product_name",), ""),
    ("quantity", ("qty",), 0),
    ("value", (), 0),
    ("sale_date", ("date",), None),
)

_METRIC_FIELDS: tuple[tuple[str, tuple[str, ...], Any], ...] = (
    ("id", (), ""),
    ("metric_type", ("type",), ""),
    ("value", (), 0),
    ("recorded_on", ("date",), None),
)


def _lookup(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, _MISSING)
    return getattr(record, name, _MISSING)


def _field(record: Any, name: str, fallbacks: tuple[str, ...], default: Any) -> Any:
    for candidate in (name, *fallbacks):
        value = _lookup(record, candidate)
        if value is not _MISSING and value is not None:
            return value
    return default


def _project(
    records: Iterable[Any], fields: tuple[tuple[str, tuple[str, ...], Any], ...]
) -> list[list[Any]]:
    return [
        [_canonical(_field(r, name, fb, default)) for name, fb, default in fields]
        for r in records
    ]


def _sale_projection(record: Any) -> list[Any]:
    row = _project([record], _SALE_FIELDS)[0]
    # Fehlt "value", wird er aus Stückpreis * Menge abgeleitet
    if _lookup(record, "value") is _MISSING:
        unit_price = _field(record, "unit_price", ("price_per_unit",), 0)
        row[3] = _canonical(Decimal(str(unit_price)) * Decimal(row[2]))
    return row


def _canonical(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    # 100, 100.0 und Decimal("100") sollen gleich hashen
    if isinstance(value, (int, float)):
        value = Decimal(str(value))
    if isinstance(value, Decimal):
        # 10 und 10.00 sind fachlich gleich
        if value == value.to_integral_value():
            return str(value.quantize(Decimal(1)))
        return str(value.normalize())
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def compute_fingerprint(
    products: Iterable[Any],
    sales: Iterable[Any],
    metrics: Iterable[Any],
) -> str:
    """
    Content hash over the fields a recommendation actually depends on.

    Products contribute (id, name, cost, price, quantity, updated_at), sales
    (id, product reference, quantity, value, date) and metrics (id, type,
    value, date). Other fields are ignored, so editing e.g. a display colour
    keeps the fingerprint stable. Order within each collection is significant.

    Records may be pydantic models, plain mappings or any attribute object;
    missing fields fall back to a default instead of raising.
    """
    payload = {
        "products": _project(products, _PRODUCT_FIELDS),
        "sales": [_sale_projection(s) for s in sales],
        "metrics": _project(metrics, _METRIC_FIELDS),
    }
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()
