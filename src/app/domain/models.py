# src/app/domain/models.py
from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Timeframe(StrEnum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Kanonische Geschäftsdaten
# Alias-Auflösung (price / selling_price / sellingPrice ...) passiert in
# app.adapters.document_records, nicht hier.
# ---------------------------------------------------------------------------


class ProductRecord(BaseModel):
    """A product an artisan makes and sells."""

    id: str = Field(default_factory=_new_id)
    name: str = Field(max_length=512)
    cost: Decimal = Field(default=Decimal("0"), ge=0, description="Material cost per unit")
    price: Decimal = Field(default=Decimal("0"), ge=0, description="Selling price per unit")
    quantity: Decimal = Field(default=Decimal("0"), ge=0, description="Units in stock")
    updated_at: datetime = Field(default_factory=_utcnow)

    # Not part of the recommendation fingerprint
    category: str | None = None
    display_color: str | None = None
    notes: str | None = Field(default=None, max_length=1024)

    model_config = {"frozen": True}

    @property
    def margin_percent(self) -> Decimal:
        if self.price <= 0:
            return Decimal("0")
        return ((self.price - self.cost) / self.price * Decimal("100")).quantize(Decimal("0.1"))


class SaleRecord(BaseModel):
    id: str = Field(default_factory=_new_id)
    product_id: str | None = None
    product_name: str = ""
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    sale_date: date = Field(default_factory=lambda: _utcnow().date())

    model_config = {"frozen": True}

    @property
    def value(self) -> Decimal:
        return self.unit_price * self.quantity


class MetricRecord(BaseModel):
    """Free-form business metric, e.g. 'website_visits' or 'expenses'."""

    id: str = Field(default_factory=_new_id)
    metric_type: str = Field(max_length=128)
    value: Decimal
    recorded_on: date = Field(default_factory=lambda: _utcnow().date())
    note: str | None = Field(default=None, max_length=1024)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Recommendations (Payload der RecommendationCache, dort opak)
# ---------------------------------------------------------------------------


class Recommendation(BaseModel):
    id: str
    title: str
    description: str
    priority: Priority = Priority.MEDIUM
    category: str
    timeframe: Timeframe
    actionable: bool = True

    model_config = {"frozen": True}


class RecommendationSet(BaseModel):
    immediate: list[Recommendation] = Field(default_factory=list)
    short_term: list[Recommendation] = Field(default_factory=list)
    long_term: list[Recommendation] = Field(default_factory=list)
    future_products: list[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class DashboardKpis(BaseModel):
    total_products: int
    total_products_sold: Decimal
    total_revenue: Decimal
    average_order_value: Decimal
    inventory_value: Decimal
    weekly_growth_percent: Decimal


class SalesChartPoint(BaseModel):
    day: date
    units: Decimal
    revenue: Decimal


class ProductProfit(BaseModel):
    product_id: str
    name: str
    margin_percent: Decimal


class DashboardData(BaseModel):
    user_id: str
    kpis: DashboardKpis
    sales_chart: list[SalesChartPoint]
    product_profits: list[ProductProfit]
    recommendations: RecommendationSet | None = None
    recommendations_cached: bool = False


class CacheStats(BaseModel):
    size: int
    user_ids: list[str]


# ---------------------------------------------------------------------------
# API Request Schemas
# ---------------------------------------------------------------------------


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=512)
    cost: Decimal = Field(ge=0)
    price: Decimal = Field(ge=0)
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    category: str | None = None
    display_color: str | None = None
    notes: str | None = Field(default=None, max_length=1024)


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=512)
    cost: Decimal | None = Field(default=None, ge=0)
    price: Decimal | None = Field(default=None, ge=0)
    quantity: Decimal | None = Field(default=None, ge=0)
    category: str | None = None
    display_color: str | None = None
    notes: str | None = Field(default=None, max_length=1024)


class SaleCreate(BaseModel):
    product_id: str | None = None
    product_name: str = Field(min_length=1, max_length=512)
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    sale_date: date | None = None


class MetricCreate(BaseModel):
    metric_type: str = Field(min_length=1, max_length=128)
    value: Decimal
    recorded_on: date | None = None
    note: str | None = Field(default=None, max_length=1024)


class DocumentImport(BaseModel):
    """Lose typisierte Dokumente, z.B. aus einem Firestore-Export."""

    products: list[dict[str, Any]] = Field(default_factory=list)
    sales: list[dict[str, Any]] = Field(default_factory=list)
    metrics: list[dict[str, Any]] = Field(default_factory=list)


class ImportResult(BaseModel):
    products: int
    sales: int
    metrics: int
