# src/app/services/dashboard_service.py
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Hashable, Sequence
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

from app.core.metrics import RECOMMENDATION_COUNT, RECOMMENDATION_DURATION
from app.domain.models import (
    DashboardData,
    DashboardKpis,
    MetricCreate,
    MetricRecord,
    ProductCreate,
    ProductProfit,
    ProductRecord,
    ProductUpdate,
    RecommendationSet,
    SaleCreate,
    SaleRecord,
    SalesChartPoint,
)
from app.domain.ports import (
    ProductNotFoundError,
    RecommendationEngineError,
    RecommendationEnginePort,
)
from app.repositories.base import AbstractBusinessDataRepository
from app.services.fingerprint import compute_fingerprint
from app.services.recommendation_cache import RecommendationCache

logger = logging.getLogger(__name__)

CHART_POINTS = 7
GROWTH_WINDOW = timedelta(days=7)


class _LeaderCancelled(Exception):
    pass


class InFlightRequests:
    """
    Bündelt gleichzeitige Berechnungen mit demselben Schlüssel: der erste
    Aufrufer rechnet, alle weiteren warten auf dessen Ergebnis. Wird der erste
    Aufrufer abgebrochen, übernimmt einer der Wartenden die Berechnung.
    """

    def __init__(self) -> None:
        self._pending: dict[Hashable, asyncio.Future[RecommendationSet]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    async def run(
        self, key: Hashable, factory: Callable[[], Awaitable[RecommendationSet]]
    ) -> RecommendationSet:
        while True:
            pending = self._pending.get(key)
            if pending is None:
                break
            try:
                return await asyncio.shield(pending)
            except _LeaderCancelled:
                # Der rechnende Request wurde abgebrochen; ein Wartender übernimmt
                continue

        future: asyncio.Future[RecommendationSet] = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.set_exception(_LeaderCancelled())
            future.exception()
            raise
        except Exception as e:
            future.set_exception(e)
            # Followers re-raise it; the leader must not leave it unretrieved
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            if self._pending.get(key) is future:
                del self._pending[key]


class DashboardService:
    def __init__(
        self,
        repository: AbstractBusinessDataRepository,
        engine: RecommendationEnginePort,
        cache: RecommendationCache,
        in_flight: InFlightRequests | None = None,
    ) -> None:
        self._repo = repository
        self._engine = engine
        self._cache = cache
        self._in_flight = in_flight or InFlightRequests()

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def get_dashboard(self, user_id: str, today: date | None = None) -> DashboardData:
        products = await self._repo.list_products(user_id)
        sales = await self._repo.list_sales(user_id)
        metrics = await self._repo.list_metrics(user_id)

        recommendations: RecommendationSet | None = None
        cached = False
        try:
            recommendations, cached = await self.get_recommendations(
                user_id, products, sales, metrics
            )
        except RecommendationEngineError:
            logger.warning(
                "Recommendations unavailable for user %s, returning dashboard without them",
                user_id,
                exc_info=True,
            )

        return DashboardData(
            user_id=user_id,
            kpis=self._calculate_kpis(products, sales, today or datetime.now(UTC).date()),
            sales_chart=self._sales_chart(sales),
            product_profits=[
                ProductProfit(product_id=p.id, name=p.name, margin_percent=p.margin_percent)
                for p in products
            ],
            recommendations=recommendations,
            recommendations_cached=cached,
        )

    async def get_recommendations(
        self,
        user_id: str,
        products: Sequence[ProductRecord],
        sales: Sequence[SaleRecord],
        metrics: Sequence[MetricRecord],
    ) -> tuple[RecommendationSet, bool]:
        """
        Liefert Empfehlungen aus dem Cache oder berechnet sie neu.
        Gibt zusätzlich zurück, ob es ein Cache-Treffer war.

        Raises:
            RecommendationEngineError: Wenn die Engine bei einem Miss fehlschlägt.
        """
        # 1. Check cache
        cached = self._cache.get(user_id, products, sales, metrics)
        if cached is not None:
            return cached, True

        # 2. Miss: compute once per (user, data state), then update cache
        async def _compute_and_store() -> RecommendationSet:
            result = await self._compute(products, sales, metrics)
            self._cache.set(user_id, products, sales, metrics, result)
            return result

        try:
            key: Hashable = (user_id, compute_fingerprint(products, sales, metrics))
        except Exception:
            # Already reported by the cache; compute without de-duplication
            return await _compute_and_store(), False

        return await self._in_flight.run(key, _compute_and_store), False

    async def _compute(
        self,
        products: Sequence[ProductRecord],
        sales: Sequence[SaleRecord],
        metrics: Sequence[MetricRecord],
    ) -> RecommendationSet:
        engine_name = getattr(self._engine, "name", type(self._engine).__name__)
        start = time.perf_counter()
        try:
            result = await self._engine.compute(products, sales, metrics)
        except RecommendationEngineError:
            RECOMMENDATION_COUNT.labels(engine=engine_name, status="error").inc()
            raise
        finally:
            RECOMMENDATION_DURATION.labels(engine=engine_name).observe(
                time.perf_counter() - start
            )
        RECOMMENDATION_COUNT.labels(engine=engine_name, status="success").inc()
        logger.info(
            "Computed recommendations for %d products, %d sales, %d metrics",
            len(products),
            len(sales),
            len(metrics),
        )
        return result

    # ------------------------------------------------------------------
    # Writes (invalidate the cache afterwards)
    # ------------------------------------------------------------------

    async def list_products(self, user_id: str) -> list[ProductRecord]:
        return await self._repo.list_products(user_id)

    async def add_product(self, user_id: str, payload: ProductCreate) -> ProductRecord:
        product = ProductRecord(**payload.model_dump())
        saved = await self._repo.save_product(user_id, product)
        self._cache.invalidate(user_id)
        return saved

    async def update_product(
        self, user_id: str, product_id: str, payload: ProductUpdate
    ) -> ProductRecord:
        """
        Raises:
            ProductNotFoundError: Wenn das Produkt für diesen User nicht existiert.
        """
        product = await self._repo.get_product(user_id, product_id)
        if product is None:
            raise ProductNotFoundError(product_id, user_id)
        # Explizite nulls lassen das Feld unverändert
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = datetime.now(UTC)
        merged = ProductRecord.model_validate({**product.model_dump(), **changes})
        updated = await self._repo.update_product(user_id, merged)
        self._cache.invalidate(user_id)
        return updated

    async def delete_product(self, user_id: str, product_id: str) -> bool:
        deleted = await self._repo.delete_product(user_id, product_id)
        if deleted:
            self._cache.invalidate(user_id)
        return deleted

    async def add_sale(self, user_id: str, payload: SaleCreate) -> SaleRecord:
        fields = payload.model_dump(exclude_none=True)
        sale = await self._repo.save_sale(user_id, SaleRecord(**fields))
        self._cache.invalidate(user_id)
        return sale

    async def add_metric(self, user_id: str, payload: MetricCreate) -> MetricRecord:
        fields = payload.model_dump(exclude_none=True)
        metric = await self._repo.save_metric(user_id, MetricRecord(**fields))
        self._cache.invalidate(user_id)
        return metric

    async def import_records(
        self,
        user_id: str,
        products: Sequence[ProductRecord],
        sales: Sequence[SaleRecord],
        metrics: Sequence[MetricRecord],
    ) -> dict[str, int]:
        for product in products:
            await self._repo.save_product(user_id, product)
        for sale in sales:
            await self._repo.save_sale(user_id, sale)
        for metric in metrics:
            await self._repo.save_metric(user_id, metric)
        self._cache.invalidate(user_id)
        return {"products": len(products), "sales": len(sales), "metrics": len(metrics)}

    # ------------------------------------------------------------------
    # KPIs
    # ------------------------------------------------------------------

    def _calculate_kpis(
        self, products: Sequence[ProductRecord], sales: Sequence[SaleRecord], today: date
    ) -> DashboardKpis:
        total_revenue = sum((s.value for s in sales), Decimal("0"))
        average_order_value = (
            (total_revenue / len(sales)).quantize(Decimal("0.01")) if sales else Decimal("0")
        )

        window_start = today - GROWTH_WINDOW
        recent_revenue = sum(
            (s.value for s in sales if s.sale_date >= window_start), Decimal("0")
        )
        previous_revenue = total_revenue - recent_revenue
        weekly_growth = Decimal("0")
        if previous_revenue > 0:
            weekly_growth = ((recent_revenue / previous_revenue - 1) * 100).quantize(
                Decimal("0.1")
            )

        return DashboardKpis(
            total_products=len(products),
            total_products_sold=sum((s.quantity for s in sales), Decimal("0")),
            total_revenue=total_revenue,
            average_order_value=average_order_value,
            inventory_value=sum((p.cost * p.quantity for p in products), Decimal("0")),
            weekly_growth_percent=weekly_growth,
        )

    def _sales_chart(self, sales: Sequence[SaleRecord]) -> list[SalesChartPoint]:
        return [
            SalesChartPoint(day=s.sale_date, units=s.quantity, revenue=s.value)
            for s in sales[:CHART_POINTS]
        ]
