# src/app/repositories/business_data_repository.py
from __future__ import annotations

from collections import defaultdict

from app.domain.models import MetricRecord, ProductRecord, SaleRecord
from app.repositories.base import AbstractBusinessDataRepository


class InMemoryBusinessDataRepository(AbstractBusinessDataRepository):
    """
    In-Memory Repository für Entwicklung und Tests.
    Interface kann gegen die SQLite-Implementierung ausgetauscht werden.
    """

    def __init__(self) -> None:
        # Struktur: {user_id: {record_id: Record}}
        self._products: dict[str, dict[str, ProductRecord]] = defaultdict(dict)
        self._sales: dict[str, dict[str, SaleRecord]] = defaultdict(dict)
        self._metrics: dict[str, dict[str, MetricRecord]] = defaultdict(dict)

    async def list_products(self, user_id: str) -> list[ProductRecord]:
        return list(self._products[user_id].values())

    async def get_product(self, user_id: str, product_id: str) -> ProductRecord | None:
        return self._products[user_id].get(product_id)

    async def save_product(self, user_id: str, product: ProductRecord) -> ProductRecord:
        self._products[user_id][product.id] = product
        return product

    async def update_product(self, user_id: str, product: ProductRecord) -> ProductRecord:
        self._products[user_id][product.id] = product
        return product

    async def delete_product(self, user_id: str, product_id: str) -> bool:
        return self._products[user_id].pop(product_id, None) is not None

    async def list_sales(self, user_id: str) -> list[SaleRecord]:
        return sorted(self._sales[user_id].values(), key=lambda s: s.sale_date, reverse=True)

    async def save_sale(self, user_id: str, sale: SaleRecord) -> SaleRecord:
        self._sales[user_id][sale.id] = sale
        return sale

    async def list_metrics(self, user_id: str) -> list[MetricRecord]:
        return sorted(self._metrics[user_id].values(), key=lambda m: m.recorded_on, reverse=True)

    async def save_metric(self, user_id: str, metric: MetricRecord) -> MetricRecord:
        self._metrics[user_id][metric.id] = metric
        return metric
