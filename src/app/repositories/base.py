from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.models import MetricRecord, ProductRecord, SaleRecord


class AbstractBusinessDataRepository(ABC):
    """User-scoped storage for products, sales and metrics."""

    @abstractmethod
    async def list_products(self, user_id: str) -> list[ProductRecord]:
        """Returns all products of a user in insertion order."""
        ...

    @abstractmethod
    async def get_product(self, user_id: str, product_id: str) -> ProductRecord | None:
        ...

    @abstractmethod
    async def save_product(self, user_id: str, product: ProductRecord) -> ProductRecord:
        ...

    @abstractmethod
    async def update_product(self, user_id: str, product: ProductRecord) -> ProductRecord:
        """Replaces an existing product, keeping its position."""
        ...

    @abstractmethod
    async def delete_product(self, user_id: str, product_id: str) -> bool:
        """Deletes a product. Returns True if deleted."""
        ...

    @abstractmethod
    async def list_sales(self, user_id: str) -> list[SaleRecord]:
        """Returns all sales of a user, newest sale_date first."""
        ...

    @abstractmethod
    async def save_sale(self, user_id: str, sale: SaleRecord) -> SaleRecord:
        ...

    @abstractmethod
    async def list_metrics(self, user_id: str) -> list[MetricRecord]:
        """Returns all metrics of a user, newest recorded_on first."""
        ...

    @abstractmethod
    async def save_metric(self, user_id: str, metric: MetricRecord) -> MetricRecord:
        ...
