# src/app/domain/ports.py
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from app.domain.models import MetricRecord, ProductRecord, RecommendationSet, SaleRecord


class RecommendationEnginePort(ABC):
    """
    Abstrakte Schnittstelle für die Empfehlungs-Engine.
    Die Berechnung gilt als teuer und potenziell fehleranfällig; der Aufrufer
    schützt sie mit der RecommendationCache.
    """

    @abstractmethod
    async def compute(
        self,
        products: Sequence[ProductRecord],
        sales: Sequence[SaleRecord],
        metrics: Sequence[MetricRecord],
    ) -> RecommendationSet:
        """
        Leitet Empfehlungen aus den Geschäftsdaten eines Users ab.

        Raises:
            RecommendationEngineError: Wenn die Engine keine Empfehlungen liefern kann.
        """
        ...


# ---------------------------------------------------------------------------
# Custom Domain Exceptions
# ---------------------------------------------------------------------------


class ProductNotFoundError(Exception):
    def __init__(self, product_id: str, user_id: str):
        super().__init__(f"Product '{product_id}' not found for user '{user_id}'")
        self.product_id = product_id
        self.user_id = user_id


class RecommendationEngineError(Exception):
    def __init__(self, engine: str, detail: str):
        super().__init__(f"Recommendation engine '{engine}' failed: {detail}")
        self.engine = engine
        self.detail = detail
