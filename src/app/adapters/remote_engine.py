# src/app/adapters/remote_engine.py
from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx
from pydantic import ValidationError

from app.domain.models import MetricRecord, ProductRecord, RecommendationSet, SaleRecord
from app.domain.ports import RecommendationEngineError, RecommendationEnginePort

logger = logging.getLogger(__name__)


class RemoteRecommendationEngine(RecommendationEnginePort):
    """
    Adapter für einen externen Insight-Service (z.B. ein LLM-Gateway).
    Sendet die Geschäftsdaten als JSON und erwartet ein RecommendationSet zurück.
    """

    name = "remote"

    def __init__(self, http_client: httpx.AsyncClient, url: str, timeout: float = 30.0) -> None:
        self._client = http_client
        self._url = url
        self._timeout = timeout

    async def compute(
        self,
        products: Sequence[ProductRecord],
        sales: Sequence[SaleRecord],
        metrics: Sequence[MetricRecord],
    ) -> RecommendationSet:
        body = {
            "products": [p.model_dump(mode="json") for p in products],
            "sales": [s.model_dump(mode="json") for s in sales],
            "metrics": [m.model_dump(mode="json") for m in metrics],
        }
        try:
            response = await self._client.post(self._url, json=body, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RecommendationEngineError(self.name, str(e)) from e
        except httpx.RequestError as e:
            raise RecommendationEngineError(self.name, f"Connection error: {e}") from e

        try:
            return RecommendationSet.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning("Malformed response from recommendation engine at %s", self._url)
            raise RecommendationEngineError(self.name, f"Invalid response: {e}") from e
