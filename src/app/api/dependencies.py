# src/app/api/dependencies.py
from functools import lru_cache

import httpx
from fastapi import Depends

from app.adapters.remote_engine import RemoteRecommendationEngine
from app.core.config import Settings, get_settings
from app.domain.ports import RecommendationEnginePort
from app.repositories.base import AbstractBusinessDataRepository
from app.repositories.business_data_repository import InMemoryBusinessDataRepository
from app.repositories.sqlite_business_data_repository import SQLiteBusinessDataRepository
from app.services.dashboard_service import DashboardService, InFlightRequests
from app.services.recommendation_cache import RecommendationCache
from app.services.recommendation_engine import RuleBasedRecommendationEngine


# Shared HTTP Client (Connection Pooling)
@lru_cache
def get_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": "ArtisanDashboard/1.0"},
        follow_redirects=True,
    )


def get_recommendation_engine(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> RecommendationEnginePort:
    """Externe Engine, falls konfiguriert, sonst die regelbasierte."""
    if settings.recommendation_engine_url:
        return RemoteRecommendationEngine(
            http_client=client,
            url=settings.recommendation_engine_url,
            timeout=settings.recommendation_engine_timeout_seconds,
        )
    return RuleBasedRecommendationEngine()


# Singleton Recommendation Cache (prozessweit, nicht persistent)
_recommendation_cache: RecommendationCache | None = None


def get_recommendation_cache(
    settings: Settings = Depends(get_settings),
) -> RecommendationCache:
    global _recommendation_cache
    if _recommendation_cache is None:
        _recommendation_cache = RecommendationCache(
            ttl_seconds=settings.cache_ttl_seconds,
            max_size=settings.cache_max_size,
        )
    return _recommendation_cache


@lru_cache
def get_in_flight_requests() -> InFlightRequests:
    return InFlightRequests()


# Singleton Repository (Initialisiert beim ersten Zugriff)
_repository: AbstractBusinessDataRepository | None = None


async def get_business_data_repository(
    settings: Settings = Depends(get_settings),
) -> AbstractBusinessDataRepository:
    global _repository
    if _repository is None:
        if settings.database_url:
            repo = SQLiteBusinessDataRepository(database_url=settings.database_url)
            await repo.initialize()
            _repository = repo
        else:
            _repository = InMemoryBusinessDataRepository()
    return _repository


def get_dashboard_service(
    repository: AbstractBusinessDataRepository = Depends(get_business_data_repository),
    engine: RecommendationEnginePort = Depends(get_recommendation_engine),
    cache: RecommendationCache = Depends(get_recommendation_cache),
    in_flight: InFlightRequests = Depends(get_in_flight_requests),
) -> DashboardService:
    return DashboardService(
        repository=repository, engine=engine, cache=cache, in_flight=in_flight
    )
