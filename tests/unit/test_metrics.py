from decimal import Decimal

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from app.domain.models import ProductRecord, RecommendationSet
from app.main import app
from app.services.recommendation_cache import RecommendationCache


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_request_count_middleware() -> None:
    client = TestClient(app)
    labels = {"method": "GET", "path": "/healthz", "status_code": "200"}

    initial = _sample("http_requests_total", labels)

    response = client.get("/healthz")
    assert response.status_code == 200

    assert _sample("http_requests_total", labels) == initial + 1


def test_metrics_endpoint_unauthenticated() -> None:
    client = TestClient(app)
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text
    assert "cache_hits_total" in response.text


def test_cache_metrics() -> None:
    cache = RecommendationCache(ttl_seconds=60, max_size=1)
    products = [ProductRecord(id="p1", name="Bowl", price=Decimal("100"))]

    initial_hits = _sample("cache_hits_total")
    initial_absent = _sample("cache_misses_total", {"reason": "absent"})
    initial_stale = _sample("cache_misses_total", {"reason": "stale"})
    initial_evictions = _sample("cache_evictions_total")

    # Miss
    cache.get("alice", products, [], [])
    assert _sample("cache_misses_total", {"reason": "absent"}) == initial_absent + 1
    assert _sample("cache_hits_total") == initial_hits

    # Hit
    cache.set("alice", products, [], [], RecommendationSet())
    cache.get("alice", products, [], [])
    assert _sample("cache_hits_total") == initial_hits + 1

    # Stale: Daten haben sich geändert
    cache.get("alice", [], [], [])
    assert _sample("cache_misses_total", {"reason": "stale"}) == initial_stale + 1

    # Eviction bei max_size=1
    cache.set("alice", products, [], [], RecommendationSet())
    cache.set("bob", products, [], [], RecommendationSet())
    assert _sample("cache_evictions_total") == initial_evictions + 1
