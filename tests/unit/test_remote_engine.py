from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.adapters.remote_engine import RemoteRecommendationEngine
from app.domain.models import ProductRecord
from app.domain.ports import RecommendationEngineError

_URL = "http://insights.local/recommendations"

_RESPONSE = {
    "immediate": [
        {
            "id": "restock-low",
            "title": "Alert: Low Stock Warning",
            "description": "Restock soon",
            "priority": "medium",
            "category": "inventory",
            "timeframe": "immediate",
        }
    ],
    "future_products": ["Ceramic Vase"],
}


def _mock_client(json_body: object) -> AsyncMock:
    mock_response = MagicMock(spec=httpx.Response)
    mock_response.status_code = 200
    mock_response.json.return_value = json_body
    mock_response.raise_for_status = MagicMock()

    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = mock_response
    return mock_client


@pytest.mark.asyncio  # type: ignore[misc]
async def test_remote_engine_posts_records_and_parses_response() -> None:
    mock_client = _mock_client(_RESPONSE)
    engine = RemoteRecommendationEngine(http_client=mock_client, url=_URL, timeout=5.0)
    product = ProductRecord(id="p1", name="Bowl", price=Decimal("100"), cost=Decimal("50"))

    result = await engine.compute([product], [], [])

    assert result.immediate[0].id == "restock-low"
    assert result.future_products == ["Ceramic Vase"]
    args, kwargs = mock_client.post.call_args
    assert args[0] == _URL
    assert kwargs["timeout"] == 5.0
    assert kwargs["json"]["products"][0]["id"] == "p1"
    assert kwargs["json"]["sales"] == []


@pytest.mark.asyncio  # type: ignore[misc]
async def test_remote_engine_http_error() -> None:
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.side_effect = httpx.ConnectError("refused")
    engine = RemoteRecommendationEngine(http_client=mock_client, url=_URL)

    with pytest.raises(RecommendationEngineError, match="Connection error"):
        await engine.compute([], [], [])


@pytest.mark.asyncio  # type: ignore[misc]
async def test_remote_engine_status_error() -> None:
    request = httpx.Request("POST", _URL)
    response = httpx.Response(503, request=request)
    mock_response = MagicMock(spec=httpx.Response)
    mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "Service Unavailable", request=request, response=response
    )
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = mock_response
    engine = RemoteRecommendationEngine(http_client=mock_client, url=_URL)

    with pytest.raises(RecommendationEngineError):
        await engine.compute([], [], [])


@pytest.mark.asyncio  # type: ignore[misc]
async def test_remote_engine_malformed_response() -> None:
    engine = RemoteRecommendationEngine(
        http_client=_mock_client({"immediate": [{"id": "x"}]}), url=_URL
    )

    with pytest.raises(RecommendationEngineError, match="Invalid response"):
        await engine.compute([], [], [])
