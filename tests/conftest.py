"""Shared fixtures and fakes for the pairwatch tests."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest

from pairwatch.api.client import FetchResult
from pairwatch.config import Settings
from pairwatch.models import MarketStats, Pair


def make_pair(pair_id: str, volume: float = 0.0, reserve: float = 0.0) -> Pair:
    return Pair.model_validate(
        {
            "id": pair_id,
            "token0": {"id": f"{pair_id}-t0", "symbol": "WETH"},
            "token1": {"id": f"{pair_id}-t1", "symbol": "DAI"},
            "volumeUSD": str(volume),
            "reserveUSD": str(reserve),
        }
    )


def make_stats(pair_id: str) -> MarketStats:
    return MarketStats(id=pair_id, ticker=f"{pair_id}/ETH")


def gas_message(standard: float, fast: float = 50.0, faster: float = 60.0) -> str:
    return json.dumps(
        {
            "topic": "ethGas:getGasPrices",
            "data": {"standard": standard, "fast": fast, "faster": faster},
        }
    )


class FakeWebSocket:
    """In-memory stand-in for a websockets connection."""

    def __init__(self, messages: List[Any], close_error: Optional[Exception] = None):
        self.sent: List[str] = []
        self.closed = False
        self._messages = list(messages)
        self._close_error = close_error

    async def send(self, message: str) -> None:
        self.sent.append(message)

    async def close(self) -> None:
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self._messages:
            yield message
        if self._close_error is not None:
            raise self._close_error


def fake_connector(*sockets: FakeWebSocket):
    """Mimics `async for ws in websockets.connect(url)` over a fixed list."""

    async def connect(url: str):
        for ws in sockets:
            yield ws

    return connect


class FakeStatsClient:
    """Stats API double returning canned FetchResults."""

    def __init__(self, **results: FetchResult):
        self.results: Dict[str, FetchResult] = results
        self.overview_calls: List[str] = []

    async def get_top_pairs(self) -> FetchResult:
        return self.results.get("top_pairs", FetchResult(data=[]))

    async def get_weekly_top_performing_pairs(self) -> FetchResult:
        return self.results.get("weekly", FetchResult(data=[]))

    async def get_daily_top_performing_pairs(self) -> FetchResult:
        return self.results.get("daily", FetchResult(data=[]))

    async def get_pair_overview(self, pair_id: str) -> FetchResult:
        self.overview_calls.append(pair_id)
        if pair_id in self.results:
            return self.results[pair_id]
        return self.results.get("overview", FetchResult(data=make_pair(pair_id)))

    async def get_market_data(self) -> FetchResult:
        return self.results.get("market", FetchResult(data=[]))


@pytest.fixture
def settings() -> Settings:
    return Settings(pinned_pair_id="P1")
