"""
# Statistics API client

Async client for the remote pair statistics API used by the dashboard.

Every operation returns a `FetchResult` instead of raising for expected
failures (network errors, 4xx/5xx responses, malformed payloads). Callers
inspect `result.error` and decide what to do; this client never retries.

## Usage:
```python
async with StatsApiClient("http://localhost:3001/api/v1") as client:
    result = await client.get_top_pairs()
    if result.error:
        print(f"Could not fetch pairs: {result.error}")
    else:
        print(f"Fetched {len(result.data)} pairs")
```
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from pairwatch.models import MarketStats, Pair

logger = logging.getLogger(__name__)

T = TypeVar("T")

TOP_PAIRS_PATH = "/uniswap/pairs"
WEEKLY_TOP_PAIRS_PATH = "/uniswap/pairs/performance/weekly"
DAILY_TOP_PAIRS_PATH = "/uniswap/pairs/performance/daily"
PAIR_OVERVIEW_PATH = "/uniswap/pairs/{pair_id}"
MARKET_DATA_PATH = "/uniswap/market"

_PAIR_LIST = TypeAdapter(List[Pair])
_MARKET_STATS_LIST = TypeAdapter(List[MarketStats])
_PAIR = TypeAdapter(Pair)


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Uniform result-or-error shape returned by every API operation."""

    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StatsApiClient:
    """
    Thin async wrapper over the statistics REST API.

    ## Args:
    - `base_url` (str): API root, e.g. `http://localhost:3001/api/v1`
    - `http_client` (httpx.AsyncClient, optional): Pre-built client. When
      omitted the client owns one and closes it in `close()`.
    """

    def __init__(
        self, base_url: str, http_client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=self.base_url)

    async def __aenter__(self) -> "StatsApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def get_top_pairs(self) -> FetchResult[List[Pair]]:
        return await self._get(TOP_PAIRS_PATH, _PAIR_LIST)

    async def get_weekly_top_performing_pairs(self) -> FetchResult[List[MarketStats]]:
        return await self._get(WEEKLY_TOP_PAIRS_PATH, _MARKET_STATS_LIST)

    async def get_daily_top_performing_pairs(self) -> FetchResult[List[MarketStats]]:
        return await self._get(DAILY_TOP_PAIRS_PATH, _MARKET_STATS_LIST)

    async def get_pair_overview(self, pair_id: str) -> FetchResult[Pair]:
        path = PAIR_OVERVIEW_PATH.format(pair_id=quote(pair_id, safe=""))
        return await self._get(path, _PAIR)

    async def get_market_data(self) -> FetchResult[List[MarketStats]]:
        return await self._get(MARKET_DATA_PATH, _MARKET_STATS_LIST)

    async def _get(self, path: str, adapter: TypeAdapter) -> FetchResult:
        """
        Issue a GET request and normalize the response.

        ## Envelope:
        - Success: `{"data": ...}`
        - Failure: `{"error": "..."}` with a non-2xx status

        ## Returns:
        - `FetchResult` with `data` validated through `adapter`, or `error`
        """
        url = f"{self.base_url}{path}"

        try:
            response = await self._http.get(url)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            message = _error_from_response(e.response)
            logger.debug(f"GET {path} failed: {message}")
            return FetchResult(error=message)
        except httpx.RequestError as e:
            logger.debug(f"GET {path} transport error: {e!r}")
            return FetchResult(error=f"Request to {path} failed: {e}")
        except ValueError:
            return FetchResult(error=f"Invalid JSON returned from {path}")

        if not isinstance(body, dict):
            return FetchResult(error=f"Unexpected response shape from {path}")

        if body.get("error"):
            return FetchResult(error=str(body["error"]))

        try:
            data = adapter.validate_python(body.get("data"))
        except ValidationError as e:
            logger.debug(f"GET {path} payload rejected: {e}")
            return FetchResult(
                error=f"Invalid data returned from {path}: {e.error_count()} error(s)"
            )

        return FetchResult(data=data)


def _error_from_response(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])

    return f"HTTP {response.status_code} {response.reason_phrase}".strip()
