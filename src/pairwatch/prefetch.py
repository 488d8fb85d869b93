"""
Prefetch target selection and the per-pair warm-up cache.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from pairwatch.api.client import FetchResult
from pairwatch.config import PREFETCH_TOP_N
from pairwatch.models import Pair, PrefetchedPair

logger = logging.getLogger(__name__)


class HasId(Protocol):
    @property
    def id(self) -> str: ...


class OverviewFetcher(Protocol):
    async def get_pair_overview(self, pair_id: str) -> FetchResult[Pair]: ...


def select_prefetch_targets(
    daily: Sequence[HasId],
    weekly: Sequence[HasId],
    pinned: HasId,
    limit: int = PREFETCH_TOP_N,
) -> List[str]:
    """
    Merge the daily and weekly leaders with the pinned pair.

    ## Parameters
    - `daily`: Daily top performers, best first
    - `weekly`: Weekly top performers, best first
    - `pinned`: Reference pair that is always warmed
    - `limit`: How many entries to take from each ranked list

    ## Returns
    Pair ids in first-seen order (daily, then weekly, then pinned), each
    appearing once.
    """
    targets: List[str] = []
    seen = set()

    for record in [*daily[:limit], *weekly[:limit], pinned]:
        if record.id in seen:
            continue
        seen.add(record.id)
        targets.append(record.id)

    return targets


class PrefetchCache:
    """
    Warms pair overviews before the user navigates to them.

    Entries are keyed by pair id. A pair that is cached or already loading
    is not fetched again, and one pair's failure is recorded on its own
    entry without touching the others.
    """

    def __init__(self, client: OverviewFetcher) -> None:
        self._client = client
        self._entries: Dict[str, PrefetchedPair] = {}

    def get(self, pair_id: str) -> Optional[PrefetchedPair]:
        return self._entries.get(pair_id)

    def __contains__(self, pair_id: str) -> bool:
        return pair_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Dict[str, PrefetchedPair]:
        return dict(self._entries)

    async def warm(self, pair_ids: Iterable[str]) -> None:
        pending = [pair_id for pair_id in pair_ids if pair_id not in self._entries]
        if not pending:
            return

        for pair_id in pending:
            self._entries[pair_id] = PrefetchedPair(is_loading=True)

        logger.info(f"Prefetching {len(pending)} pairs")
        try:
            await asyncio.gather(*(self._warm_one(pair_id) for pair_id in pending))
        finally:
            # Interrupted warm-ups must not block a later retry
            for pair_id in pending:
                entry = self._entries.get(pair_id)
                if entry is not None and entry.is_loading:
                    del self._entries[pair_id]

    async def _warm_one(self, pair_id: str) -> None:
        try:
            result = await self._client.get_pair_overview(pair_id)
        except Exception as e:
            logger.error(
                f"Unexpected error prefetching pair {pair_id}: {e}", exc_info=True
            )
            self._entries[pair_id] = PrefetchedPair(
                is_loading=False, error=f"{type(e).__name__}: {e}"
            )
            return

        if result.error:
            logger.warning(f"Could not prefetch pair {pair_id}: {result.error}")
            self._entries[pair_id] = PrefetchedPair(
                is_loading=False, error=result.error
            )
            return

        self._entries[pair_id] = PrefetchedPair(is_loading=False, overview=result.data)
