"""
Bootstrap orchestration for the dashboard.

`Dashboard.mount()` starts three independent acquisition flows and the live
feed. Each flow publishes into its own slot of `DashboardState`; they only
share the error slot.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set

from pairwatch.api.client import StatsApiClient
from pairwatch.config import GAS_PRICES_TOPIC, Settings
from pairwatch.database import AsyncSnapshotStore
from pairwatch.feed import GasPricesMessage, LiveFeedClient
from pairwatch.models import AllPairsState, TopPairsSnapshot
from pairwatch.notifications import Notifier
from pairwatch.pending import PendingTxStore
from pairwatch.prefetch import PrefetchCache, select_prefetch_targets
from pairwatch.ranking import calculate_pair_rankings
from pairwatch.state import DashboardState

logger = logging.getLogger(__name__)

FLOW_ALL_PAIRS = "all_pairs"
FLOW_TOP_PAIRS = "top_pairs"
FLOW_MARKET_DATA = "market_data"


class Dashboard:
    """
    Root of the dashboard: owns the state, the pending transaction store and
    the acquisition flows.

    ## Lifecycle
    1. `mount()` launches the all-pairs, top-pairs and market-data flows
       concurrently, plus the live feed
    2. `wait_for_bootstrap()` waits for the three flows to settle
    3. `unmount()` stops publishing, cancels outstanding tasks and closes
       the feed

    ## Error Handling
    - Acquisition failures go to `state.error` (last failure wins)
    - Unexpected exceptions are caught at the flow boundary, logged with
      traceback and stored in `state.fatal_error`; sibling flows keep going
    """

    def __init__(
        self,
        settings: Settings,
        client: StatsApiClient,
        feed: Optional[LiveFeedClient] = None,
        prefetch_cache: Optional[PrefetchCache] = None,
        pending_tx: Optional[PendingTxStore] = None,
        notifier: Optional[Notifier] = None,
        snapshot_store: Optional[AsyncSnapshotStore] = None,
    ) -> None:
        self.settings = settings
        self.client = client
        self.feed = feed
        self.prefetch_cache = prefetch_cache or PrefetchCache(client)
        self.pending_tx = pending_tx or PendingTxStore()
        self.notifier = notifier
        self.snapshot_store = snapshot_store

        self.state = DashboardState()
        self._mounted = False
        self._flow_tasks: List[asyncio.Task] = []
        self._feed_task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()

        if self.feed is not None:
            self.feed.register(GAS_PRICES_TOPIC, self._on_gas_prices)

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self) -> None:
        """Launch the acquisition flows and the live feed. Idempotent."""
        if self._mounted:
            return
        self._mounted = True

        logger.info("Mounting dashboard: starting bootstrap flows")
        self._flow_tasks = [
            asyncio.create_task(self._guard(FLOW_ALL_PAIRS, self.fetch_all_pairs)),
            asyncio.create_task(self._guard(FLOW_TOP_PAIRS, self.fetch_top_pairs)),
            asyncio.create_task(
                self._guard(FLOW_MARKET_DATA, self.fetch_market_data)
            ),
        ]

        if self.feed is not None:
            self._feed_task = asyncio.create_task(self.feed.run())

    async def wait_for_bootstrap(self) -> None:
        if self._flow_tasks:
            await asyncio.gather(*self._flow_tasks, return_exceptions=True)

    async def wait_for_background(self) -> None:
        """Wait for prefetch and persistence work spawned by the flows."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def unmount(self) -> None:
        if not self._mounted:
            return
        self._mounted = False

        tasks = [t for t in (*self._flow_tasks, *self._background) if not t.done()]
        if self._feed_task is not None and not self._feed_task.done():
            if self.feed is not None:
                await self.feed.close()
            tasks.append(self._feed_task)

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._flow_tasks = []
        self._feed_task = None
        self._background.clear()
        logger.info("Dashboard unmounted")

    async def run(self) -> None:
        """
        Mount, bootstrap and keep the live feed running until cancelled.
        Always unmounts on the way out.
        """
        self.mount()
        try:
            await self.wait_for_bootstrap()
            self._log_bootstrap_summary()
            if self._feed_task is not None:
                await self._feed_task
            else:
                await self.wait_for_background()
        finally:
            await self.unmount()

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    async def fetch_all_pairs(self) -> None:
        result = await self.client.get_top_pairs()

        if result.error:
            await self._publish_error(FLOW_ALL_PAIRS, "top pairs", result.error)
            return

        if result.data is None or not self._mounted:
            return

        ranked = calculate_pair_rankings(result.data)
        self.state.all_pairs = AllPairsState.from_ranked(ranked)
        logger.info(f"Ranked {len(ranked.pairs)} pairs")

        if self.snapshot_store is not None:
            self._spawn(self._persist_snapshot(ranked.pairs))

    async def fetch_top_pairs(self) -> None:
        (weekly, daily, pinned) = await asyncio.gather(
            self.client.get_weekly_top_performing_pairs(),
            self.client.get_daily_top_performing_pairs(),
            self.client.get_pair_overview(self.settings.pinned_pair_id),
        )

        error = weekly.error or daily.error or pinned.error
        if error:
            await self._publish_error(FLOW_TOP_PAIRS, "top performing pairs", error)
            return

        if weekly.data is None or daily.data is None or pinned.data is None:
            return
        if not self._mounted:
            return

        self.state.top_pairs = TopPairsSnapshot(
            daily=tuple(daily.data), weekly=tuple(weekly.data)
        )

        targets = select_prefetch_targets(
            daily.data,
            weekly.data,
            pinned.data,
            limit=self.settings.prefetch_top_n,
        )
        logger.info(f"Selected {len(targets)} pairs to prefetch")
        self._spawn(self.prefetch_cache.warm(targets))

    async def fetch_market_data(self) -> None:
        result = await self.client.get_market_data()

        if result.error:
            await self._publish_error(FLOW_MARKET_DATA, "market data", result.error)
            return

        if result.data is not None and self._mounted:
            self.state.market_data = result.data

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _on_gas_prices(self, message: GasPricesMessage) -> None:
        if not self._mounted:
            return
        self.state.gas_prices = message.data
        logger.debug(
            f"Gas prices: standard={message.data.standard} "
            f"fast={message.data.fast} faster={message.data.faster}"
        )

    async def _publish_error(self, flow: str, what: str, error: str) -> None:
        logger.warning(f"Could not fetch {what}: {error}")
        if not self._mounted:
            return
        self.state.set_error(flow, error)
        if self.notifier is not None:
            await self.notifier.notify(
                f"❌ <b>Dashboard acquisition failed</b>\n"
                f"Flow: {flow}\n"
                f"Error: {error}"
            )

    async def _guard(self, flow: str, fn: Callable[[], Awaitable[None]]) -> None:
        try:
            await fn()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {flow} flow: {e}", exc_info=True)
            if self._mounted:
                self.state.fatal_error = f"{type(e).__name__}: {e}"

    def _spawn(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background_done)

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Background task failed: {task.exception()}",
                exc_info=task.exception(),
            )

    async def _persist_snapshot(self, pairs) -> None:
        try:
            await self.snapshot_store.save_snapshot(pairs)  # type: ignore[union-attr]
        except Exception as e:
            logger.error(f"Failed to persist pair snapshot: {e}", exc_info=True)

    def _log_bootstrap_summary(self) -> None:
        if self.state.error:
            logger.warning(
                f"Bootstrap finished with error from {self.state.error_source}: "
                f"{self.state.error}"
            )
            return
        pairs = self.state.all_pairs.pairs or ()
        logger.info(
            f"Bootstrap complete: {len(pairs)} pairs, "
            f"{len(self.state.market_data or [])} market stats, "
            f"{len(self.prefetch_cache)} prefetched"
        )
