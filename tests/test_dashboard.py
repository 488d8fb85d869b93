# tests/test_dashboard.py

import asyncio
import json

from pairwatch.api.client import FetchResult
from pairwatch.config import GAS_PRICES_TOPIC
from pairwatch.dashboard import (
    FLOW_ALL_PAIRS,
    FLOW_MARKET_DATA,
    FLOW_TOP_PAIRS,
    Dashboard,
)
from pairwatch.feed import LiveFeedClient

from conftest import (
    FakeStatsClient,
    FakeWebSocket,
    fake_connector,
    gas_message,
    make_pair,
    make_stats,
)


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    async def notify(self, message: str) -> None:
        self.messages.append(message)


class RecordingStore:
    def __init__(self):
        self.saved = []

    async def save_snapshot(self, pairs):
        self.saved.append([p.id for p in pairs])
        return len(pairs)


def bootstrap(dashboard: Dashboard) -> None:
    async def go():
        dashboard.mount()
        await dashboard.wait_for_bootstrap()
        await dashboard.wait_for_background()

    asyncio.run(go())


def test_all_flows_publish_on_success(settings):
    client = FakeStatsClient(
        top_pairs=FetchResult(data=[make_pair("A", 1, 9), make_pair("B", 5, 2)]),
        daily=FetchResult(data=[make_stats("A")]),
        weekly=FetchResult(data=[make_stats("B")]),
        market=FetchResult(data=[make_stats("M")]),
    )
    dashboard = Dashboard(settings, client)

    bootstrap(dashboard)

    state = dashboard.state
    assert state.error is None
    assert state.fatal_error is None
    assert state.all_pairs.is_loading is False
    assert [p.id for p in state.all_pairs.pairs] == ["B", "A"]
    assert [p.id for p in state.all_pairs.by_liquidity] == ["A", "B"]
    assert state.all_pairs.lookup["B"].volume_ranking == 0
    assert [s.id for s in state.top_pairs.daily] == ["A"]
    assert [s.id for s in state.top_pairs.weekly] == ["B"]
    assert [s.id for s in state.market_data] == ["M"]


def test_top_pairs_flow_prefetches_selected_targets(settings):
    client = FakeStatsClient(
        daily=FetchResult(data=[make_stats(f"P{i}") for i in range(1, 16)]),
        weekly=FetchResult(data=[make_stats(f"P{i}") for i in range(10, 26)]),
    )
    dashboard = Dashboard(settings, client)

    bootstrap(dashboard)

    expected = [f"P{i}" for i in range(1, 20)]
    # First overview call is the pinned pair itself
    assert client.overview_calls[0] == "P1"
    assert client.overview_calls[1:] == expected
    assert sorted(dashboard.prefetch_cache.entries) == sorted(expected)


def test_top_pairs_flow_is_all_or_nothing(settings):
    client = FakeStatsClient(
        daily=FetchResult(data=[make_stats("A")]),
        weekly=FetchResult(data=[make_stats("B")]),
        P1=FetchResult(error="pair overview unavailable"),
    )
    dashboard = Dashboard(settings, client)

    bootstrap(dashboard)

    assert dashboard.state.top_pairs is None
    assert len(dashboard.prefetch_cache) == 0
    assert client.overview_calls == ["P1"]
    assert dashboard.state.error == "pair overview unavailable"
    assert dashboard.state.error_source == FLOW_TOP_PAIRS


def test_all_pairs_failure_leaves_loading_state(settings, caplog):
    client = FakeStatsClient(
        top_pairs=FetchResult(error="timeout"),
        market=FetchResult(data=[make_stats("M")]),
    )
    dashboard = Dashboard(settings, client)

    bootstrap(dashboard)

    assert dashboard.state.all_pairs.is_loading is True
    assert dashboard.state.all_pairs.pairs is None
    assert dashboard.state.error == "timeout"
    assert dashboard.state.error_source == FLOW_ALL_PAIRS
    # Sibling flows are unaffected
    assert [s.id for s in dashboard.state.market_data] == ["M"]
    assert dashboard.state.top_pairs is not None
    assert "Could not fetch top pairs: timeout" in caplog.text


def test_market_data_failure_sets_shared_error(settings):
    notifier = RecordingNotifier()
    client = FakeStatsClient(market=FetchResult(error="market down"))
    dashboard = Dashboard(settings, client, notifier=notifier)

    bootstrap(dashboard)

    assert dashboard.state.error == "market down"
    assert dashboard.state.error_source == FLOW_MARKET_DATA
    assert dashboard.state.market_data is None
    assert len(notifier.messages) == 1
    assert "market down" in notifier.messages[0]


def test_last_failing_flow_owns_the_error_slot(settings):
    class SlowMarketClient(FakeStatsClient):
        async def get_market_data(self):
            await asyncio.sleep(0.01)
            return FetchResult(error="market failed last")

    client = SlowMarketClient(top_pairs=FetchResult(error="pairs failed first"))
    dashboard = Dashboard(settings, client)

    bootstrap(dashboard)

    assert dashboard.state.error == "market failed last"
    assert dashboard.state.error_source == FLOW_MARKET_DATA


def test_unexpected_exception_is_contained(settings, caplog):
    class BrokenMarketClient(FakeStatsClient):
        async def get_market_data(self):
            raise RuntimeError("bad payload handling")

    client = BrokenMarketClient(top_pairs=FetchResult(data=[make_pair("A", 1, 1)]))
    dashboard = Dashboard(settings, client)

    bootstrap(dashboard)

    assert dashboard.state.fatal_error == "RuntimeError: bad payload handling"
    assert dashboard.state.error is None
    assert dashboard.state.all_pairs.is_loading is False
    assert "Unexpected error in market_data flow" in caplog.text


def test_no_publish_after_unmount(settings):
    release = None

    class SlowClient(FakeStatsClient):
        async def get_market_data(self):
            await release.wait()
            return FetchResult(data=[make_stats("late")])

    client = SlowClient()
    dashboard = Dashboard(settings, client)

    async def go():
        nonlocal release
        release = asyncio.Event()
        dashboard.mount()
        await asyncio.sleep(0)
        await dashboard.unmount()
        release.set()
        await dashboard.fetch_market_data()

    asyncio.run(go())

    assert dashboard.is_mounted is False
    assert dashboard.state.market_data is None


def test_flow_publish_is_skipped_when_not_mounted(settings):
    client = FakeStatsClient(market=FetchResult(error="ignored"))
    dashboard = Dashboard(settings, client)

    asyncio.run(dashboard.fetch_market_data())

    assert dashboard.state.error is None


def test_ranked_snapshot_is_persisted(settings):
    store = RecordingStore()
    client = FakeStatsClient(
        top_pairs=FetchResult(data=[make_pair("A", 1, 1), make_pair("B", 2, 2)])
    )
    dashboard = Dashboard(settings, client, snapshot_store=store)

    bootstrap(dashboard)

    assert store.saved == [["B", "A"]]


def test_run_follows_live_feed_until_it_stops(settings):
    ws = FakeWebSocket([gas_message(1), json.dumps({"topic": "noise"}), gas_message(2)])
    feed = LiveFeedClient("ws://feed.test", connect=fake_connector(ws))
    client = FakeStatsClient(top_pairs=FetchResult(data=[make_pair("A", 1, 1)]))
    dashboard = Dashboard(settings, client, feed=feed)

    asyncio.run(dashboard.run())

    assert feed.topics == [GAS_PRICES_TOPIC]
    assert ws.sent == [json.dumps({"op": "subscribe", "topics": [GAS_PRICES_TOPIC]})]
    assert dashboard.state.gas_prices.standard == 2
    assert dashboard.is_mounted is False


def test_pending_tx_store_is_shared_with_consumers(settings):
    dashboard = Dashboard(settings, FakeStatsClient())

    def approve_from_widget(store):
        store.add("approval", "0xabc")

    approve_from_widget(dashboard.pending_tx)

    assert dashboard.pending_tx.value.approval == ("0xabc",)


def test_prefetch_interrupted_by_unmount_is_retried_on_remount(settings):
    class StallingClient(FakeStatsClient):
        async def get_pair_overview(self, pair_id):
            self.overview_calls.append(pair_id)
            if pair_id == "A" and self.overview_calls.count("A") == 1:
                await asyncio.Event().wait()
            return FetchResult(data=make_pair(pair_id))

    client = StallingClient(daily=FetchResult(data=[make_stats("A")]))
    dashboard = Dashboard(settings, client)

    async def go():
        dashboard.mount()
        await dashboard.wait_for_bootstrap()
        await asyncio.sleep(0.01)
        await dashboard.unmount()

        dashboard.mount()
        await dashboard.wait_for_bootstrap()
        await dashboard.wait_for_background()

    asyncio.run(go())

    assert client.overview_calls.count("A") == 2
    entry = dashboard.prefetch_cache.get("A")
    assert entry.is_loading is False
    assert entry.overview.id == "A"
