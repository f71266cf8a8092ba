"""Tests for the poll -> detect -> notify cycle."""

import asyncio
from unittest.mock import AsyncMock, Mock

from upbit_watch.config import Config
from upbit_watch.core.detector import LatestValueDetector, ScalarThresholdDetector, SetMembershipDetector
from upbit_watch.core.factory import PollerFactory
from upbit_watch.core.history import EventHistory
from upbit_watch.core.poller import Poller
from upbit_watch.core.types import ChangeKind, Entity
from upbit_watch.core.watchlist import WatchList
from upbit_watch.sources import FetchError

from tests.sample_data import TOKEN_A, WALLET


class FakeListingSource:
    """In-memory listing source whose markets can be changed between polls."""

    def __init__(self, markets):
        self.markets = list(markets)
        self.fail = False

    async def fetch(self):
        if self.fail:
            raise FetchError("upstream timeout")
        return {"upbit:markets": [Entity(key=m, payload={"market": m}) for m in self.markets]}


class TestPoller:
    """Poller cycle behaviour."""

    def setup_method(self):
        self.source = FakeListingSource(["KRW-BTC", "KRW-ETH"])
        self.notifier = Mock()
        self.notifier.notify = AsyncMock(return_value=True)
        self.history = EventHistory()
        self.journal = Mock()
        self.poller = Poller(
            "Upbit Market", self.source, SetMembershipDetector(),
            notifier=self.notifier, history=self.history, journal=self.journal,
            interval_seconds=30,
        )

    def test_scenario_prime_detect_quiet(self):
        """t=0 primes, t=30 reports the new market, t=60 reports nothing."""
        first = asyncio.run(self.poller.poll_once())
        assert first.ok
        assert first.events == []
        self.notifier.notify.assert_not_called()

        self.source.markets.append("KRW-NEW")
        second = asyncio.run(self.poller.poll_once())
        assert [e.key for e in second.events] == ["KRW-NEW"]
        assert second.events[0].kind == ChangeKind.NEW_LISTING
        self.notifier.notify.assert_awaited_once()
        assert self.notifier.notify.await_args.args[0].key == "KRW-NEW"

        third = asyncio.run(self.poller.poll_once())
        assert third.events == []
        assert self.notifier.notify.await_count == 1
        assert self.poller.cycles == 3

    def test_events_recorded_in_history_and_journal(self):
        asyncio.run(self.poller.poll_once())
        self.source.markets.append("KRW-NEW")
        asyncio.run(self.poller.poll_once())

        assert [e.key for e in self.history.recent()] == ["KRW-NEW"]
        journal_lines = [call.args[0] for call in self.journal.record.call_args_list]
        assert any("Initialized upbit:markets: 2 entries" in line for line in journal_lines)
        assert any("KRW-NEW" in line for line in journal_lines)

    def test_fetch_failure_keeps_snapshot(self):
        asyncio.run(self.poller.poll_once())
        before = dict(self.poller.detector.snapshot("upbit:markets"))

        self.source.fail = True
        result = asyncio.run(self.poller.poll_once())

        assert not result.ok
        assert "upstream timeout" in result.error
        assert result.events == []
        assert self.poller.detector.snapshot("upbit:markets") == before
        assert self.poller.last_result is result

        # Recovery on the next tick reports only what is new
        self.source.fail = False
        self.source.markets.append("KRW-NEW")
        result = asyncio.run(self.poller.poll_once())
        assert [e.key for e in result.events] == ["KRW-NEW"]

    def test_failure_before_priming_does_not_prime(self):
        self.source.fail = True
        asyncio.run(self.poller.poll_once())

        assert self.poller.detector.snapshot("upbit:markets") is None

    def test_notification_failure_is_not_fatal(self):
        self.notifier.notify = AsyncMock(return_value=False)
        asyncio.run(self.poller.poll_once())
        self.source.markets.extend(["KRW-A", "KRW-B"])

        result = asyncio.run(self.poller.poll_once())

        assert [e.key for e in result.events] == ["KRW-A", "KRW-B"]
        assert self.notifier.notify.await_count == 2
        assert len(self.history) == 2

    def test_run_polls_until_stopped(self):
        poller = Poller("Upbit Market", self.source, SetMembershipDetector(), interval_seconds=0.01)

        async def run_briefly():
            task = asyncio.create_task(poller.run())
            await asyncio.sleep(0.05)
            poller.stop()
            await asyncio.wait_for(task, timeout=1)

        asyncio.run(run_briefly())

        assert poller.cycles >= 2
        assert poller.running is False

    def test_concurrent_polls_are_serialized(self):
        async def overlapping():
            return await asyncio.gather(self.poller.poll_once(), self.poller.poll_once())

        self.source.markets.append("KRW-NEW")
        results = asyncio.run(overlapping())

        # One primes, the other sees the same set: nothing is reported twice
        assert sum(len(r.events) for r in results) == 0
        assert set(self.poller.detector.snapshot("upbit:markets")) == {"KRW-BTC", "KRW-ETH", "KRW-NEW"}


class TestPollerFactory:
    """Poller construction from configuration."""

    def test_all_enabled(self):
        config = Config.from_env({
            "BOT_TOKEN": "t", "CHAT_ID": "c", "ETHERSCAN_API": "key", "UPBIT_WALLET": WALLET,
        })

        pollers = PollerFactory.create_pollers(config, WatchList([TOKEN_A]), http=Mock())

        assert set(pollers) == {"listings", "wallet", "volume"}
        assert isinstance(pollers["listings"].detector, SetMembershipDetector)
        assert isinstance(pollers["wallet"].detector, LatestValueDetector)
        assert pollers["volume"].detector.ratio == 1.5
        assert pollers["volume"].detector.floor == 1000
        assert pollers["volume"].interval_seconds == 60

    def test_wallet_disabled_without_key(self):
        config = Config.from_env({"BOT_TOKEN": "t", "CHAT_ID": "c", "UPBIT_WALLET": WALLET})

        pollers = PollerFactory.create_pollers(config, WatchList(), http=Mock())

        assert "wallet" not in pollers
        assert isinstance(pollers["volume"].detector, ScalarThresholdDetector)
