"""Tests for snapshot-diff change detection."""

import pytest

from upbit_watch.core.detector import LatestValueDetector, ScalarThresholdDetector, SetMembershipDetector
from upbit_watch.core.types import ChangeKind, Entity


def keys(*names):
    return [Entity(key=name, payload={"market": name}) for name in names]


class TestPriming:
    """The first non-empty fetch stores state and emits nothing."""

    @pytest.mark.parametrize("detector", [
        SetMembershipDetector(),
        LatestValueDetector(),
        ScalarThresholdDetector(),
    ])
    def test_first_call_is_silent(self, detector):
        entities = [Entity(key="a", value=5000.0), Entity(key="b", value=9000.0)]

        events = detector.detect_changes("res", entities)

        assert events == []
        assert detector.snapshot("res") is not None

    def test_priming_populates_full_set(self):
        detector = SetMembershipDetector()
        detector.detect_changes("markets", keys("A", "B", "C"))

        assert set(detector.snapshot("markets")) == {"A", "B", "C"}

    def test_empty_fetch_does_not_prime(self):
        detector = SetMembershipDetector()

        assert detector.detect_changes("markets", []) == []
        assert detector.snapshot("markets") is None

        # The next real fetch still primes
        assert detector.detect_changes("markets", keys("A")) == []
        assert detector.snapshot("markets") == {"A": True}

    def test_resources_are_independent(self):
        detector = LatestValueDetector()
        detector.detect_changes("wallet:1", [Entity(key="tx1")])

        # A second resource primes on its own first fetch
        assert detector.detect_changes("wallet:2", [Entity(key="tx9")]) == []
        assert detector.snapshot("wallet:1") == {"latest": "tx1"}
        assert detector.snapshot("wallet:2") == {"latest": "tx9"}

    def test_reset_primes_again(self):
        detector = SetMembershipDetector()
        detector.detect_changes("markets", keys("A"))
        detector.reset("markets")

        assert detector.detect_changes("markets", keys("A", "B")) == []


class TestSetMembershipDetector:
    """Listing-style detection."""

    def setup_method(self):
        self.detector = SetMembershipDetector()
        self.detector.detect_changes("markets", keys("A", "B"))

    def test_new_key_emits_one_event(self):
        events = self.detector.detect_changes("markets", keys("A", "B", "C"))

        assert len(events) == 1
        assert events[0].key == "C"
        assert events[0].kind == ChangeKind.NEW_LISTING
        assert events[0].resource_id == "markets"
        assert events[0].payload["market"] == "C"
        assert set(self.detector.snapshot("markets")) == {"A", "B", "C"}

    def test_identical_input_emits_nothing(self):
        before = dict(self.detector.snapshot("markets"))

        events = self.detector.detect_changes("markets", keys("A", "B"))

        assert events == []
        assert self.detector.snapshot("markets") == before

    def test_emission_follows_fetch_order(self):
        events = self.detector.detect_changes("markets", keys("Z", "A", "M", "B", "C"))

        assert [e.key for e in events] == ["Z", "M", "C"]

    def test_existing_keys_never_reported_again(self):
        self.detector.detect_changes("markets", keys("A", "B", "C"))

        assert self.detector.detect_changes("markets", keys("A", "B", "C")) == []

    def test_missing_keys_are_kept(self):
        self.detector.detect_changes("markets", keys("A"))

        assert set(self.detector.snapshot("markets")) == {"A", "B"}
        assert self.detector.detect_changes("markets", keys("A", "B")) == []


class TestLatestValueDetector:
    """Wallet-style detection on the most recent item only."""

    def setup_method(self):
        self.detector = LatestValueDetector()
        self.detector.detect_changes("wallet:x", [Entity(key="tx1")])

    def test_new_latest_emits_once(self):
        events = self.detector.detect_changes("wallet:x", [Entity(key="tx2", payload={"hash": "tx2"}), Entity(key="tx1")])

        assert len(events) == 1
        assert events[0].key == "tx2"
        assert events[0].kind == ChangeKind.WALLET_RECEIVE
        assert events[0].payload["hash"] == "tx2"

        assert self.detector.detect_changes("wallet:x", [Entity(key="tx2"), Entity(key="tx1")]) == []

    def test_intermediate_items_are_skipped(self):
        fresh = [Entity(key="tx4"), Entity(key="tx3"), Entity(key="tx2"), Entity(key="tx1")]

        events = self.detector.detect_changes("wallet:x", fresh)

        assert [e.key for e in events] == ["tx4"]
        assert self.detector.snapshot("wallet:x") == {"latest": "tx4"}


class TestScalarThresholdDetector:
    """Volume-style detection."""

    def _primed(self, ratio=1.5, floor=1000.0, stored=1000.0):
        detector = ScalarThresholdDetector(ratio=ratio, floor=floor)
        detector.detect_changes("volume", [Entity(key="t", value=stored)])
        return detector

    def test_below_ratio_no_event(self):
        detector = self._primed()

        assert detector.detect_changes("volume", [Entity(key="t", value=1400.0)]) == []
        assert detector.snapshot("volume")["t"] == 1400.0

    def test_exactly_ratio_no_event(self):
        detector = self._primed()

        assert detector.detect_changes("volume", [Entity(key="t", value=1500.0)]) == []

    def test_above_ratio_and_floor_emits(self):
        detector = self._primed()

        events = detector.detect_changes("volume", [Entity(key="t", value=1600.0, payload={"symbol": "TKN"})])

        assert len(events) == 1
        assert events[0].kind == ChangeKind.VOLUME_SPIKE
        assert events[0].payload["previous"] == 1000.0
        assert events[0].payload["ratio"] == pytest.approx(1.6)
        assert events[0].payload["symbol"] == "TKN"

    def test_floor_is_and_condition(self):
        detector = self._primed(floor=2000.0)

        assert detector.detect_changes("volume", [Entity(key="t", value=1600.0)]) == []

    def test_value_always_stored(self):
        detector = self._primed()
        detector.detect_changes("volume", [Entity(key="t", value=1600.0)])

        # Compared against the new baseline, not the original one
        assert detector.detect_changes("volume", [Entity(key="t", value=2000.0)]) == []
        assert detector.snapshot("volume")["t"] == 2000.0

    def test_small_values_below_floor(self):
        detector = self._primed(stored=100.0)

        assert detector.detect_changes("volume", [Entity(key="t", value=900.0)]) == []

    def test_new_key_after_priming_is_primed_alone(self):
        detector = self._primed()

        events = detector.detect_changes("volume", [Entity(key="t", value=1000.0), Entity(key="new", value=50000.0)])

        assert events == []
        assert detector.snapshot("volume")["new"] == 50000.0
