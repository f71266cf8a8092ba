"""Core change-detection logic for the watch bot."""

from .types import ChangeKind, ChangeEvent, Entity
from .detector import ChangeDetector, SetMembershipDetector, LatestValueDetector, ScalarThresholdDetector
from .history import EventHistory
from .watchlist import WatchList, InvalidAddressError, is_valid_address
from .poller import Poller, PollResult

__all__ = [
    'ChangeKind',
    'ChangeEvent',
    'Entity',
    'ChangeDetector',
    'SetMembershipDetector',
    'LatestValueDetector',
    'ScalarThresholdDetector',
    'EventHistory',
    'WatchList',
    'InvalidAddressError',
    'is_valid_address',
    'Poller',
    'PollResult'
]
