"""Poller factory: builds one poller per enabled resource type."""

from typing import Dict, Optional
from loguru import logger

from ..config import Config
from ..sources import DexscreenerVolumeSource, EtherscanWalletSource, HttpClient, UpbitListingSource
from .detector import LatestValueDetector, ScalarThresholdDetector, SetMembershipDetector
from .history import EventHistory
from .poller import Poller
from .watchlist import WatchList


class PollerFactory:
    """Creates pollers based on configuration."""

    @staticmethod
    def create_pollers(config: Config, watchlist: WatchList, notifier=None,
                       history: Optional[EventHistory] = None, journal=None,
                       http: Optional[HttpClient] = None) -> Dict[str, Poller]:
        """Create the listings, wallet and volume pollers that are enabled."""
        http = http or HttpClient(config.http.timeout_seconds, config.http.user_agent)
        shared = {"notifier": notifier, "history": history, "journal": journal}
        pollers: Dict[str, Poller] = {}

        if config.listings.enabled:
            pollers["listings"] = Poller(
                "Upbit Market",
                UpbitListingSource(http, config.listings.api_url),
                SetMembershipDetector(),
                interval_seconds=config.listings.interval_seconds,
                **shared,
            )

        if config.wallet.enabled:
            pollers["wallet"] = Poller(
                "Upbit Wallet",
                EtherscanWalletSource(
                    http,
                    config.wallet.api_key,
                    config.wallet.addresses,
                    api_url=config.wallet.api_url,
                    chain_id=config.wallet.chain_id,
                    page_size=config.wallet.page_size,
                ),
                LatestValueDetector(),
                interval_seconds=config.wallet.interval_seconds,
                **shared,
            )
        else:
            logger.warning("Wallet tracker disabled - ETHERSCAN_API or UPBIT_WALLET not set")

        if config.volume.enabled:
            pollers["volume"] = Poller(
                "Volume Watch",
                DexscreenerVolumeSource(http, watchlist, config.volume.api_url),
                ScalarThresholdDetector(config.volume.spike_ratio, config.volume.min_volume),
                interval_seconds=config.volume.interval_seconds,
                **shared,
            )

        logger.info(f"Created {len(pollers)} pollers: {', '.join(pollers)}")
        return pollers
