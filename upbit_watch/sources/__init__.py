"""Upstream data sources for the watch bot."""

from .base import BaseSource, FetchError, FetchResult, HttpClient
from .upbit import UpbitListingSource
from .etherscan import EtherscanWalletSource
from .dexscreener import DexscreenerVolumeSource

__all__ = [
    'BaseSource',
    'FetchError',
    'FetchResult',
    'HttpClient',
    'UpbitListingSource',
    'EtherscanWalletSource',
    'DexscreenerVolumeSource'
]
