"""Base source interface and HTTP fetching for the watch bot."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import aiohttp
from loguru import logger

from ..core.types import ChangeKind, Entity


class FetchError(Exception):
    """Raised when an upstream API cannot be fetched or decoded."""
    pass


class HttpClient:
    """GET-only JSON client with a fixed total timeout."""

    def __init__(self, timeout_seconds: float = 10.0, user_agent: Optional[str] = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.headers = {"Accept": "application/json"}
        if user_agent:
            self.headers["User-Agent"] = user_agent

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None,
                       headers: Optional[Dict[str, str]] = None) -> Any:
        """Fetch a URL and decode the JSON body."""
        request_headers = dict(self.headers)
        if headers:
            request_headers.update(headers)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params=params, headers=request_headers) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise FetchError(f"HTTP {response.status} from {url}: {body[:200]}")
                    return await response.json(content_type=None)
        except FetchError:
            raise
        except asyncio.TimeoutError as e:
            raise FetchError(f"Timeout fetching {url}") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise FetchError(f"Request to {url} failed: {e}") from e


# Mapping of resource id -> freshly fetched entities
FetchResult = Dict[str, List[Entity]]


class BaseSource(ABC):
    """Base resource adapter.

    A source fetches one or more resources and normalizes each upstream
    response into :class:`Entity` objects the detectors understand.
    """

    name: str
    kind: ChangeKind

    def __init__(self, http: HttpClient):
        self.http = http

    @abstractmethod
    async def fetch(self) -> FetchResult:
        """Fetch every resource of this source.

        Raises FetchError when nothing could be fetched at all.
        """
        pass

    def _log_failure(self, resource_id: str, error: Exception) -> None:
        logger.error(f"{self.name}: fetch failed for {resource_id}: {error}")
