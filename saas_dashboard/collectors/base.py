"""Base collector class."""
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any

import httpx

from saas_dashboard.config import Settings, get_settings

logger = logging.getLogger(__name__)


class CollectorError(Exception):
    """Upstream API returned something we can't use."""


class BaseCollector(ABC):
    """Base class for daily metric collectors."""

    name: str = "base"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.client = httpx.AsyncClient(timeout=30.0, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    @abstractmethod
    async def collect(self, start_date: date, end_date: date) -> list:
        """Collect daily records for [start_date, end_date]. Must not raise."""
        pass

    async def request_json(self, url: str, **kwargs) -> dict[str, Any]:
        """GET a JSON object, raising on any transport or payload problem."""
        response = await self.client.get(url, **kwargs)
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as e:
            raise CollectorError(f"Invalid JSON from {url}") from e
        if not isinstance(data, dict):
            raise CollectorError(f"Expected a JSON object from {url}")
        return data

    async def fetch_json(self, url: str, **kwargs) -> dict[str, Any] | None:
        """Fetch JSON from URL with error handling."""
        try:
            return await self.request_json(url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"[{self.name}] HTTP error fetching {url}: {e}")
            return None
        except Exception as e:
            logger.error(f"[{self.name}] Error fetching {url}: {e}")
            return None
