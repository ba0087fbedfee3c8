# script_scout/crawler/fetcher.py
"""
Fetcher module: HTTP GET of the page and of its remote scripts, with timeout.

No retries and no caching: one call, one request.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Type

from aiohttp import ClientError, ClientSession, ClientTimeout

from script_scout.config import CrawlerConfig
from script_scout.crawler.models import PageData
from script_scout.exceptions import FetchError, PageFetchError, ScriptFetchError


class Fetcher:
    """Handles HTTP fetching of a page and its scripts over a shared session."""

    def __init__(self, session: ClientSession, config: CrawlerConfig) -> None:
        self.session = session
        self.config = config
        self.logger = logging.getLogger("ScriptScout")

    async def fetch_page(self, url: str) -> PageData:
        """Fetch the top-level page. Raises :class:`PageFetchError`."""
        return await self._get(url, self.config.timeout, PageFetchError)

    async def fetch_script(self, url: str) -> PageData:
        """Fetch one remote script. Raises :class:`ScriptFetchError`."""
        return await self._get(url, self.config.script_timeout, ScriptFetchError)

    async def _get(self, url: str, timeout: float, error_cls: Type[FetchError]) -> PageData:
        try:
            async with self.session.get(
                url,
                timeout=ClientTimeout(total=timeout),
                raise_for_status=self.config.raise_for_status,
            ) as resp:
                text = await resp.text(errors="replace")
                self.logger.debug("GET %s -> HTTP %s, %d chars", url, resp.status, len(text))
                return PageData(url, text, resp.status)
        except asyncio.TimeoutError as exc:
            raise error_cls(url, f"timed out after {timeout} s") from exc
        except (ClientError, ValueError) as exc:
            raise error_cls(url, str(exc) or type(exc).__name__) from exc
