# === FILE: script_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from aiohttp import ClientSession

from script_scout.attribution import AttributionResolver
from script_scout.aggregator import assemble_result
from script_scout.config import CrawlerConfig
from script_scout.crawler.fetcher import Fetcher
from script_scout.crawler.models import CrawlResult, PageData, ScriptDescriptor, TextPair
from script_scout.deobfuscate import deobfuscate
from script_scout.exceptions import ScriptFetchError
from script_scout.matcher import MatchEngine
from script_scout.parser.document_index import DocumentIndex
from script_scout.parser.html_parser import parse_html
from script_scout.parser.scripts import collect_scripts

__all__ = ("ScriptCrawler", "crawl")

Deobfuscator = Callable[[str], str]


class ScriptCrawler:
    """Асинхронный обход одной страницы: скрипты, совпадения, атрибуция."""

    def __init__(self, config: CrawlerConfig, deobfuscator: Deobfuscator = deobfuscate) -> None:
        self.config = config
        self.deobfuscate = deobfuscator
        self.session: Optional[ClientSession] = None
        self.fetcher: Optional[Fetcher] = None
        self.logger = logging.getLogger("ScriptScout")

    async def __aenter__(self) -> ScriptCrawler:
        self.session = ClientSession(
            headers={"User-Agent": self.config.user_agent},
            raise_for_status=False,
        )
        self.fetcher = Fetcher(self.session, self.config)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def crawl(self, url: str, terms: Sequence[str], domains: Sequence[str]) -> CrawlResult:
        """Обходит *url*. Ошибка загрузки самой страницы (PageFetchError) пробрасывается."""
        if not self.fetcher:
            raise RuntimeError("Session not initialized")
        start = time.monotonic()
        self.logger.info("Старт обхода: %s", url)

        page = await self.fetcher.fetch_page(url)
        self.logger.debug("Fetched document of length %d from %s", len(page.content), url)

        parsed = parse_html(page)
        self.logger.debug("Parsed %s, title %r", url, parsed.title)
        index = DocumentIndex(parsed.document)
        inline, remote = collect_scripts(index, url)
        self.logger.debug(
            "Found %d inline and %d remote script tags on %s", len(inline), len(remote), url
        )

        inline = [replace(d, text=self._text_pair(d.text.original)) if d.text else d for d in inline]
        remote = await self._fetch_scripts(remote)

        outcome = MatchEngine(terms, domains).run(inline, remote)
        attributed = AttributionResolver(index, outcome).resolve(outcome)
        result = assemble_result(terms, domains, outcome, attributed)

        self.logger.info(
            "Завершено %s за %.2f с: терминов %d, доменов %d, не ответило скриптов %d",
            url,
            time.monotonic() - start,
            len(result.terms),
            len(result.domains),
            len(outcome.non_responding),
        )
        return result

    def _text_pair(self, original: str) -> TextPair:
        return TextPair.from_texts(original, self.deobfuscate(original))

    async def _fetch_scripts(self, remote: List[ScriptDescriptor]) -> List[ScriptDescriptor]:
        """Загружает все удалённые скрипты; каждый результат — отдельный дескриптор.

        Деобфускация выполняется только после того, как все загрузки завершились.
        """
        if not self.fetcher:
            raise RuntimeError("Session not initialized")
        fetcher = self.fetcher
        semaphore = asyncio.Semaphore(self.config.concurrency)
        in_flight: Dict[str, asyncio.Task[PageData]] = {}

        async def limited(url: str) -> PageData:
            async with semaphore:
                return await fetcher.fetch_script(url)

        def fetch(url: str) -> "asyncio.Future[PageData]":
            if not self.config.share_fetches_by_url:
                return asyncio.ensure_future(limited(url))
            if url not in in_flight:
                in_flight[url] = asyncio.ensure_future(limited(url))
            return in_flight[url]

        async def body(descriptor: ScriptDescriptor) -> Optional[str]:
            if descriptor.url is None:
                return None
            try:
                script = await fetch(descriptor.url)
            except ScriptFetchError as exc:
                self.logger.warning("Script did not respond: %s", exc)
                return None
            self.logger.debug("Fetched script of length %d from %s", len(script.content), descriptor.url)
            return script.content

        bodies = await asyncio.gather(*(body(d) for d in remote))
        return [
            d.failed() if content is None else d.fetched(self._text_pair(content))
            for d, content in zip(remote, bodies)
        ]


async def crawl(
    url: str,
    terms: Sequence[str],
    domains: Sequence[str],
    config: Optional[CrawlerConfig] = None,
) -> CrawlResult:
    """Запускает ScriptCrawler в контексте и возвращает CrawlResult."""
    async with ScriptCrawler(config or CrawlerConfig()) as crawler:
        return await crawler.crawl(url, terms, domains)
