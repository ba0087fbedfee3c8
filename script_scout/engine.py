# File: script_scout/engine.py
"""script_scout.engine: Orchestration layer: проверка аргументов, обход страницы и запись результата."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from script_scout.config import CrawlerConfig
from script_scout.crawler.crawler import ScriptCrawler
from script_scout.crawler.models import CrawlResult
from script_scout.exceptions import InvalidRequestError, PageFetchError
from script_scout.logger import logger
from script_scout.storage.db import CrawlMeta, ScriptStore, record_result
from script_scout.validation import CrawlRequest, validate_request

__all__ = ["Engine", "CrawlOutcome", "merge_jobs"]


@dataclass(slots=True)
class CrawlOutcome:
    """Результат одного запуска: запрос, найденное и id записи (если писали в БД)."""

    request: CrawlRequest
    result: CrawlResult
    crawl_id: Optional[int] = None


def crawl_meta(request: CrawlRequest) -> CrawlMeta:
    return CrawlMeta(
        batch_id=request.batch,
        source_url=request.url,
        batch_tags=list(request.tags),
        region=request.region,
        rank=request.rank,
        terms=list(request.terms),
        domains=list(request.domains),
    )


class Engine:
    """Фасад для CLI и тестов: один URL за запуск, состояние между запусками не хранится."""

    def __init__(
        self,
        config: CrawlerConfig,
        store: Optional[ScriptStore] = None,
        record: bool = True,
    ) -> None:
        self.config = config
        self.store = store
        self.record = record

    async def crawl(self, request: CrawlRequest) -> CrawlResult:
        async with ScriptCrawler(self.config) as crawler:
            return await crawler.crawl(request.url, request.terms, request.domains)

    def persist(self, request: CrawlRequest, result: CrawlResult) -> Optional[int]:
        """Пишет результат в хранилище, если оно настроено. StorageError пробрасывается."""
        if not self.record:
            return None
        meta = crawl_meta(request)
        if self.store is not None:
            crawl_id = self.store.record(result, meta)
        elif self.config.database_url:
            crawl_id = record_result(result, meta, self.config.database_url)
        else:
            logger.debug("No database configured, result of %s is not recorded", request.url)
            return None
        logger.info("Recorded crawl of %s as id %s", request.url, crawl_id)
        return crawl_id

    def run(self, request: CrawlRequest) -> CrawlOutcome:
        """Обходит страницу и записывает результат.

        PageFetchError и StorageError пробрасываются вызывающему.
        """
        result = asyncio.run(self.crawl(request))
        return CrawlOutcome(request=request, result=result, crawl_id=self.persist(request, result))

    def dispatch(self, args: Mapping[str, Any]) -> Optional[bool]:
        """Запуск по словарю аргументов.

        Возвращает ``None``, если аргументы некорректны (URL пропускается),
        ``False``, если не удалось загрузить страницу, и ``True`` при успехе.
        """
        try:
            request = validate_request(dict(args))
        except InvalidRequestError as exc:
            logger.warning("Invalid arguments, skipping %s: %s", args.get("url"), exc.details or exc)
            return None

        previous_level = logger.level
        if request.debug:
            logger.setLevel("DEBUG")
        try:
            self.run(request)
        except PageFetchError as exc:
            logger.error("Error encountered when crawling %s: %s", request.url, exc.reason)
            return False
        finally:
            logger.setLevel(previous_level)
        return True

    def run_batch(self, jobs: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
        """Последовательно обрабатывает список заданий, возвращает сводку."""
        summary = {"ok": 0, "failed": 0, "skipped": 0}
        for job in jobs:
            status = self.dispatch(job)
            if status is None:
                summary["skipped"] += 1
            elif status:
                summary["ok"] += 1
            else:
                summary["failed"] += 1
        logger.info("Batch finished: %s", summary)
        return summary


def merge_jobs(document: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Разворачивает файл заданий: ``defaults`` подмешиваются в каждый элемент ``jobs``."""
    defaults = document.get("defaults") or {}
    jobs = document.get("jobs") or []
    if not isinstance(defaults, dict) or not isinstance(jobs, list):
        raise TypeError("job file must contain a 'defaults' mapping and a 'jobs' list")
    merged = []
    for job in jobs:
        if isinstance(job, str):
            job = {"url": job}
        if not isinstance(job, dict):
            raise TypeError(f"job must be a URL or a mapping, got {type(job).__name__}")
        merged.append({**defaults, **job})
    return merged
