# File: tests/test_engine.py
import logging

import pytest

from conftest import BATCH_ID
from script_scout.config import CrawlerConfig
from script_scout.crawler.models import CrawlResult
from script_scout.engine import Engine, merge_jobs
from script_scout.exceptions import PageFetchError, StorageError
from script_scout.logger import LOGGER_NAME
from script_scout.storage.db import ScriptStore
from script_scout.validation import validate_request


class RecordingStore:
    def __init__(self, fail: bool = False) -> None:
        self.calls = []
        self.fail = fail

    def record(self, result, meta):
        if self.fail:
            raise StorageError("database is down")
        self.calls.append((result, meta))
        return len(self.calls)


@pytest.fixture()
def crawled_urls(monkeypatch):
    """Replace network crawling: URLs containing 'down' fail, others return an empty result."""
    urls = []

    async def fake_crawl(self, request):
        urls.append(request.url)
        if "down" in request.url:
            raise PageFetchError(request.url, "connection refused")
        return CrawlResult()

    monkeypatch.setattr(Engine, "crawl", fake_crawl)
    return urls


def job(url="https://example.com/", **extra):
    return {"url": url, "batch": BATCH_ID, "terms": ["jQuery"], **extra}


def test_dispatch_records_result(crawled_urls):
    store = RecordingStore()
    assert Engine(CrawlerConfig(), store=store).dispatch(job(rank=3, tags=["news"])) is True
    assert crawled_urls == ["https://example.com/"]
    (_, meta), = store.calls
    assert str(meta.batch_id) == BATCH_ID
    assert meta.rank == 3
    assert meta.batch_tags == ["news"]
    assert meta.terms == ["jQuery"]


def test_dispatch_skips_invalid_arguments(crawled_urls):
    store = RecordingStore()
    assert Engine(CrawlerConfig(), store=store).dispatch({"url": "not a url"}) is None
    assert crawled_urls == []
    assert store.calls == []


def test_dispatch_reports_page_failure(crawled_urls):
    store = RecordingStore()
    assert Engine(CrawlerConfig(), store=store).dispatch(job("https://down.example.com/")) is False
    assert store.calls == []


def test_storage_error_propagates(crawled_urls):
    with pytest.raises(StorageError):
        Engine(CrawlerConfig(), store=RecordingStore(fail=True)).dispatch(job())


def test_no_database_means_no_record(crawled_urls):
    outcome = Engine(CrawlerConfig()).run(validate_request(job()))
    assert outcome.crawl_id is None


def test_record_can_be_disabled(crawled_urls, fake_connection):
    store = ScriptStore(fake_connection)
    assert Engine(CrawlerConfig(), store=store, record=False).dispatch(job()) is True
    assert fake_connection.statements == []


def test_debug_flag_is_scoped_to_one_dispatch(crawled_urls):
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel("WARNING")
    Engine(CrawlerConfig()).dispatch(job(debug=True))
    assert logger.level == logging.WARNING


def test_run_batch_summary(crawled_urls):
    jobs = merge_jobs(
        {
            "defaults": {"batch": BATCH_ID, "terms": ["jQuery"]},
            "jobs": ["https://a.example.com/", {"url": "https://down.example.com/"}, {"url": "nope"}],
        }
    )
    summary = Engine(CrawlerConfig(), store=RecordingStore()).run_batch(jobs)
    assert summary == {"ok": 1, "failed": 1, "skipped": 1}
    assert crawled_urls == ["https://a.example.com/", "https://down.example.com/"]


def test_merge_jobs_rejects_bad_documents():
    with pytest.raises(TypeError):
        merge_jobs({"jobs": "https://example.com/"})
    with pytest.raises(TypeError):
        merge_jobs({"jobs": [42]})
