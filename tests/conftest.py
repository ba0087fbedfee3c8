# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

import psycopg
import pytest
from aiohttp import web

from script_scout.config import CrawlerConfig
from script_scout.crawler.models import ScriptDescriptor, TextPair
from script_scout.parser.document_index import DocumentIndex
from script_scout.parser.html_parser import parse_html
from script_scout.parser.scripts import collect_scripts

PAGE_URL = "https://example.com/dir/page.html"
BATCH_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"

#: remoteA (fails), inlineB (matches "X"), remoteC (responds, no match)
SCENARIO_A_HTML = (
    "<html><head>"
    '<script src="/a.js"></script>'
    "<script>window.X = 1;</script>"
    '<script src="/c.js"></script>'
    "</head><body></body></html>"
)


def build_index(html: str) -> DocumentIndex:
    return DocumentIndex(parse_html(html).document)


def collect(html: str, page_url: str = PAGE_URL) -> Tuple[DocumentIndex, List[ScriptDescriptor], List[ScriptDescriptor]]:
    index = build_index(html)
    inline, remote = collect_scripts(index, page_url)
    return index, inline, remote


def settle(remote: List[ScriptDescriptor], bodies: Dict[str, Optional[str]]) -> List[ScriptDescriptor]:
    """Mark remote descriptors fetched (body given by src) or failed (body None)."""
    settled = []
    for descriptor in remote:
        body = bodies.get(descriptor.src or "")
        settled.append(descriptor.failed() if body is None else descriptor.fetched(TextPair(body)))
    return settled


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def basic_config() -> CrawlerConfig:
    """
    Return a CrawlerConfig with short timeouts for crawler tests.
    """
    return CrawlerConfig(timeout=5.0, script_timeout=2.0, user_agent="TestAgent/1.0", concurrency=4)


# --------------------------------------------------------------------------- #
#                         Fake psycopg connection                             #
# --------------------------------------------------------------------------- #


class FakeCursor:
    def __init__(self, row: Optional[Tuple[Any, ...]]) -> None:
        self._row = row

    def fetchone(self) -> Optional[Tuple[Any, ...]]:
        return self._row


class FakeConnection:
    """Records executed statements and hands out ids like Postgres would."""

    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.fail_on = fail_on
        self.statements: List[Tuple[str, Tuple[Any, ...]]] = []
        self.committed = 0
        self.rolled_back = 0
        self._next_id = 0
        self._upserted: Dict[Tuple[str, Any], int] = {}

    @contextmanager
    def transaction(self):
        try:
            yield self
        except BaseException:
            self.rolled_back += 1
            raise
        else:
            self.committed += 1

    def execute(self, query: str, params: Tuple[Any, ...] = ()) -> FakeCursor:
        text = " ".join(query.split())
        self.statements.append((text, tuple(params)))
        if self.fail_on and self.fail_on in text:
            raise psycopg.OperationalError("connection lost")
        if "RETURNING id" not in text:
            return FakeCursor(None)
        if "ON CONFLICT" in text:
            key = (text.split("(")[0], params[0])
            if key not in self._upserted:
                self._upserted[key] = self._new_id()
            return FakeCursor((self._upserted[key],))
        return FakeCursor((self._new_id(),))

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def executed(self, fragment: str) -> List[Tuple[Any, ...]]:
        return [params for text, params in self.statements if fragment in text]


@pytest.fixture()
def fake_connection() -> FakeConnection:
    return FakeConnection()
