"""script_scout.storage.db: Запись результатов обхода в PostgreSQL (psycopg 3).

Справочные строки (batch, тег, термин, домен) создаются атомарно через
``INSERT ... ON CONFLICT ... RETURNING id``, тексты скриптов хранятся один раз
на SHA-256 исходного текста. Вся запись одного обхода — одна транзакция.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import psycopg

from script_scout.crawler.models import CrawlResult, InlineMatch, TextPair
from script_scout.exceptions import StorageError

__all__ = ["CrawlMeta", "ScriptStore", "record_result", "ensure_schema", "SCHEMA"]

_LOG = logging.getLogger("ScriptScout")

SCHEMA: Sequence[str] = (
    """
    CREATE TABLE IF NOT EXISTS batches (
        id SERIAL PRIMARY KEY,
        uuid UUID NOT NULL UNIQUE,
        region TEXT
    )
    """,
    "CREATE TABLE IF NOT EXISTS tags (id SERIAL PRIMARY KEY, name TEXT NOT NULL UNIQUE)",
    "CREATE TABLE IF NOT EXISTS terms (id SERIAL PRIMARY KEY, text TEXT NOT NULL UNIQUE)",
    "CREATE TABLE IF NOT EXISTS domains (id SERIAL PRIMARY KEY, name TEXT NOT NULL UNIQUE)",
    """
    CREATE TABLE IF NOT EXISTS batches_tags (
        id SERIAL PRIMARY KEY,
        batch_id INTEGER NOT NULL REFERENCES batches(id),
        tag_id INTEGER NOT NULL REFERENCES tags(id),
        UNIQUE (batch_id, tag_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS batches_terms (
        id SERIAL PRIMARY KEY,
        batch_id INTEGER NOT NULL REFERENCES batches(id),
        term_id INTEGER NOT NULL REFERENCES terms(id),
        UNIQUE (batch_id, term_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS batches_domains (
        id SERIAL PRIMARY KEY,
        batch_id INTEGER NOT NULL REFERENCES batches(id),
        domain_id INTEGER NOT NULL REFERENCES domains(id),
        UNIQUE (batch_id, domain_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS scripts (
        id SERIAL PRIMARY KEY,
        sha256 CHAR(64) NOT NULL UNIQUE,
        text TEXT NOT NULL,
        deobfuscated TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS crawls (
        id SERIAL PRIMARY KEY,
        url TEXT NOT NULL,
        batch_id INTEGER NOT NULL REFERENCES batches(id),
        rank INTEGER,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS inline_scripts_terms (
        id SERIAL PRIMARY KEY,
        term_id INTEGER NOT NULL REFERENCES terms(id),
        crawl_id INTEGER NOT NULL REFERENCES crawls(id),
        script_id INTEGER NOT NULL REFERENCES scripts(id),
        suspect_url TEXT,
        suspect_responded BOOLEAN,
        suspect_distance INTEGER
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS remote_scripts_terms (
        id SERIAL PRIMARY KEY,
        term_id INTEGER NOT NULL REFERENCES terms(id),
        crawl_id INTEGER NOT NULL REFERENCES crawls(id),
        script_id INTEGER NOT NULL REFERENCES scripts(id),
        url TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS remote_scripts_domains (
        id SERIAL PRIMARY KEY,
        domain_id INTEGER NOT NULL REFERENCES domains(id),
        crawl_id INTEGER NOT NULL REFERENCES crawls(id),
        script_id INTEGER NOT NULL REFERENCES scripts(id),
        url TEXT NOT NULL
    )
    """,
)

# table -> get-or-create query returning id
_REFERENCE_UPSERTS = {
    "tags": "INSERT INTO tags(name) VALUES (%s) ON CONFLICT (name) DO UPDATE SET name = EXCLUDED.name RETURNING id",
    "terms": "INSERT INTO terms(text) VALUES (%s) ON CONFLICT (text) DO UPDATE SET text = EXCLUDED.text RETURNING id",
    "domains": "INSERT INTO domains(name) VALUES (%s) ON CONFLICT (name) DO UPDATE SET name = EXCLUDED.name RETURNING id",
}

_BATCH_UPSERT = """
    INSERT INTO batches(uuid, region) VALUES (%s, %s)
    ON CONFLICT (uuid) DO UPDATE SET uuid = EXCLUDED.uuid
    RETURNING id
"""

_BATCH_LINKS = {
    "tags": "INSERT INTO batches_tags(batch_id, tag_id) VALUES (%s, %s) ON CONFLICT DO NOTHING",
    "terms": "INSERT INTO batches_terms(batch_id, term_id) VALUES (%s, %s) ON CONFLICT DO NOTHING",
    "domains": "INSERT INTO batches_domains(batch_id, domain_id) VALUES (%s, %s) ON CONFLICT DO NOTHING",
}

_SCRIPT_UPSERT = """
    INSERT INTO scripts(sha256, text, deobfuscated) VALUES (%s, %s, %s)
    ON CONFLICT (sha256) DO UPDATE SET sha256 = EXCLUDED.sha256
    RETURNING id
"""

_CRAWL_INSERT = "INSERT INTO crawls(url, batch_id, rank) VALUES (%s, %s, %s) RETURNING id"

_INLINE_TERM_INSERT = """
    INSERT INTO inline_scripts_terms(term_id, crawl_id, script_id, suspect_url, suspect_responded, suspect_distance)
    VALUES (%s, %s, %s, %s, %s, %s)
    RETURNING id
"""

_REMOTE_TERM_INSERT = """
    INSERT INTO remote_scripts_terms(term_id, crawl_id, script_id, url) VALUES (%s, %s, %s, %s)
    RETURNING id
"""

_REMOTE_DOMAIN_INSERT = """
    INSERT INTO remote_scripts_domains(domain_id, crawl_id, script_id, url) VALUES (%s, %s, %s, %s)
    RETURNING id
"""


def script_digest(text: str) -> str:
    """SHA-256 hex digest of the script's original text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class CrawlMeta:
    """Описание обхода, которое записывается вместе с результатом."""

    batch_id: uuid.UUID
    source_url: str
    batch_tags: List[str] = field(default_factory=list)
    region: Optional[str] = None
    rank: Optional[int] = None
    terms: List[str] = field(default_factory=list)
    domains: List[str] = field(default_factory=list)


class ScriptStore:
    """Пишет CrawlResult через открытое psycopg-соединение."""

    def __init__(self, conn: psycopg.Connection) -> None:
        self.conn = conn

    def _scalar(self, query: str, params: Sequence[Any]) -> int:
        row = self.conn.execute(query, params).fetchone()
        if row is None:
            raise StorageError("query returned no id", {"query": " ".join(query.split())})
        return row[0]

    def ensure_schema(self) -> None:
        try:
            with self.conn.transaction():
                for statement in SCHEMA:
                    self.conn.execute(statement)
        except psycopg.Error as exc:
            raise StorageError(f"Failed to create schema: {exc}") from exc

    def record(self, result: CrawlResult, meta: CrawlMeta) -> int:
        """Записывает результат одного обхода, возвращает id строки crawls."""
        try:
            with self.conn.transaction():
                batch_id = self._batch_id(meta)
                crawl_id = self._scalar(_CRAWL_INSERT, (meta.source_url, batch_id, meta.rank))
                _LOG.debug("Inserted crawl of %s for batch %s as id %s", meta.source_url, batch_id, crawl_id)
                self._record_terms(crawl_id, result)
                self._record_domains(crawl_id, result)
        except psycopg.Error as exc:
            raise StorageError(
                f"Failed to record crawl of {meta.source_url}: {exc}", {"url": meta.source_url}
            ) from exc
        return crawl_id

    def reference_id(self, table: str, value: str) -> int:
        """Возвращает id строки tags/terms/domains, создавая её при необходимости."""
        return self._scalar(_REFERENCE_UPSERTS[table], (value,))

    def script_id(self, script: TextPair) -> int:
        return self._scalar(
            _SCRIPT_UPSERT, (script_digest(script.original), script.original, script.canonical)
        )

    def _batch_id(self, meta: CrawlMeta) -> int:
        batch_id = self._scalar(_BATCH_UPSERT, (meta.batch_id, meta.region))
        for table, values in (("tags", meta.batch_tags), ("terms", meta.terms), ("domains", meta.domains)):
            for value in dict.fromkeys(values):
                self.conn.execute(_BATCH_LINKS[table], (batch_id, self.reference_id(table, value)))
        return batch_id

    def _inline_row(self, term_id: int, crawl_id: int, match: InlineMatch) -> None:
        suspect = match.suspect_script
        self._scalar(
            _INLINE_TERM_INSERT,
            (
                term_id,
                crawl_id,
                self.script_id(match.script),
                suspect.url if suspect else None,
                suspect.responded if suspect else None,
                suspect.distance if suspect else None,
            ),
        )

    def _record_terms(self, crawl_id: int, result: CrawlResult) -> None:
        for term, finding in result.terms.items():
            term_id = self.reference_id("terms", term)
            for match in finding.inline:
                self._inline_row(term_id, crawl_id, match)
            for remote in finding.remote:
                self._scalar(
                    _REMOTE_TERM_INSERT, (term_id, crawl_id, self.script_id(remote.script), remote.url)
                )

    def _record_domains(self, crawl_id: int, result: CrawlResult) -> None:
        for domain, finding in result.domains.items():
            domain_id = self.reference_id("domains", domain)
            for url, script in finding.matches.items():
                self._scalar(_REMOTE_DOMAIN_INSERT, (domain_id, crawl_id, self.script_id(script), url))


def record_result(result: CrawlResult, meta: CrawlMeta, conninfo: str) -> int:
    """Открывает соединение, записывает результат и закрывает соединение."""
    try:
        with psycopg.connect(conninfo) as conn:
            return ScriptStore(conn).record(result, meta)
    except psycopg.Error as exc:
        raise StorageError(f"Database unavailable: {exc}") from exc


def ensure_schema(conninfo: str) -> None:
    try:
        with psycopg.connect(conninfo) as conn:
            ScriptStore(conn).ensure_schema()
    except psycopg.Error as exc:
        raise StorageError(f"Database unavailable: {exc}") from exc
