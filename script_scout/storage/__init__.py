"""script_scout.storage: Хранение результатов обхода в PostgreSQL."""

from script_scout.storage.db import CrawlMeta, ScriptStore, ensure_schema, record_result

__all__ = ["CrawlMeta", "ScriptStore", "ensure_schema", "record_result"]
