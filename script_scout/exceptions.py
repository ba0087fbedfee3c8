"""script_scout.exceptions: Иерархия исключений ScriptScout.

Ошибки разделены по тому, кто их обрабатывает:

* ``InvalidRequestError`` — некорректные аргументы запуска, URL просто пропускается;
* ``PageFetchError`` — страницу загрузить не удалось, обход прерывается;
* ``ScriptFetchError`` — не загрузился один удалённый скрипт, обход продолжается;
* ``StorageError`` — сбой записи результата, пробрасывается вызывающему.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ScriptScoutError(Exception):
    """Base exception for all ScriptScout errors."""

    error_code: str = "SCRIPT_SCOUT_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Return structured error dict."""
        response: Dict[str, Any] = {"error_code": self.error_code, "message": self.message}
        if self.details:
            response["details"] = self.details
        return response


class InvalidRequestError(ScriptScoutError):
    """Crawl arguments failed validation."""

    error_code = "INVALID_REQUEST"


class FetchError(ScriptScoutError):
    """A URL could not be retrieved."""

    error_code = "FETCH_ERROR"

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}", details={"url": url, "reason": reason})
        self.url = url
        self.reason = reason


class PageFetchError(FetchError):
    """The top-level page could not be retrieved."""

    error_code = "PAGE_FETCH_ERROR"


class ScriptFetchError(FetchError):
    """A remote script could not be retrieved."""

    error_code = "SCRIPT_FETCH_ERROR"


class NodeNotFoundError(ScriptScoutError, LookupError):
    """The node is not part of the document index."""

    error_code = "NODE_NOT_FOUND"


class StorageError(ScriptScoutError):
    """Persisting a crawl result failed."""

    error_code = "STORAGE_ERROR"


__all__ = [
    "ScriptScoutError",
    "InvalidRequestError",
    "FetchError",
    "PageFetchError",
    "ScriptFetchError",
    "NodeNotFoundError",
    "StorageError",
]
