"""script_scout.validation: Проверка аргументов одного запуска обхода.

Запрос описывается моделью :class:`CrawlRequest`. Списки ``terms`` и
``domains`` необязательны по отдельности: некорректный (не список строк или
пустой) просто отбрасывается, но хотя бы один из них должен остаться.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from script_scout.exceptions import InvalidRequestError

__all__ = ["CrawlRequest", "validate_request"]


def _is_list_of_strings(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and all(isinstance(v, str) for v in value)


class CrawlRequest(BaseModel):
    """Аргументы одного запуска: страница, что искать и к какому batch отнести."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    url: str
    batch: uuid.UUID
    terms: List[str] = Field(default_factory=list)
    domains: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    region: Optional[str] = None
    rank: Optional[int] = Field(None, ge=0)
    debug: bool = False

    @model_validator(mode="before")
    @classmethod
    def _drop_invalid_search_lists(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        valid_terms = _is_list_of_strings(data.get("terms"))
        valid_domains = _is_list_of_strings(data.get("domains"))
        if not valid_terms and not valid_domains:
            raise ValueError("Must provide either search terms, or search domains.")
        if not valid_terms:
            data.pop("terms", None)
        if not valid_domains:
            data.pop("domains", None)
        if data.get("tags") is not None and not _is_list_of_strings(data["tags"]):
            raise ValueError("tags argument, if provided, must be an array of strings.")
        if data.get("tags") is None:
            data.pop("tags", None)
        return data

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Expected valid URL in 'url' argument, but found {v!r}.")
        return v


def validate_request(args: Dict[str, Any]) -> CrawlRequest:
    """Возвращает CrawlRequest или бросает InvalidRequestError."""
    try:
        return CrawlRequest.model_validate(args)
    except ValidationError as exc:
        errors = [
            {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]} for err in exc.errors()
        ]
        raise InvalidRequestError(f"Invalid crawl arguments: {exc.error_count()} error(s)", {"errors": errors}) from exc
