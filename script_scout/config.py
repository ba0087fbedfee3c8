# === FILE: script_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера ScriptScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class CrawlerConfig(BaseModel):
    """Конфигурация для одного запуска обхода страницы."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout: float = Field(30.0, gt=0, description="Таймаут загрузки страницы (секунд).")
    script_timeout: float = Field(15.0, gt=0, description="Таймаут загрузки одного скрипта (секунд).")
    user_agent: str = Field("ScriptScoutBot/1.0", min_length=1, description="Заголовок User-Agent.")
    concurrency: int = Field(8, ge=1, description="Сколько удалённых скриптов загружать одновременно.")
    share_fetches_by_url: bool = Field(
        False, description="Загружать одинаковый URL один раз, даже если на него ссылаются несколько тегов."
    )
    raise_for_status: bool = Field(
        False, description="Считать ответ с кодом 4xx/5xx ошибкой загрузки."
    )
    database_url: Optional[str] = Field(None, description="Строка подключения к PostgreSQL.")

    @field_validator("database_url", mode="before")
    def _empty_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def read_mapping(path: Union[str, Path]) -> dict[str, Any]:
    """Читает YAML или JSON файл, верхний уровень которого — mapping."""
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат файла: {suffix}")


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlerConfig.
    Без пути используется configs/default.yaml, а если его нет — значения по умолчанию.
    Явно указанный, но отсутствующий файл даёт FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return CrawlerConfig()
        path = _DEFAULT_CFG

    data = read_mapping(path)
    try:
        return CrawlerConfig(**data)
    except ValidationError:
        raise


__all__ = ["CrawlerConfig", "load_config", "read_mapping"]
