# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError
from script_scout.config import CrawlerConfig, load_config


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("timeout: 12\nconcurrency: 3", ".yaml", None),
        (json.dumps({"timeout": 12, "concurrency": 3}), ".json", None),
        ("timeout: -1", ".yaml", ValidationError),
        ("unknown_option: 1", ".yaml", ValidationError),
        ("key: [unclosed", ".yaml", ValueError),
        ("- just\n- a list", ".yaml", TypeError),
        ("{not json", ".json", ValueError),
        ("timeout = 1", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, CrawlerConfig)
        assert cfg.timeout == 12
        assert cfg.concurrency == 3
        assert cfg.share_fetches_by_url is False


def test_load_config_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config(None)
    assert cfg == CrawlerConfig()
    assert cfg.raise_for_status is False
    assert cfg.database_url is None


def test_load_config_uses_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("user_agent: Custom/2.0\n", encoding="utf-8")
    assert load_config(None).user_agent == "Custom/2.0"


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_config_is_frozen_and_blank_database_url_is_none():
    cfg = CrawlerConfig(database_url="  ")
    assert cfg.database_url is None
    with pytest.raises(ValidationError):
        cfg.timeout = 1.0
