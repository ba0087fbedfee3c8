# File: tests/test_reports.py
import json
from types import MappingProxyType

import pytest

from conftest import build_index
from script_scout.crawler.models import (
    CrawlResult,
    DomainFinding,
    InlineMatch,
    RemoteMatch,
    SuspectScript,
    TermFinding,
    TextPair,
)
from script_scout.report import render_html, render_json


@pytest.fixture()
def result() -> CrawlResult:
    node = list(build_index("<script>init()</script>"))[1]
    inline = InlineMatch(
        script=TextPair("init()"),
        node=node,
        suspect_script=SuspectScript(url="/<lib>.js", responded=False, distance=2),
    )
    remote = RemoteMatch(script=TextPair("eval(p)", "var Lib"), url="https://cdn.example.com/lib.js")
    return CrawlResult(
        terms=MappingProxyType(
            {
                "init": TermFinding(term="init", inline=(inline,)),
                "Lib": TermFinding(term="Lib", remote=(remote,)),
            }
        ),
        domains=MappingProxyType(
            {"example.com": DomainFinding("example.com", MappingProxyType({remote.url: remote.script}))}
        ),
    )


def test_render_json(tmp_path, result):
    path = render_json(result, tmp_path / "nested" / "report.json", url="https://example.com/")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert list(data) == ["url", "terms", "domains"]
    assert data["terms"]["init"]["inline"][0]["suspect_script"] == {
        "url": "/<lib>.js",
        "responded": False,
        "distance": 2,
    }
    assert data["domains"]["example.com"]["https://cdn.example.com/lib.js"]["canonical"] == "var Lib"


def test_render_json_compact_without_url(tmp_path):
    path = render_json(CrawlResult(), tmp_path / "empty.json", pretty=False)
    assert path.read_text(encoding="utf-8") == '{"terms": {}, "domains": {}}'


def test_render_html_packaged_template(tmp_path, result):
    path = render_html(result, tmp_path / "report.html", url="https://example.com/")
    html = path.read_text(encoding="utf-8")
    assert "https://cdn.example.com/lib.js" in html
    assert "(deobfuscated)" in html
    assert "did not respond" in html
    # values are escaped
    assert "/&lt;lib&gt;.js" in html


def test_render_html_empty_result(tmp_path):
    html = render_html(CrawlResult(), tmp_path / "report.html").read_text(encoding="utf-8")
    assert "No term matched." in html
    assert "No domain matched." in html


def test_render_html_custom_template(tmp_path, result):
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "report.html.j2").write_text("{{ terms | length }}/{{ domains | length }}", encoding="utf-8")
    path = render_html(result, tmp_path / "custom.html", templates)
    assert path.read_text(encoding="utf-8") == "2/1"
