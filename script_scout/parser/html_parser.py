# script_scout/parser/html_parser.py
"""HTML parsing utilities for ScriptScout.

A thin adapter over BeautifulSoup. The crawler needs three things from a
parsed page:

* the tree itself, so :class:`~script_scout.parser.document_index.DocumentIndex`
  can flatten it into document order;
* ``<script>`` tags with their attributes and text;
* the page title, for logging.

Everything else about the page is ignored.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup

__all__: Sequence[str] = ("ParsedPage", "parse_html")

#: parser shipped with the standard library, keeps results stable across hosts
PARSER_FEATURES = "html.parser"


@dataclass(slots=True)
class ParsedPage:
    """Parsed page plus the URL relative script sources resolve against."""

    url: str
    title: str
    document: BeautifulSoup


def parse_html(page: Any) -> ParsedPage:
    """Parse raw HTML (string) or :class:`~script_scout.crawler.models.PageData`.

    Parameters
    ----------
    page
        Either a *str* (HTML markup) **or** a ``PageData`` object with
        ``url`` and ``content`` attributes.
    """
    if hasattr(page, "content") and hasattr(page, "url"):
        html = page.content
        base_url = str(page.url)
    else:
        html = str(page)
        base_url = ""

    soup = BeautifulSoup(html, PARSER_FEATURES)

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""

    return ParsedPage(url=base_url, title=title, document=soup)
