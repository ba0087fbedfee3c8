"""
Script extraction: turns the ``<script>`` tags of an indexed page into
inline and remote descriptors, in document order.
"""
from __future__ import annotations

from dataclasses import replace
from typing import List, Tuple
from urllib.parse import urljoin

from bs4.element import NavigableString

from script_scout.crawler.models import Node, ScriptDescriptor, ScriptKind, TextPair
from script_scout.logger import logger
from script_scout.parser.document_index import DocumentIndex


def script_text(node: Node) -> str:
    """Text payload of an inline script (its direct string children)."""
    return "".join(str(child) for child in node.element.contents if isinstance(child, NavigableString))


def collect_scripts(
    index: DocumentIndex, page_url: str
) -> Tuple[List[ScriptDescriptor], List[ScriptDescriptor]]:
    """
    Split the page's scripts into inline and remote descriptors.

    A non-empty ``src`` makes a script remote; its URL is resolved against
    *page_url*. Every tag yields its own descriptor, even when two tags point
    at the same URL. A ``src`` that cannot be resolved (e.g. a broken IPv6
    host) gives a remote descriptor without ``url``, already marked FAILED.
    """
    inline: List[ScriptDescriptor] = []
    remote: List[ScriptDescriptor] = []
    for node in index:
        if node.name != "script":
            continue
        src = node.attr("src")
        if src:
            descriptor = ScriptDescriptor(node=node, kind=ScriptKind.REMOTE, src=src)
            try:
                remote.append(replace(descriptor, url=urljoin(page_url, src)))
            except ValueError as exc:
                logger.warning("Cannot resolve script src %r on %s: %s", src, page_url, exc)
                remote.append(descriptor.failed())
        else:
            text = script_text(node)
            inline.append(ScriptDescriptor(node=node, kind=ScriptKind.INLINE, text=TextPair(text)))
    return inline, remote
