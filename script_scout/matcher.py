"""script_scout.matcher: Поиск терминов и доменов в скриптах страницы."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Sequence
from urllib.parse import urlparse

from script_scout.crawler.models import (
    FetchStatus,
    InlineMatch,
    Node,
    RemoteMatch,
    ScriptDescriptor,
    TextPair,
)

__all__ = [
    "MatchEngine",
    "MatchOutcome",
    "inline_term_matches",
    "remote_term_matches",
    "domain_matches",
]

_log = logging.getLogger("ScriptScout")


def inline_term_matches(text: str, term: str) -> bool:
    """Exact, case-sensitive substring test."""
    return term in text


def remote_term_matches(text: str, term: str) -> bool:
    """Every dot-separated part of *term* occurs somewhere in *text*.

    Minifiers rewrite ``a.b.c`` property chains, so the parts are looked up
    independently and in any order.
    """
    return all(part in text for part in term.split("."))


def domain_matches(url: str, domain: str) -> bool:
    """*domain* is a substring of the URL's hostname."""
    return domain in (urlparse(url).hostname or "")


@dataclass(slots=True)
class MatchOutcome:
    """Raw findings of one page before attribution and assembly."""

    term_inline: Dict[str, List[InlineMatch]] = field(default_factory=dict)
    term_remote: Dict[str, List[RemoteMatch]] = field(default_factory=dict)
    domains: Dict[str, Dict[str, TextPair]] = field(default_factory=dict)
    non_responding: FrozenSet[Node] = frozenset()
    remote_nodes: FrozenSet[Node] = frozenset()


class MatchEngine:
    """Tests settled script descriptors against the requested terms and domains."""

    def __init__(self, terms: Sequence[str], domains: Sequence[str]) -> None:
        self.terms = list(dict.fromkeys(terms))
        self.domains = list(dict.fromkeys(domains))

    def run(
        self, inline: Sequence[ScriptDescriptor], remote: Sequence[ScriptDescriptor]
    ) -> MatchOutcome:
        outcome = MatchOutcome(
            non_responding=frozenset(d.node for d in remote if d.fetch_status is FetchStatus.FAILED),
            remote_nodes=frozenset(d.node for d in remote),
        )

        for script in inline:
            if script.text is None:
                continue
            haystack = script.text.searchable
            for term in self.terms:
                if inline_term_matches(haystack, term):
                    _log.debug("Found %r in inline script at position %d", term, script.node.position)
                    outcome.term_inline.setdefault(term, []).append(
                        InlineMatch(script=script.text, node=script.node)
                    )

        for script in remote:
            if script.fetch_status is not FetchStatus.FETCHED or script.text is None:
                continue
            url = script.url or ""
            for domain in self.domains:
                if domain_matches(url, domain):
                    _log.debug("Found %r in host of remote script %s", domain, url)
                    outcome.domains.setdefault(domain, {})[url] = script.text
            haystack = script.text.searchable
            for term in self.terms:
                if remote_term_matches(haystack, term):
                    _log.debug("Found %r in text of remote script %s", term, url)
                    outcome.term_remote.setdefault(term, []).append(
                        RemoteMatch(script=script.text, url=url)
                    )

        return outcome
