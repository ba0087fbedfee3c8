# script_scout/crawler/models.py
"""
Data models for the ScriptScout crawler.

Everything here is built fresh for one crawl and handed over to the storage
layer afterwards. Result types are frozen; collections are tuples or
read-only mappings.
"""
from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from bs4.element import Tag


@dataclass(frozen=True, slots=True)
class Node:
    """Handle to a tag of the parsed page.

    Equality and hashing use only ``position`` (the document-order sequence
    number assigned by :class:`~script_scout.parser.document_index.DocumentIndex`),
    so two structurally identical tags remain distinct keys.
    """

    position: int
    element: Tag = field(compare=False, hash=False, repr=False)

    @property
    def name(self) -> Optional[str]:
        return self.element.name

    def attr(self, name: str) -> Optional[str]:
        value = self.element.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value


class ScriptKind(enum.Enum):
    INLINE = "inline"
    REMOTE = "remote"


class FetchStatus(enum.Enum):
    FETCHED = "fetched"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class TextPair:
    """Original script text and, if deobfuscation changed it, the canonical text."""

    original: str
    canonical: Optional[str] = None

    @classmethod
    def from_texts(cls, original: str, deobfuscated: str) -> TextPair:
        return cls(original, deobfuscated if deobfuscated != original else None)

    @property
    def searchable(self) -> str:
        """Text used for matching."""
        return self.canonical if self.canonical is not None else self.original

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"original": self.original, "canonical": self.canonical}


@dataclass(frozen=True, slots=True)
class ScriptDescriptor:
    """A ``<script>`` tag found on the page.

    ``src`` is the attribute exactly as written, ``url`` the absolute URL it
    resolves to against the page URL. Both are set only for remote scripts,
    as is ``fetch_status`` once the fetch has settled.
    """

    node: Node
    kind: ScriptKind
    src: Optional[str] = None
    url: Optional[str] = None
    text: Optional[TextPair] = None
    fetch_status: Optional[FetchStatus] = None

    @property
    def is_remote(self) -> bool:
        return self.kind is ScriptKind.REMOTE

    def fetched(self, text: TextPair) -> ScriptDescriptor:
        return replace(self, text=text, fetch_status=FetchStatus.FETCHED)

    def failed(self) -> ScriptDescriptor:
        return replace(self, text=None, fetch_status=FetchStatus.FAILED)


@dataclass(frozen=True, slots=True)
class SuspectScript:
    """Remote script guessed to define a term that only matched inline."""

    url: str
    responded: bool
    distance: int

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "responded": self.responded, "distance": self.distance}


@dataclass(frozen=True, slots=True)
class InlineMatch:
    script: TextPair
    node: Node
    suspect_script: Optional[SuspectScript] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"script": self.script.to_dict(), "position": self.node.position}
        if self.suspect_script is not None:
            data["suspect_script"] = self.suspect_script.to_dict()
        return data


@dataclass(frozen=True, slots=True)
class RemoteMatch:
    script: TextPair
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "script": self.script.to_dict()}


@dataclass(frozen=True, slots=True)
class TermFinding:
    term: str
    inline: Tuple[InlineMatch, ...] = ()
    remote: Tuple[RemoteMatch, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.inline:
            data["inline"] = [m.to_dict() for m in self.inline]
        if self.remote:
            data["remote"] = [m.to_dict() for m in self.remote]
        return data


@dataclass(frozen=True, slots=True)
class DomainFinding:
    domain: str
    matches: Mapping[str, TextPair] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> Dict[str, Any]:
        return {url: pair.to_dict() for url, pair in self.matches.items()}


@dataclass(frozen=True, slots=True)
class CrawlResult:
    """Sparse result of one crawl: only terms and domains with matches appear."""

    terms: Mapping[str, TermFinding] = field(default_factory=lambda: MappingProxyType({}))
    domains: Mapping[str, DomainFinding] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "terms": {term: finding.to_dict() for term, finding in self.terms.items()},
            "domains": {domain: finding.to_dict() for domain, finding in self.domains.items()},
        }

    def json(self, *, pretty: bool = False) -> str:
        """JSON representation of the result."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


@dataclass(slots=True)
class PageData:
    """Body of a fetched URL and the HTTP status it came with."""

    url: str
    content: str
    status: Optional[int] = None
