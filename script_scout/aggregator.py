# File: script_scout/aggregator.py
"""script_scout.aggregator: Сборка итогового CrawlResult из найденных совпадений."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from script_scout.crawler.models import CrawlResult, DomainFinding, InlineMatch, TermFinding
from script_scout.matcher import MatchOutcome

__all__ = ["assemble_result"]


def _assemble_terms(
    terms: Sequence[str],
    inline: Mapping[str, List[InlineMatch]],
    outcome: MatchOutcome,
) -> Dict[str, TermFinding]:
    """Термины без единого совпадения в результат не попадают."""
    findings: Dict[str, TermFinding] = {}
    for term in dict.fromkeys(terms):
        inline_matches = tuple(inline.get(term, ()))
        remote_matches = tuple(outcome.term_remote.get(term, ()))
        if inline_matches or remote_matches:
            findings[term] = TermFinding(term=term, inline=inline_matches, remote=remote_matches)
    return findings


def _assemble_domains(domains: Sequence[str], outcome: MatchOutcome) -> Dict[str, DomainFinding]:
    findings: Dict[str, DomainFinding] = {}
    for domain in dict.fromkeys(domains):
        matches = outcome.domains.get(domain)
        if matches:
            findings[domain] = DomainFinding(domain=domain, matches=MappingProxyType(dict(matches)))
    return findings


def assemble_result(
    terms: Sequence[str],
    domains: Sequence[str],
    outcome: MatchOutcome,
    inline: Optional[Mapping[str, List[InlineMatch]]] = None,
) -> CrawlResult:
    """Собирает неизменяемый CrawlResult.

    *inline* — совпадения во встроенных скриптах после атрибуции; если не
    передано, берутся исходные из *outcome*.
    """
    inline_matches = outcome.term_inline if inline is None else inline
    return CrawlResult(
        terms=MappingProxyType(_assemble_terms(terms, inline_matches, outcome)),
        domains=MappingProxyType(_assemble_domains(domains, outcome)),
    )
