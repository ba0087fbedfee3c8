"""
Attribution of inline-only matches to a remote script.

When a term shows up in an inline script but in none of the remote ones, the
library defining it most likely failed to load. The guess is the closest
preceding remote script that did not respond; failing that, the closest
preceding remote script of any kind. No guess is made at all when every
remote script on the page responded.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional

from script_scout.crawler.models import InlineMatch, Node, SuspectScript
from script_scout.matcher import MatchOutcome
from script_scout.parser.document_index import DocumentIndex

__all__ = ["AttributionResolver"]


class AttributionResolver:
    def __init__(self, index: DocumentIndex, outcome: MatchOutcome) -> None:
        self.index = index
        self.non_responding = outcome.non_responding
        self.remote_nodes = outcome.remote_nodes

    def _is_non_responding(self, node: Node) -> bool:
        return node in self.non_responding

    def _is_remote(self, node: Node) -> bool:
        return node in self.remote_nodes

    def suspect_for(self, node: Node) -> Optional[SuspectScript]:
        """Guess the remote script defining whatever matched inline at *node*."""
        if not self.non_responding:
            return None
        guess = self.index.closest_preceding(node, self._is_non_responding)
        if guess is None:
            guess = self.index.closest_preceding(node, self._is_remote)
        if guess is None:
            return None
        return SuspectScript(
            url=guess.attr("src") or "",
            responded=guess not in self.non_responding,
            distance=self.index.distance(guess, node),
        )

    def resolve(self, outcome: MatchOutcome) -> Dict[str, List[InlineMatch]]:
        """Return inline matches per term, with suspects attached where a guess exists.

        Only terms with inline matches and no remote match are considered;
        other terms are returned unchanged.
        """
        resolved: Dict[str, List[InlineMatch]] = {}
        for term, matches in outcome.term_inline.items():
            if outcome.term_remote.get(term):
                resolved[term] = list(matches)
                continue
            attributed = []
            for match in matches:
                suspect = self.suspect_for(match.node)
                attributed.append(match if suspect is None else replace(match, suspect_script=suspect))
            resolved[term] = attributed
        return resolved
