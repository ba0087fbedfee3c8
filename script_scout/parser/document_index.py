"""
Document-order index over a parsed page.

The page tree is flattened once, depth first and pre-order, keeping only tags
(the ``BeautifulSoup`` root included, strings and comments dropped). A tag's
position in that list is its identity for the rest of the crawl.
"""
from __future__ import annotations

from typing import Callable, Dict, Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from script_scout.crawler.models import Node
from script_scout.exceptions import NodeNotFoundError

NodePredicate = Callable[[Node], bool]


def flatten_tree(root: Tag) -> List[Tag]:
    """Return *root* and every tag below it, in document order."""
    ordered: List[Tag] = []
    stack: List[Tag] = [root]
    while stack:
        tag = stack.pop()
        ordered.append(tag)
        children = [child for child in tag.contents if isinstance(child, Tag)]
        stack.extend(reversed(children))
    return ordered


class DocumentIndex:
    """Positions, distances and backwards lookups over one parsed page."""

    def __init__(self, document: BeautifulSoup) -> None:
        self._nodes: List[Node] = [
            Node(position, element) for position, element in enumerate(flatten_tree(document))
        ]
        # bs4 tags compare by markup, so elements are looked up by identity
        self._by_element: Dict[int, Node] = {id(node.element): node for node in self._nodes}

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def node_for(self, element: Tag) -> Node:
        """Return the handle of a bs4 element of the indexed document."""
        try:
            return self._by_element[id(element)]
        except KeyError:
            raise NodeNotFoundError(f"element <{element.name}> is not part of this document") from None

    def position(self, node: Node) -> int:
        """Return the document-order position of *node*."""
        pos = node.position
        if not 0 <= pos < len(self._nodes) or self._nodes[pos].element is not node.element:
            raise NodeNotFoundError(f"node at position {pos} is not part of this document")
        return pos

    def distance(self, a: Node, b: Node) -> int:
        """Number of tags between *a* and *b* in document order (symmetric)."""
        return abs(self.position(a) - self.position(b))

    def closest_preceding(self, node: Node, predicate: NodePredicate) -> Optional[Node]:
        """Closest node strictly before *node* that satisfies *predicate*.

        Returns ``None`` when nothing before *node* matches, or when *node*
        is not in the index at all.
        """
        try:
            pos = self.position(node)
        except NodeNotFoundError:
            return None
        for candidate in reversed(self._nodes[:pos]):
            if predicate(candidate):
                return candidate
        return None
