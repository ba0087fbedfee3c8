# File: tests/test_document_index.py
import pytest

from conftest import build_index
from script_scout.exceptions import NodeNotFoundError
from script_scout.parser.document_index import DocumentIndex
from script_scout.parser.html_parser import parse_html

NESTED_HTML = "<html><body><div><p>text</p><!-- c --></div>\n<span></span></body></html>"


def test_document_order_is_preorder_and_skips_text():
    index = build_index(NESTED_HTML)
    assert [node.name for node in index] == ["[document]", "html", "body", "div", "p", "span"]
    assert [node.position for node in index] == list(range(len(index)))


def test_position_and_node_for():
    parsed = parse_html(NESTED_HTML)
    index = DocumentIndex(parsed.document)
    span = index.node_for(parsed.document.find("span"))
    assert index.position(span) == 5


def test_distance_is_symmetric_and_zero_on_self():
    index = build_index(NESTED_HTML)
    nodes = list(index)
    for a in nodes:
        assert index.distance(a, a) == 0
        for b in nodes:
            assert index.distance(a, b) == index.distance(b, a) >= 0
    assert index.distance(nodes[1], nodes[4]) == 3


def test_identical_tags_are_distinct_nodes():
    index = build_index("<p></p><p></p>")
    first, second = [node for node in index if node.name == "p"]
    assert first.element == second.element  # bs4 compares markup
    assert first != second
    assert len({first, second}) == 2


def test_closest_preceding_is_strict_and_closest():
    index = build_index("<div><b></b><i></i><b></b><i></i><b></b></div>")
    nodes = list(index)
    last_b = nodes[-1]
    is_b = lambda node: node.name == "b"
    guess = index.closest_preceding(last_b, is_b)
    assert guess is not None
    assert guess.position == last_b.position - 2
    assert guess is not last_b
    assert all(
        not is_b(node) for node in nodes if guess.position < node.position < last_b.position
    )


def test_closest_preceding_none_when_nothing_matches():
    index = build_index(NESTED_HTML)
    first_tag = list(index)[1]
    assert index.closest_preceding(first_tag, lambda node: node.name == "span") is None


def test_foreign_node_is_not_found():
    index = build_index(NESTED_HTML)
    other = build_index(NESTED_HTML)
    foreign = list(other)[2]
    with pytest.raises(NodeNotFoundError):
        index.position(foreign)
    with pytest.raises(NodeNotFoundError):
        index.distance(foreign, list(index)[0])
    assert index.closest_preceding(foreign, lambda node: True) is None
    with pytest.raises(NodeNotFoundError):
        index.node_for(foreign.element)
