# tests/core/test_references.py
import pytest
from bs4 import BeautifulSoup

from wcp.dom.builder import RegionGraphBuilder
from wcp.dom.element_builder import build_element
from wcp.dom.registry import VocabularyRegistry
from wcp.dom.references import NotFound, ReferenceResolver

PAGE = """
<main>
  <button data-wcp="action:add; effect:async; target:#cart">Add</button>
  <button data-wcp="action:remove; target:.mini-cart li">Remove</button>
  <button data-wcp="action:navigate">Home</button>
</main>
"""


@pytest.fixture
def soup():
    return BeautifulSoup(PAGE, "html.parser")


@pytest.fixture
def graph(soup):
    return RegionGraphBuilder(registry=VocabularyRegistry()).build(soup)


def test_missing_target_is_not_found_not_an_error(graph, soup):
    """Een doel dat (nog) niet bestaat levert NotFound op."""
    add = graph.elements[0]
    result = ReferenceResolver(soup).resolve_target(add)

    assert isinstance(result, NotFound)
    assert not result
    assert result.selector == "#cart"


def test_target_resolves_after_dom_mutation(graph, soup):
    """Resolutie is lui: een later toegevoegd doel wordt alsnog gevonden."""
    add = graph.elements[0]
    resolver = ReferenceResolver(soup)
    assert not resolver.resolve_target(add)

    cart = soup.new_tag("aside", id="cart")
    soup.main.append(cart)

    assert resolver.resolve_target(add) is cart


def test_target_not_cached_after_removal(graph, soup):
    soup.main.append(soup.new_tag("aside", id="cart"))
    resolver = ReferenceResolver(soup)
    add = graph.elements[0]
    assert resolver.resolve_target(add)

    soup.find(id="cart").decompose()
    assert isinstance(resolver.resolve_target(add), NotFound)


def test_compound_selector(graph, soup):
    panel = BeautifulSoup('<ul class="mini-cart"><li>one</li></ul>', "html.parser").ul
    soup.main.append(panel)
    result = ReferenceResolver(soup).resolve_target(graph.elements[1])
    assert result.name == "li"
    assert result.get_text() == "one"


def test_element_without_target(graph, soup):
    result = ReferenceResolver(soup).resolve_target(graph.elements[2])
    assert isinstance(result, NotFound)
    assert result.selector is None


def test_scope_defaults_to_element_document(graph, soup):
    soup.main.append(soup.new_tag("aside", id="cart"))
    result = ReferenceResolver().resolve_target(graph.elements[0])
    assert result is soup.find(id="cart")


def test_standalone_element_without_dom():
    element = build_element("action:add; target:#cart", registry=VocabularyRegistry())
    result = ReferenceResolver().resolve_target(element)
    assert isinstance(result, NotFound)
    assert result.reason == "no document to search"
