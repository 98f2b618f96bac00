# tests/core/test_qngine.py
import json

import pytest

from wcp.dom.builder import RegionGraphBuilder
from wcp.dom.core import GraphInvariantError
from wcp.dom.qngine import QueryEngine
from wcp.dom.references import NotFound
from wcp.dom.registry import VocabularyRegistry

PAGE = """
<body>
  <section data-wcp="region:product">
    <button data-wcp="action:add; effect:async; target:#cart; primary:true">Add</button>
    <button data-wcp="action:add; effect:async; primary:true">Add again</button>
    <a data-wcp="action:frobnicate; effect:external; rel:sponsored">Odd</a>
  </section>
  <section data-wcp="region:checkout">
    <button data-wcp="action:purchase; effect:navigate">Buy</button>
  </section>
  <aside id="cart"></aside>
</body>
"""


@pytest.fixture
def engine():
    """Een QueryEngine over een vaste productpagina."""
    graph = RegionGraphBuilder(registry=VocabularyRegistry()).build(PAGE)
    return QueryEngine(graph)


def test_find_by_action_in_document_order(engine):
    adds = engine.find_by_action("add")
    assert [a.element_ref.get_text() for a in adds] == ["Add", "Add again"]
    assert engine.find_by_action("remove") == []


def test_find_by_custom_action(engine):
    """Scenario 4: een custom actie is vindbaar via de exacte string."""
    odd = engine.find_by_action("frobnicate")
    assert len(odd) == 1
    assert odd[0].action.is_custom
    assert odd[0].modifiers == {"rel": "sponsored"}


def test_find_by_effect(engine):
    assert len(engine.find_by_effect("async")) == 2
    assert engine.find_by_effect("navigate")[0].action.token == "purchase"


def test_find_by_region(engine):
    assert len(engine.find_by_region("product")) == 1
    assert engine.find_by_region("results") == []
    assert [r.token.token for r in engine.regions()] == ["document", "product", "checkout"]


def test_primary_of(engine):
    product = engine.find_by_region("product")[0]
    checkout = engine.find_by_region("checkout")[0]

    assert engine.primary_of(product).element_ref.get_text() == "Add"
    assert engine.primary_of(checkout) is None


def test_region_of(engine):
    buy = engine.find_by_action("purchase")[0]
    assert engine.region_of(buy).token.token == "checkout"


def test_region_of_foreign_element_raises(engine):
    other = QueryEngine(RegionGraphBuilder(registry=VocabularyRegistry()).build(PAGE))
    with pytest.raises(GraphInvariantError):
        engine.region_of(other.find_by_action("purchase")[0])


def test_resolve_target_uses_snapshot_source(engine):
    first, second = engine.find_by_action("add")
    assert engine.resolve_target(first).get("id") == "cart"
    assert isinstance(engine.resolve_target(second), NotFound)


def test_export_graph_schema(engine):
    exported = engine.export_graph()

    assert set(exported) == {"regions", "diagnostics"}
    root = exported["regions"][0]
    assert root["token"] == "document"
    assert root["members"] == []
    product = root["children"][0]
    assert product["token"] == "product"
    assert product["children"] == []
    assert product["members"][1] == {
        "action": "add", "effect": "async", "primary": True, "target": "#cart", "modifiers": {}
    }
    assert product["members"][2]["primary"] is False


def test_export_graph_diagnostics(engine):
    codes = [d["code"] for d in engine.export_graph()["diagnostics"]]
    assert codes == ["DUPLICATE_PRIMARY", "UNKNOWN_TOKEN"]
    for d in engine.export_graph()["diagnostics"]:
        assert set(d) == {"severity", "code", "message"}
        assert d["severity"] == "warning"


def test_export_graph_is_json_serializable(engine):
    text = json.dumps(engine.export_graph())
    assert json.loads(text) == engine.export_graph()


def test_queries_do_not_mutate_graph(engine):
    before = engine.export_graph()
    engine.find_by_action("add")
    engine.primary_of(engine.find_by_region("product")[0])
    engine.resolve_target(engine.find_by_action("add")[0])
    assert engine.export_graph() == before
