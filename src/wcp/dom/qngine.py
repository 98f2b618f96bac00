# src/wcp/dom/qngine.py
from typing import Any, Dict, Iterator, List, Optional, Union

from bs4 import Tag

from .core import AnnotatedElement, RegionNode
from .models import PageGraph
from .references import NotFound, ReferenceResolver


class QueryEngine:
    """
    Query Engine (QNGINE) over a finished PageGraph.

    All methods are pure reads of one immutable snapshot; holding a
    QueryEngine keeps answering for that snapshot even after a newer one
    has been published.
    """

    def __init__(self, graph: PageGraph):
        self.graph = graph

    def find_by_action(self, token: str) -> List[AnnotatedElement]:
        """Elements whose action token equals `token` exactly, in document order."""
        return [e for e in self.graph.elements if e.action is not None and e.action.token == token]

    def find_by_effect(self, token: str) -> List[AnnotatedElement]:
        return [e for e in self.graph.elements if e.effect is not None and e.effect.token == token]

    def find_by_region(self, token: str) -> List[RegionNode]:
        """Region instances with the given token, in pre-order."""
        return [node for node in self.graph.root.walk() if node.token.token == token]

    def regions(self) -> Iterator[RegionNode]:
        return self.graph.root.walk()

    def primary_of(self, region: RegionNode) -> Optional[AnnotatedElement]:
        """The primary direct member of a region, if any."""
        for member in region.members:
            if member.primary:
                return member
        return None

    def region_of(self, element: AnnotatedElement) -> RegionNode:
        """
        The region owning `element`.
        Raises GraphInvariantError if the element does not belong to this snapshot.
        """
        return self.graph.owner_of(element)

    def resolve_target(self, element: AnnotatedElement) -> Union[Tag, NotFound]:
        """Looks the element's target up in the snapshot's source document, as it is now."""
        return ReferenceResolver(self.graph.source).resolve_target(element)

    def export_graph(self) -> Dict[str, Any]:
        """
        Structured, JSON-serializable view of the graph for agent/LLM context.
        The implicit document root is the single top-level region.
        """
        return {
            "regions": [self.graph.root.export()],
            "diagnostics": [d.export() for d in self.graph.diagnostics],
        }
