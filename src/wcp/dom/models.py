# src/wcp/dom/models.py
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from wcp.model import Diagnostic
from .core import AnnotatedElement, GraphInvariantError, RegionNode


class PageGraph(BaseModel):
    """
    Immutable snapshot of one document's regions, annotated elements and diagnostics.

    `elements` is the flat index in document order. Diagnostics are the
    per-element diagnostics concatenated in that same order, so an
    incrementally spliced graph reports exactly what a full rebuild would.
    A new snapshot is produced on every rebuild; this one is never mutated.
    """
    model_config = ConfigDict(frozen=True)

    root: RegionNode
    elements: Tuple[AnnotatedElement, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()
    version: int = 0
    source: Any = Field(default=None, exclude=True, repr=False)

    _owners: Dict[int, RegionNode] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        owners = {}
        for node in self.root.walk():
            for member in node.members:
                owners[id(member)] = node
        self._owners = owners

    @classmethod
    def assemble(
            cls,
            root: RegionNode,
            elements: Iterable[AnnotatedElement],
            source: Any = None,
            version: int = 0
    ) -> "PageGraph":
        """Builds a snapshot, deriving the diagnostics from the elements."""
        elements = tuple(elements)
        diagnostics: List[Diagnostic] = []
        for element in elements:
            diagnostics.extend(element.diagnostics)
        graph = cls(root=root, elements=elements, diagnostics=tuple(diagnostics), source=source, version=version)
        graph.check_invariants()
        return graph

    def owner_of(self, element: AnnotatedElement) -> RegionNode:
        node = self._owners.get(id(element))
        if node is None:
            raise GraphInvariantError("Annotated element has no owning region in this graph.")
        return node

    def check_invariants(self) -> None:
        """Every element in the flat index must be owned by exactly one region."""
        seen = set()
        for node in self.root.walk():
            for member in node.members:
                if id(member) in seen:
                    raise GraphInvariantError("Annotated element is owned by more than one region.")
                seen.add(id(member))
        if len(seen) != len(self.elements) or any(id(e) not in seen for e in self.elements):
            raise GraphInvariantError("Flat element index and region tree disagree.")


class MutationKind(str, Enum):
    ATTRIBUTES = "attributes"
    CHILD_LIST = "childList"


class Mutation(BaseModel):
    """
    A DOM change reported by the host page.

    ATTRIBUTES: the target's own attributes changed; `attribute_name`, when
    given, names the one attribute that did.
    CHILD_LIST: nodes were added to or removed from the target's subtree.
    """
    model_config = ConfigDict(frozen=True)

    kind: MutationKind
    target: Any = Field(exclude=True, repr=False)
    attribute_name: Optional[str] = None
