# src/wcp/dom/builder.py
import logging
from typing import List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag

from wcp.managers.config_manager import config_manager
from .core import AnnotatedElement, RegionNode
from .element_builder import build_element
from .models import PageGraph
from .registry import VocabularyRegistry
from .resolver import ConflictResolver

logger = logging.getLogger(__name__)


class _RegionDraft:
    """Mutable region used while walking; frozen into a RegionNode afterwards."""

    def __init__(self, element: Optional[AnnotatedElement] = None, anchor: Optional[Tag] = None):
        self.element = element
        self.anchor = anchor
        self.children: List["_RegionDraft"] = []
        self.members: List[AnnotatedElement] = []

    def freeze(self) -> RegionNode:
        children = [child.freeze() for child in self.children]
        if self.element is None:
            return RegionNode.root(children=children, members=self.members)
        return RegionNode(
            token=self.element.region,
            dom_anchor=self.anchor,
            children=tuple(children),
            members=tuple(self.members),
        )


class RegionGraphBuilder:
    """
    Builder responsible for turning a DOM into a PageGraph.

    One document-order traversal: elements declaring `region:` open a new
    RegionNode under the current one, every other annotated element becomes
    a member of the innermost open region. Conflict rules run on the finished
    tree. Elements without the attribute are not represented.
    """

    def __init__(
            self,
            registry: Optional[VocabularyRegistry] = None,
            resolver: Optional[ConflictResolver] = None,
            attribute: Optional[str] = None
    ):
        self.registry = registry or VocabularyRegistry.default()
        self.resolver = resolver or ConflictResolver()
        self.attribute = attribute or config_manager.get_nested("protocol.attribute", "data-wcp")

    @staticmethod
    def load(source: Union[str, BeautifulSoup, Tag]) -> Union[BeautifulSoup, Tag]:
        """Accepts raw HTML or an already parsed tree."""
        if isinstance(source, Tag):
            return source
        # Basic cleanup of potentially dirty HTML (e.g., BOM)
        clean_html = (source or "").replace('\ufeff', '')
        return BeautifulSoup(clean_html, 'html.parser')

    def build(self, source: Union[str, BeautifulSoup, Tag], version: int = 0) -> PageGraph:
        """
        Parses a full document into a resolved PageGraph.

        Args:
            source: Raw HTML, a BeautifulSoup document, or a Tag. A Tag is treated
                as a document holding that one element, so its own annotation counts.
            version (int): Snapshot counter carried into the PageGraph.

        Returns:
            PageGraph: A new immutable snapshot.
        """
        soup = self.load(source)
        root_draft = _RegionDraft()
        elements: List[AnnotatedElement] = []
        if isinstance(soup, BeautifulSoup):
            self._walk(soup, root_draft, elements)
        else:
            # A bare Tag is a document of one element, annotated like any other
            self._visit(soup, root_draft, elements)

        root = self.resolver.resolve(root_draft.freeze())
        resolved = self._document_order(root, elements)
        graph = PageGraph.assemble(root, resolved, source=soup, version=version)
        logger.info(
            "Built page graph v%s: %d annotated elements, %d diagnostics.",
            version, len(graph.elements), len(graph.diagnostics)
        )
        return graph

    def build_region(self, anchor: Tag) -> Optional[Tuple[RegionNode, List[AnnotatedElement]]]:
        """
        Rebuilds the resolved region anchored at `anchor` from the current DOM.

        Returns:
            The resolved RegionNode and its subtree's elements in document order,
            or None when the anchor no longer declares a region.
        """
        element = self.annotate(anchor)
        if element is None or element.region is None:
            return None
        draft = _RegionDraft(element, anchor)
        draft.members.append(element)
        elements = [element]
        self._walk(anchor, draft, elements)
        node = self.resolver.resolve(draft.freeze())
        return node, self._document_order(node, elements)

    def annotate(self, tag: Tag) -> Optional[AnnotatedElement]:
        """Builds the AnnotatedElement for one tag, or None if it carries no attribute."""
        raw = tag.get(self.attribute)
        if raw is None:
            return None
        if isinstance(raw, list):
            raw = " ".join(raw)
        return build_element(raw, element_ref=tag, registry=self.registry)

    def _walk(self, tag: Tag, current: _RegionDraft, elements: List[AnnotatedElement]) -> None:
        for child in tag.children:
            if isinstance(child, Tag):
                self._visit(child, current, elements)

    def _visit(self, tag: Tag, current: _RegionDraft, elements: List[AnnotatedElement]) -> None:
        element = self.annotate(tag)
        if element is None:
            self._walk(tag, current, elements)
            return

        elements.append(element)
        if element.region is not None:
            region = _RegionDraft(element, tag)
            current.children.append(region)
            # The anchor belongs to the region it declares
            region.members.append(element)
            self._walk(tag, region, elements)
        else:
            current.members.append(element)
            self._walk(tag, current, elements)

    @staticmethod
    def _document_order(root: RegionNode, unresolved: List[AnnotatedElement]) -> List[AnnotatedElement]:
        """Maps the pre-resolution document order onto the resolved records."""
        by_ref = {}
        for node in root.walk():
            for member in node.members:
                by_ref[id(member.element_ref)] = member
        return [by_ref[id(e.element_ref)] for e in unresolved]
