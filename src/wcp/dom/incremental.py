"""Incremental rebuilds of a PageGraph after DOM mutations.

When the host page reports a mutation, only the smallest region whose
anchor encloses the change is rebuilt:

1. Locate the deepest RegionNode whose anchor contains the mutated node.
2. Rebuild that region from the current DOM and resolve its conflicts.
3. Path-copy its ancestors with the new child; every other region is
   reused by reference.
4. Splice the region's annotated elements into the flat index. They form
   one contiguous run in document order, since they are exactly the
   annotated elements inside the anchor's subtree.

The result is indistinguishable from a full rebuild over the same DOM.

Fallback:
    When the region cannot be rebuilt in place (the anchor lost its
    region directive, left the document, or the old run cannot be found),
    a full rebuild is done instead.
"""
import logging
from typing import List, Optional, Set

from bs4 import Tag

from .builder import RegionGraphBuilder
from .core import RegionNode
from .models import Mutation, MutationKind, PageGraph

logger = logging.getLogger(__name__)


def _enclosing_ids(mutation: Mutation) -> Set[int]:
    """
    Ids of the DOM nodes whose regions contain the change.

    An attribute change on an anchor can create or remove that very region,
    so only strict ancestors count; a child-list change stays inside the target.
    """
    target = mutation.target
    ids = {id(parent) for parent in target.parents}
    if mutation.kind == MutationKind.CHILD_LIST:
        ids.add(id(target))
    return ids


def _region_path(root: RegionNode, ids: Set[int]) -> List[RegionNode]:
    path = [root]
    node = root
    while True:
        nxt = next((c for c in node.children if id(c.dom_anchor) in ids), None)
        if nxt is None:
            return path
        path.append(nxt)
        node = nxt


def _is_attached(anchor: Tag, document) -> bool:
    return any(parent is document for parent in anchor.parents)


def apply_mutation(
        graph: PageGraph,
        mutation: Mutation,
        builder: RegionGraphBuilder,
        version: Optional[int] = None
) -> PageGraph:
    """
    Rebuilds the smallest affected region and splices it into a new snapshot.

    Args:
        graph (PageGraph): The snapshot that was current before the mutation.
        mutation (Mutation): The reported DOM change; the DOM is already mutated.
        builder (RegionGraphBuilder): Builder used for the original graph.
        version (Optional[int]): Version of the new snapshot, defaults to graph.version + 1.

    Returns:
        PageGraph: A new snapshot sharing all untouched regions with `graph`.
        `graph` itself when only an attribute other than the annotation changed.
    """
    if (mutation.kind == MutationKind.ATTRIBUTES and mutation.attribute_name is not None
            and mutation.attribute_name != builder.attribute):
        logger.debug("Ignoring change of attribute '%s'.", mutation.attribute_name)
        return graph

    version = graph.version + 1 if version is None else version
    document = graph.source
    path = _region_path(graph.root, _enclosing_ids(mutation))

    if len(path) == 1:
        logger.debug("Mutation touches the document root region; full rebuild.")
        return builder.build(document, version=version)

    old = path[-1]
    rebuilt = None
    if _is_attached(old.dom_anchor, document):
        rebuilt = builder.build_region(old.dom_anchor)
    if rebuilt is None:
        logger.warning("Region '%s' cannot be rebuilt in place; full rebuild.", old.token.token)
        return builder.build(document, version=version)
    new_node, new_elements = rebuilt

    old_elements = old.subtree_elements()
    old_ids = {id(e) for e in old_elements}
    start = next((i for i, e in enumerate(graph.elements) if id(e) in old_ids), None)
    end = None if start is None else start + len(old_elements)
    if start is None or any(id(e) not in old_ids for e in graph.elements[start:end]):
        logger.warning("Elements of region '%s' are not contiguous; full rebuild.", old.token.token)
        return builder.build(document, version=version)

    # Path-copy the ancestors; siblings stay shared
    replacement = new_node
    for parent, child in zip(reversed(path[:-1]), reversed(path[1:])):
        children = tuple(replacement if c is child else c for c in parent.children)
        replacement = parent.model_copy(update={"children": children})

    elements = graph.elements[:start] + tuple(new_elements) + graph.elements[end:]
    new_graph = PageGraph.assemble(replacement, elements, source=document, version=version)
    logger.info(
        "Incremental rebuild of region '%s': %d -> %d elements (v%s).",
        old.token.token, len(old_elements), len(new_elements), version
    )
    return new_graph
