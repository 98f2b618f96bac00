# src/wcp/dom/core.py
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from wcp.model import Diagnostic, Directive, Knownness, Namespace, VocabularyEntry

ROOT_REGION_TOKEN = "document"


class GraphInvariantError(RuntimeError):
    """Raised only for internal inconsistencies of a PageGraph, never for bad annotations."""


def region_rule(codes: List[str]):
    """
    Decorator to declare which diagnostic codes a region rule can emit.
    Lets the ConflictResolver report every code it may produce.
    """
    def decorator(func):
        func.defined_codes = codes
        return func
    return decorator


class AnnotatedElement(BaseModel):
    """
    Immutable record of one DOM element carrying a data-wcp attribute.

    `element_ref` is a non-owning reference into the caller's DOM; it is
    excluded from serialization and equality is structural on the rest.
    """
    model_config = ConfigDict(frozen=True)

    element_ref: Any = Field(default=None, exclude=True, repr=False)
    action: Optional[VocabularyEntry] = None
    effect: Optional[VocabularyEntry] = None
    region: Optional[VocabularyEntry] = None
    primary: bool = False
    target: Optional[str] = None
    modifiers: Dict[str, Any] = Field(default_factory=dict)
    raw_directives: Tuple[Directive, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def tag_name(self) -> Optional[str]:
        return getattr(self.element_ref, "name", None)

    def export(self) -> Dict[str, Any]:
        return {
            "action": self.action.token if self.action else None,
            "effect": self.effect.token if self.effect else None,
            "primary": self.primary,
            "target": self.target,
            "modifiers": dict(self.modifiers),
        }


class RegionNode(BaseModel):
    """
    A semantic zone derived from DOM nesting. The implicit document root has
    no anchor and the token 'document'.
    """
    model_config = ConfigDict(frozen=True)

    token: VocabularyEntry
    dom_anchor: Any = Field(default=None, exclude=True, repr=False)
    children: Tuple["RegionNode", ...] = ()
    members: Tuple[AnnotatedElement, ...] = ()

    @classmethod
    def root(cls, children=(), members=()) -> "RegionNode":
        token = VocabularyEntry(namespace=Namespace.REGION, token=ROOT_REGION_TOKEN, knownness=Knownness.KNOWN)
        return cls(token=token, children=tuple(children), members=tuple(members))

    @property
    def is_root(self) -> bool:
        return self.dom_anchor is None

    def walk(self) -> Iterator["RegionNode"]:
        """Yields this node and all descendant regions in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def subtree_elements(self) -> List[AnnotatedElement]:
        """All annotated elements owned by this node or any descendant region."""
        out = []
        for node in self.walk():
            out.extend(node.members)
        return out

    def export(self) -> Dict[str, Any]:
        return {
            "token": self.token.token,
            "children": [child.export() for child in self.children],
            "members": [member.export() for member in self.members],
        }


# Type alias for region rules: (members, region) -> resolved members
RegionRule = Callable[[Tuple[AnnotatedElement, ...], RegionNode], Tuple[AnnotatedElement, ...]]
