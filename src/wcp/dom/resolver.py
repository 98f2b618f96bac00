# src/wcp/dom/resolver.py
import logging
from typing import List, Optional, Set, Tuple

from wcp.model import Diagnostic, Severity
from .core import AnnotatedElement, RegionNode, RegionRule, region_rule

logger = logging.getLogger(__name__)


def _describe(element: AnnotatedElement) -> str:
    if element.action is not None:
        return element.action.token
    return element.tag_name or "element"


@region_rule(codes=["DUPLICATE_PRIMARY"])
def enforce_primary_uniqueness(
        members: Tuple[AnnotatedElement, ...], region: RegionNode
) -> Tuple[AnnotatedElement, ...]:
    """
    Rule: at most one direct member of a region may be primary.
    The first primary in document order wins; later ones are demoted with a warning.
    """
    winner: Optional[AnnotatedElement] = None
    resolved = []
    for member in members:
        if not member.primary:
            resolved.append(member)
            continue
        if winner is None:
            winner = member
            resolved.append(member)
            continue

        diag = Diagnostic(
            severity=Severity.WARNING,
            code="DUPLICATE_PRIMARY",
            message=(
                f"Duplicate primary:true in region '{region.token.token}'; "
                f"'{_describe(winner)}' keeps primary, '{_describe(member)}' demoted"
            ),
            element_ref=member.element_ref,
        )
        resolved.append(member.model_copy(update={
            "primary": False,
            "diagnostics": member.diagnostics + (diag,),
        }))
        logger.debug("Demoted primary '%s' in region '%s'.", _describe(member), region.token.token)
    return tuple(resolved)


DEFAULT_RULES: List[RegionRule] = [enforce_primary_uniqueness]


class ConflictResolver:
    """
    Applies region rules to every RegionNode of a freshly built tree.

    Rules never raise; they return replacement member tuples carrying any
    diagnostics. Resolution produces a new tree and leaves the input untouched.
    """

    def __init__(self, rules: Optional[List[RegionRule]] = None):
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)

        codes: Set[str] = set()
        for rule in self.rules:
            if hasattr(rule, "defined_codes"):
                codes.update(rule.defined_codes)
        self.codes = sorted(codes)

    def resolve(self, node: RegionNode) -> RegionNode:
        """Returns a copy of the tree rooted at `node` with every rule applied per region."""
        children = tuple(self.resolve(child) for child in node.children)
        members = node.members
        for rule in self.rules:
            members = rule(members, node)
        return node.model_copy(update={"children": children, "members": members})
