# src/wcp/dom/references.py
import logging
from typing import Any, Optional, Union

import soupsieve
from bs4 import Tag
from pydantic import BaseModel, ConfigDict

from .core import AnnotatedElement

logger = logging.getLogger(__name__)


class NotFound(BaseModel):
    """Result of a target lookup that matched nothing. Falsy, so callers can branch on it."""
    model_config = ConfigDict(frozen=True)

    selector: Optional[str] = None
    reason: str = "no match"

    def __bool__(self) -> bool:
        return False


class ReferenceResolver:
    """
    Resolves `target:` selectors against the current state of a DOM.

    Nothing is cached: targets often appear later in the document or are
    created by the very action they describe, so each call queries the live tree.
    """

    def __init__(self, document: Optional[Tag] = None):
        self.document = document

    def _scope(self, element: AnnotatedElement) -> Optional[Tag]:
        if self.document is not None:
            return self.document
        ref = element.element_ref
        if ref is None:
            return None
        # Walk up to the outermost ancestor of the element
        top = ref
        for parent in ref.parents:
            top = parent
        return top

    def resolve_target(self, element: AnnotatedElement) -> Union[Tag, NotFound]:
        if not element.target:
            return NotFound(selector=None, reason="element declares no target")

        scope = self._scope(element)
        if scope is None:
            return NotFound(selector=element.target, reason="no document to search")

        try:
            match: Any = scope.select_one(element.target)
        except soupsieve.SelectorSyntaxError as e:
            logger.debug("Unusable target selector %r: %s", element.target, e)
            return NotFound(selector=element.target, reason="invalid selector")

        if match is None:
            return NotFound(selector=element.target)
        return match
