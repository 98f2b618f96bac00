# src/wcp/dom/element_builder.py
import logging
from typing import Any, Dict, List, Optional

from wcp.model import Diagnostic, Validity
from .core import AnnotatedElement
from .registry import VocabularyRegistry
from .tokenizer import tokenize
from .validator import validate

logger = logging.getLogger(__name__)


def build_element(
        raw: Optional[str],
        element_ref: Any = None,
        registry: Optional[VocabularyRegistry] = None
) -> AnnotatedElement:
    """
    Tokenizes, validates and folds one attribute string into an AnnotatedElement.

    Repeated keys resolve last-write-wins. Malformed directives stay in
    `raw_directives` but do not contribute fields. A malformed `primary`
    still writes, resolving to False.
    """
    directives, diagnostics = tokenize(raw, element_ref=element_ref)
    validated, validation_diagnostics = validate(directives, registry=registry, element_ref=element_ref)

    fields: Dict[str, Any] = {}
    modifiers: Dict[str, Any] = {}

    for v in validated:
        key = v.key
        if key in ("action", "effect", "region"):
            if v.entry is not None:
                fields[key] = v.entry
        elif key == "primary":
            fields["primary"] = bool(v.value)
        elif key == "target":
            if v.validity == Validity.VALID:
                fields["target"] = v.value
        elif v.validity != Validity.MALFORMED:
            modifiers[key] = v.value

    all_diagnostics: List[Diagnostic] = diagnostics + validation_diagnostics
    return AnnotatedElement(
        element_ref=element_ref,
        modifiers=modifiers,
        raw_directives=tuple(directives),
        diagnostics=tuple(all_diagnostics),
        **fields
    )
