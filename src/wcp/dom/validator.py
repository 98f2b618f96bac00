# src/wcp/dom/validator.py
import logging
from typing import Any, List, Optional, Sequence, Tuple

import soupsieve

from wcp.model import (
    Diagnostic, Directive, Namespace, Severity, ValidatedDirective, Validity, ValueKind
)
from .registry import VocabularyRegistry

logger = logging.getLogger(__name__)

NAMESPACE_KEYS = {ns.value for ns in Namespace}


def _warning(code: str, message: str, element_ref: Any) -> Diagnostic:
    return Diagnostic(severity=Severity.WARNING, code=code, message=message, element_ref=element_ref)


def _validate_namespaced(d: Directive, registry: VocabularyRegistry, element_ref: Any):
    token = str(d.value).strip() if not isinstance(d.value, bool) else ("true" if d.value else "false")
    if not token:
        return (ValidatedDirective(directive=d, validity=Validity.MALFORMED),
                _warning("EMPTY_VALUE", f"'{d.key}' has no value", element_ref))

    entry = registry.lookup(d.key, token)
    if entry.is_custom:
        return (ValidatedDirective(directive=d, validity=Validity.CUSTOM, entry=entry, value=token),
                _warning("UNKNOWN_TOKEN", f"Unknown {d.key} token '{token}' accepted as custom", element_ref))
    return ValidatedDirective(directive=d, validity=Validity.VALID, entry=entry, value=token), None


def _validate_primary(d: Directive, element_ref: Any):
    if d.kind == ValueKind.BOOLEAN:
        return ValidatedDirective(directive=d, validity=Validity.VALID, value=d.value), None
    return (ValidatedDirective(directive=d, validity=Validity.MALFORMED, value=False),
            _warning("INVALID_BOOLEAN", f"primary expects true or false, got '{d.value}'", element_ref))


def _validate_target(d: Directive, element_ref: Any):
    selector = str(d.value).strip()
    if not selector:
        return (ValidatedDirective(directive=d, validity=Validity.MALFORMED),
                _warning("EMPTY_VALUE", "'target' has no value", element_ref))
    try:
        soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as e:
        return (ValidatedDirective(directive=d, validity=Validity.MALFORMED),
                _warning("INVALID_TARGET", f"target '{selector}' is not a valid selector: {str(e).splitlines()[0]}", element_ref))
    return ValidatedDirective(directive=d, validity=Validity.VALID, value=selector), None


def validate(
        directives: Sequence[Directive],
        registry: Optional[VocabularyRegistry] = None,
        element_ref: Any = None
) -> Tuple[List[ValidatedDirective], List[Diagnostic]]:
    """
    Classifies each directive as valid, custom (unknown but well-formed) or malformed.

    Tokens for action/effect/region are looked up in the registry; unknown
    ones are kept as custom entries with a warning. Keys outside the reserved
    set pass through as custom modifiers without a diagnostic. Malformed
    directives from the tokenizer are carried along, already diagnosed there.
    """
    registry = registry or VocabularyRegistry.default()
    validated: List[ValidatedDirective] = []
    diagnostics: List[Diagnostic] = []

    for d in directives:
        if d.is_malformed:
            validated.append(ValidatedDirective(directive=d, validity=Validity.MALFORMED))
            continue

        if d.key in NAMESPACE_KEYS:
            result, diag = _validate_namespaced(d, registry, element_ref)
        elif d.key == "primary":
            result, diag = _validate_primary(d, element_ref)
        elif d.key == "target":
            result, diag = _validate_target(d, element_ref)
        else:
            # Open extensibility point
            result, diag = ValidatedDirective(directive=d, validity=Validity.CUSTOM, value=d.value), None

        validated.append(result)
        if diag is not None:
            diagnostics.append(diag)

    return validated, diagnostics
