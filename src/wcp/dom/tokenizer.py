# src/wcp/dom/tokenizer.py
import logging
import re
from typing import Any, Iterable, List, Optional, Tuple

from wcp.model import Diagnostic, Directive, Severity, ValueKind

logger = logging.getLogger(__name__)

SELECTOR_PREFIXES = ("#", ".", "[")
BOOLEAN_LITERALS = {"true": True, "false": False}
# A single-token value running into another "key:" means a ";" is missing
MISSING_SEPARATOR = re.compile(r"\s[A-Za-z][\w-]*\s*:")
SINGLE_TOKEN_KEYS = {"action", "effect", "region", "primary"}


def classify_value(text: str) -> Tuple[Any, ValueKind]:
    """Types a raw value purely by its syntax (booleans and obvious selectors)."""
    lowered = text.lower()
    if lowered in BOOLEAN_LITERALS:
        return BOOLEAN_LITERALS[lowered], ValueKind.BOOLEAN
    if text.startswith(SELECTOR_PREFIXES):
        return text, ValueKind.SELECTOR
    return text, ValueKind.TEXT


def tokenize(raw: Optional[str], element_ref: Any = None) -> Tuple[List[Directive], List[Diagnostic]]:
    """
    Splits one raw data-wcp attribute string into ordered directives.

    Never fails: an absent or empty attribute yields no directives, and a
    segment without ':', or an action/effect/region/primary value running
    into a second "key:" without a ';', becomes a malformed directive plus a warning.

    Args:
        raw (Optional[str]): The attribute value as found on the element.
        element_ref (Any): The source element, attached to diagnostics only.

    Returns:
        Tuple[List[Directive], List[Diagnostic]]: Directives in source order
        and the diagnostics produced while splitting.
    """
    directives: List[Directive] = []
    diagnostics: List[Diagnostic] = []
    if not raw:
        return directives, diagnostics

    for segment in raw.split(";"):
        segment = segment.strip()
        if not segment:
            continue

        key, sep, value = segment.partition(":")
        key = key.strip().lower()
        if not sep or not key or (key in SINGLE_TOKEN_KEYS and MISSING_SEPARATOR.search(value)):
            directives.append(Directive(key="", value=segment, kind=ValueKind.MALFORMED))
            diagnostics.append(Diagnostic(
                severity=Severity.WARNING,
                code="MALFORMED_DIRECTIVE",
                message=f"Directive '{segment}' is not of the form key:value",
                element_ref=element_ref,
            ))
            logger.debug("Malformed directive segment: %r", segment)
            continue

        typed, kind = classify_value(value.strip())
        directives.append(Directive(key=key, value=typed, kind=kind))

    return directives, diagnostics


def serialize(directives: Iterable[Directive]) -> str:
    """Renders directives back into attribute text. Malformed segments are written verbatim."""
    parts = []
    for d in directives:
        if d.is_malformed:
            parts.append(str(d.value))
        elif isinstance(d.value, bool):
            parts.append(f"{d.key}:{'true' if d.value else 'false'}")
        else:
            parts.append(f"{d.key}:{d.value}")
    return "; ".join(parts)
