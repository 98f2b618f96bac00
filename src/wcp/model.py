# src/wcp/model.py
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Knownness(str, Enum):
    KNOWN = "known"
    CUSTOM = "custom"


class Namespace(str, Enum):
    """Reserved keys whose values are looked up in the vocabulary registry."""
    ACTION = "action"
    EFFECT = "effect"
    REGION = "region"


class ValueKind(str, Enum):
    TEXT = "text"
    BOOLEAN = "boolean"
    SELECTOR = "selector"
    MALFORMED = "malformed"


class Validity(str, Enum):
    VALID = "valid"
    CUSTOM = "custom"
    MALFORMED = "malformed"


class Directive(BaseModel):
    """
    One `key:value` unit of a data-wcp attribute.

    Keys are stored lower-cased. A segment without a ':' is kept as a
    malformed directive with an empty key and the original text as value.
    """
    model_config = ConfigDict(frozen=True)

    key: str
    value: Union[bool, str]
    kind: ValueKind = ValueKind.TEXT

    @property
    def is_malformed(self) -> bool:
        return self.kind == ValueKind.MALFORMED


class VocabularyEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    namespace: Namespace
    token: str
    knownness: Knownness = Knownness.KNOWN

    @property
    def is_custom(self) -> bool:
        return self.knownness == Knownness.CUSTOM


class Diagnostic(BaseModel):
    """
    A non-fatal finding produced while parsing or resolving a page.
    The element reference points into the caller's DOM and is never serialized.
    """
    model_config = ConfigDict(frozen=True)

    severity: Severity
    code: str
    message: str
    element_ref: Optional[Any] = Field(default=None, exclude=True, repr=False)

    def export(self) -> dict:
        return {"severity": self.severity.value, "code": self.code, "message": self.message}


class ValidatedDirective(BaseModel):
    """A directive after vocabulary validation, with its typed value."""
    model_config = ConfigDict(frozen=True)

    directive: Directive
    validity: Validity
    entry: Optional[VocabularyEntry] = None
    value: Union[bool, str, None] = None

    @property
    def key(self) -> str:
        return self.directive.key
