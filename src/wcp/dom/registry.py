# src/wcp/dom/registry.py
import logging
from typing import Dict, Iterable, List, Optional, Set, Union

from wcp.model import Knownness, Namespace, VocabularyEntry
from wcp.managers.config_manager import config_manager

logger = logging.getLogger(__name__)

DEFAULT_VOCABULARY: Dict[Namespace, List[str]] = {
    Namespace.ACTION: ["navigate", "submit", "add", "remove", "search", "filter", "auth", "purchase"],
    Namespace.EFFECT: ["navigate", "modal", "async", "download", "external"],
    Namespace.REGION: ["navigation", "content", "product", "checkout", "search", "results"],
}


class VocabularyRegistry:
    """
    Registry of known vocabulary tokens per namespace (action, effect, region).

    Lookups never fail: a token that is not registered comes back as a
    `custom` VocabularyEntry so the protocol stays forward-compatible.
    Instances are injectable; `default()` returns the process-wide registry
    seeded with the documented tokens plus any configured extensions.
    """

    _default: Optional["VocabularyRegistry"] = None

    def __init__(self, seed: Optional[Dict[Union[Namespace, str], Iterable[str]]] = None):
        self._tokens: Dict[Namespace, Set[str]] = {ns: set() for ns in Namespace}
        for namespace, tokens in (seed if seed is not None else DEFAULT_VOCABULARY).items():
            for token in tokens:
                self.register(namespace, token)

    @classmethod
    def from_config(cls) -> "VocabularyRegistry":
        """Builds a registry from the defaults extended with 'vocabulary.<namespace>' settings."""
        registry = cls()
        for ns in Namespace:
            extra = config_manager.get_nested(f"vocabulary.{ns.value}", []) or []
            for token in extra:
                registry.register(ns, token)
        return registry

    @classmethod
    def default(cls) -> "VocabularyRegistry":
        """Returns the process-wide registry, creating it on first use."""
        if cls._default is None:
            cls._default = cls.from_config()
            logger.debug("Default vocabulary registry loaded.")
        return cls._default

    @classmethod
    def reset_default(cls) -> None:
        cls._default = None

    def register(self, namespace: Union[Namespace, str], token: str) -> VocabularyEntry:
        """Registers a token as known in the given namespace."""
        ns = Namespace(namespace)
        if not token or not token.strip():
            raise ValueError(f"Cannot register an empty token in namespace '{ns.value}'.")
        self._tokens[ns].add(token.strip())
        return VocabularyEntry(namespace=ns, token=token.strip(), knownness=Knownness.KNOWN)

    def lookup(self, namespace: Union[Namespace, str], token: str) -> VocabularyEntry:
        ns = Namespace(namespace)
        knownness = Knownness.KNOWN if token in self._tokens[ns] else Knownness.CUSTOM
        return VocabularyEntry(namespace=ns, token=token, knownness=knownness)

    def is_known(self, namespace: Union[Namespace, str], token: str) -> bool:
        return token in self._tokens[Namespace(namespace)]

    def tokens(self, namespace: Union[Namespace, str]) -> List[str]:
        """Returns the known tokens of a namespace, sorted."""
        return sorted(self._tokens[Namespace(namespace)])

    def copy(self) -> "VocabularyRegistry":
        return VocabularyRegistry({ns: set(tokens) for ns, tokens in self._tokens.items()})
