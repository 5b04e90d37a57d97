"""Exception types raised by the configuration subsystem."""

from enum import Enum
from typing import Iterable


class ConfigError(Exception):
    """Base class for all configuration errors."""


class BackendErrorKind(Enum):
    """Why a backend fetch failed."""
    NETWORK = "network"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    DECODE = "decode"


class BackendError(ConfigError):
    """A config backend could not produce a snapshot.

    Attributes:
        kind: Failure category
        store_id: Store identifier that was being fetched
    """

    def __init__(self, kind: BackendErrorKind, store_id: str, message: str):
        super().__init__(f"{kind.value} error fetching {store_id!r}: {message}")
        self.kind = kind
        self.store_id = store_id


class ConfigKeyNotFound(ConfigError):
    """Raised by get_or_throw() when a key is absent from the snapshot."""

    def __init__(self, key: str, namespace: str):
        super().__init__(f'Config key "{key}" not found in namespace "{namespace}"')
        self.key = key
        self.namespace = namespace


class NamespaceError(ConfigError):
    """Base class for namespace routing errors."""


class NamespaceNotFound(NamespaceError):
    def __init__(self, name: str):
        super().__init__(f'Config namespace "{name}" not registered')
        self.name = name


class NoNamespacesRegistered(NamespaceError):
    def __init__(self):
        super().__init__("No config namespaces registered")


class AmbiguousNamespace(NamespaceError):
    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        super().__init__(
            f"Multiple config namespaces registered ({', '.join(self.names)}). "
            f"Use config.namespace(name) to access a specific one."
        )
