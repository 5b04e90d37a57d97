"""Abstract base for config backends.

A backend knows how to fetch one flat key/value snapshot from a specific kind
of remote store. Backends hold no cached data and never retry; caching and
refresh policy belong to ConfigNamespace.
"""

import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Union

from ..errors import BackendError, BackendErrorKind


class StoreKind(str, Enum):
    """Kinds of AWS config stores a namespace can be bound to."""
    SECRETS_MANAGER = "secrets-manager"
    PARAMETER_STORE = "parameter-store"


class ConfigBackend(ABC):
    """Fetches configuration snapshots from a remote store."""

    @abstractmethod
    async def fetch(self, store_id: str) -> dict[str, str]:
        """Fetch the full snapshot for a store.

        Args:
            store_id: Backend-specific identifier (secret name, parameter
                path, cache key)

        Raises:
            BackendError: On network, auth, not-found or decode failure
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def stringify(value: Any) -> str:
    """Render a decoded JSON value as a config string.

    Strings pass through; everything else becomes its JSON text.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value)


def decode_json_snapshot(raw: Union[str, bytes], store_id: str) -> dict[str, str]:
    """Parse a JSON object payload into a flat string map.

    Raises:
        BackendError: DECODE when the payload is not a JSON object
    """
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BackendError(BackendErrorKind.DECODE, store_id, f"invalid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise BackendError(
            BackendErrorKind.DECODE,
            store_id,
            f"expected a JSON object, got {type(parsed).__name__}",
        )
    return {str(k): stringify(v) for k, v in parsed.items()}
