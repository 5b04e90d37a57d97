"""Minimal dependency container.

Request-handling frameworks usually bring their own container; ConfigLayer
only needs something with register(token, value). This implementation backs
the FastAPI integration and tests.
"""

import inspect
import logging
from typing import Any

logger = logging.getLogger(__name__)


class Container:
    """Token-to-value registry with ordered shutdown.

    Usage:
        container = Container()
        container.register("ConfigService", service)

        service = container.resolve("ConfigService")

        await container.close_all()
    """

    def __init__(self):
        self._values: dict[str, Any] = {}

    def register(self, token: str, value: Any) -> None:
        """Register (or replace) the value for a token."""
        logger.debug(f"Registering {token!r}")
        self._values[token] = value

    def resolve(self, token: str) -> Any:
        """Get the value for a token.

        Raises:
            LookupError: If nothing is registered under the token
        """
        if token not in self._values:
            raise LookupError(f"Nothing registered for {token!r}")
        return self._values[token]

    def has(self, token: str) -> bool:
        return token in self._values

    async def close_all(self) -> None:
        """Close registered values in reverse registration order.

        Values exposing aclose() are awaited; values exposing close() are
        called (and awaited if that returns an awaitable).
        """
        for token, value in reversed(list(self._values.items())):
            closer = getattr(value, "aclose", None) or getattr(value, "close", None)
            if closer is None:
                continue
            logger.debug(f"Closing {token!r}")
            result = closer()
            if inspect.isawaitable(result):
                await result
        self._values.clear()

    def __contains__(self, token: str) -> bool:
        return self.has(token)
