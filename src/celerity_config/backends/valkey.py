"""Key-value cache backend for local development and CI.

Talks to Valkey (or any Redis-compatible server). The store identifier is a
key whose value is a JSON object of config values.
"""

import logging
import os
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import AuthenticationError, RedisError

from ..errors import BackendError, BackendErrorKind
from .base import ConfigBackend, decode_json_snapshot

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6379


def parse_port(raw: Optional[str]) -> int:
    """Parse a port from the environment, warning and using 6379 when invalid."""
    if not raw:
        return DEFAULT_PORT
    try:
        port = int(raw.strip())
    except ValueError:
        port = 0
    if not 0 < port < 65536:
        logger.warning(f"Ignoring invalid CELERITY_CONFIG_VALKEY_PORT={raw!r}, using {DEFAULT_PORT}")
        return DEFAULT_PORT
    return port


class ValkeyConfigBackend(ConfigBackend):
    """Fetches a JSON-encoded snapshot stored under a single cache key.

    Args:
        host: Defaults to CELERITY_CONFIG_VALKEY_HOST, then "localhost"
        port: Defaults to CELERITY_CONFIG_VALKEY_PORT, then 6379
        connect_timeout: Socket connect timeout in seconds
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        connect_timeout: float = 2.0,
    ):
        self.host = host or os.environ.get("CELERITY_CONFIG_VALKEY_HOST", "localhost")
        self.port = port or parse_port(os.environ.get("CELERITY_CONFIG_VALKEY_PORT"))
        self.connect_timeout = connect_timeout

    def _create_client(self) -> aioredis.Redis:
        return aioredis.Redis(
            host=self.host,
            port=self.port,
            socket_connect_timeout=self.connect_timeout,
        )

    async def fetch(self, store_id: str) -> dict[str, str]:
        client = self._create_client()
        try:
            raw = await client.get(store_id)
        except AuthenticationError as e:
            raise BackendError(BackendErrorKind.AUTH, store_id, str(e)) from e
        except RedisError as e:
            raise BackendError(
                BackendErrorKind.NETWORK,
                store_id,
                f"{self.host}:{self.port} unavailable: {e}",
            ) from e
        finally:
            await client.aclose()

        if raw is None:
            raise BackendError(BackendErrorKind.NOT_FOUND, store_id, "key not set")

        logger.debug(f"Valkey {self.host}:{self.port} key {store_id!r}: {len(raw)} bytes")
        return decode_json_snapshot(raw, store_id)

    def __repr__(self) -> str:
        return f"ValkeyConfigBackend(host={self.host!r}, port={self.port})"
