"""No-op backend."""

from .base import ConfigBackend


class EmptyConfigBackend(ConfigBackend):
    """Always returns an empty snapshot.

    Used on platforms that have no supported config store yet.
    """

    async def fetch(self, store_id: str) -> dict[str, str]:
        return {}
