"""ConfigService: the registry of config namespaces handed to application code."""

import logging
from typing import Optional, TypeVar

from .errors import AmbiguousNamespace, NamespaceNotFound, NoNamespacesRegistered
from .namespace import ConfigNamespace, Schema

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfigService:
    """Maps namespace names to ConfigNamespace instances.

    Namespaces are registered while wiring the process and never removed.
    When exactly one namespace is registered, get/get_or_throw/get_all/parse
    can be called directly on the service; otherwise use namespace(name).

    Usage:
        service = ConfigService()
        service.register_namespace("default", ConfigNamespace(backend, "my-secret"))

        host = await service.get("DB_HOST")
        port = await service.namespace("default").get_or_throw("DB_PORT")
    """

    def __init__(self):
        self._namespaces: dict[str, ConfigNamespace] = {}

    def register_namespace(self, name: str, namespace: ConfigNamespace) -> None:
        """Register a namespace under a unique name.

        Raises:
            ValueError: If the name is already registered
        """
        if name in self._namespaces:
            raise ValueError(f'Config namespace "{name}" already registered')
        logger.debug(f"Registering config namespace {name!r}: {namespace!r}")
        self._namespaces[name] = namespace

    def namespace(self, name: str) -> ConfigNamespace:
        namespace: Optional[ConfigNamespace] = self._namespaces.get(name)
        if namespace is None:
            raise NamespaceNotFound(name)
        return namespace

    @property
    def namespace_names(self) -> list[str]:
        """Registered names, in registration order."""
        return list(self._namespaces)

    async def get(self, key: str) -> Optional[str]:
        return await self._default_namespace().get(key)

    async def get_or_throw(self, key: str) -> str:
        return await self._default_namespace().get_or_throw(key)

    async def get_all(self) -> dict[str, str]:
        return await self._default_namespace().get_all()

    async def parse(self, schema: Schema[T]) -> T:
        return await self._default_namespace().parse(schema)

    def _default_namespace(self) -> ConfigNamespace:
        if not self._namespaces:
            raise NoNamespacesRegistered()
        if len(self._namespaces) > 1:
            raise AmbiguousNamespace(self._namespaces)
        return next(iter(self._namespaces.values()))

    def __len__(self) -> int:
        return len(self._namespaces)
