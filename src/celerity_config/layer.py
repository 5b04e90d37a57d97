"""ConfigLayer: wires a ConfigService into the request container.

The layer is self-configuring. On the first request it reads the store
settings the deploy engine put in the environment, builds a ConfigService and
registers it under CONFIG_SERVICE_TOKEN. Later requests pass straight through.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, TypeVar

from .backends import StoreKind, resolve_backend
from .env import CelerityEnv, Platform
from .namespace import ConfigNamespace
from .service import ConfigService

logger = logging.getLogger(__name__)

CONFIG_SERVICE_TOKEN = "ConfigService"
DEFAULT_NAMESPACE = "default"
DEFAULT_REFRESH_INTERVAL_MS = 30_000

_CONFIG_PREFIX = "CELERITY_CONFIG_"
_STORE_ID_SUFFIX = "_STORE_ID"

R = TypeVar("R")


class DeployTarget(str, Enum):
    FUNCTIONS = "functions"
    RUNTIME = "runtime"


class ServiceContainer(Protocol):
    def register(self, token: str, value: Any) -> None:
        ...


class HandlerContext(Protocol):
    container: ServiceContainer


@dataclass
class NamespaceSettings:
    """A namespace discovered from the environment."""
    name: str
    store_id: str
    store_kind: Optional[str] = None


@dataclass
class ConfigLayerSettings:
    """Config store settings captured from the environment.

    Attributes:
        platform: Deployment platform
        store_id: CELERITY_CONFIG_STORE_ID (single-namespace deployments)
        store_kind: CELERITY_CONFIG_STORE_KIND
        deploy_target: runtime when CELERITY_RUNTIME is set, else functions
        using_extension_cache: Lambda Parameters and Secrets extension attached
        refresh_interval_ms: Snapshot lifetime; None never refreshes
        namespaces: Discovered namespaces
    """
    platform: Platform = Platform.OTHER
    store_id: str = ""
    store_kind: Optional[str] = None
    deploy_target: DeployTarget = DeployTarget.FUNCTIONS
    using_extension_cache: bool = False
    refresh_interval_ms: Optional[int] = DEFAULT_REFRESH_INTERVAL_MS
    namespaces: list[NamespaceSettings] = field(default_factory=list)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ConfigLayerSettings":
        """Load settings from environment variables.

        Environment variables:
            CELERITY_PLATFORM: aws|gcp|azure|local
            CELERITY_RUNTIME: Set for long-running runtime deployments
            CELERITY_CONFIG_STORE_ID: Store for the single "default" namespace
            CELERITY_CONFIG_STORE_KIND: secrets-manager|parameter-store
            CELERITY_CONFIG_<NS>_STORE_ID: Store for namespace <ns>
            CELERITY_CONFIG_<NS>_STORE_KIND: Store kind for namespace <ns>
            CELERITY_CONFIG_REFRESH_INTERVAL_MS: Refresh interval. 0 or a
                negative value disables refresh; an unparsable value logs a
                warning and uses the 30s default.
            PARAMETERS_SECRETS_EXTENSION_HTTP_PORT: Set by the Lambda extension
        """
        environ = os.environ if environ is None else environ

        settings = cls(
            platform=CelerityEnv(environ=environ).get_platform(),
            store_id=environ.get("CELERITY_CONFIG_STORE_ID", ""),
            store_kind=environ.get("CELERITY_CONFIG_STORE_KIND"),
            deploy_target=DeployTarget.RUNTIME if environ.get("CELERITY_RUNTIME") else DeployTarget.FUNCTIONS,
            using_extension_cache=bool(environ.get("PARAMETERS_SECRETS_EXTENSION_HTTP_PORT")),
        )
        settings.refresh_interval_ms = settings._resolve_refresh_interval(
            environ.get("CELERITY_CONFIG_REFRESH_INTERVAL_MS")
        )
        settings.namespaces = settings._discover_namespaces(environ)
        return settings

    def _resolve_refresh_interval(self, raw: Optional[str]) -> Optional[int]:
        if raw is not None:
            try:
                ms = int(raw.strip())
            except ValueError:
                logger.warning(
                    f"Ignoring invalid CELERITY_CONFIG_REFRESH_INTERVAL_MS={raw!r}, "
                    f"using {DEFAULT_REFRESH_INTERVAL_MS}ms"
                )
                return DEFAULT_REFRESH_INTERVAL_MS
            return None if ms <= 0 else ms

        # The Lambda extension already caches Secrets Manager values
        if (
            self.platform is Platform.AWS
            and self.deploy_target is DeployTarget.FUNCTIONS
            and self.using_extension_cache
            and (self.store_kind or "").strip().lower() != StoreKind.PARAMETER_STORE.value
        ):
            return None

        return DEFAULT_REFRESH_INTERVAL_MS

    def _discover_namespaces(self, environ: Mapping[str, str]) -> list[NamespaceSettings]:
        """Single namespace from CELERITY_CONFIG_STORE_ID, otherwise one per
        CELERITY_CONFIG_<NS>_STORE_ID."""
        if self.store_id:
            return [NamespaceSettings(DEFAULT_NAMESPACE, self.store_id, self.store_kind)]

        namespaces = []
        for key, value in environ.items():
            if not value or not key.startswith(_CONFIG_PREFIX) or not key.endswith(_STORE_ID_SUFFIX):
                continue
            ns = key[len(_CONFIG_PREFIX):len(key) - len(_STORE_ID_SUFFIX)]
            if not ns or ns == "STORE":
                continue
            namespaces.append(NamespaceSettings(
                name=ns.lower(),
                store_id=value,
                store_kind=environ.get(f"{_CONFIG_PREFIX}{ns}_STORE_KIND"),
            ))
        return sorted(namespaces, key=lambda n: n.name)


def build_config_service(
    settings: ConfigLayerSettings,
    environ: Optional[Mapping[str, str]] = None,
) -> ConfigService:
    """Create a ConfigService with one namespace per discovered store.

    Store kinds are only interpreted on AWS; an unknown kind there falls back
    to Secrets Manager.
    """
    service = ConfigService()
    for ns in settings.namespaces:
        backend = resolve_backend(settings.platform, ns.store_kind, environ=environ)
        service.register_namespace(
            ns.name,
            ConfigNamespace(backend, ns.store_id, settings.refresh_interval_ms, name=ns.name),
        )
    return service


class ConfigLayer:
    """Middleware that publishes a ConfigService on first use.

    The service is created once per layer instance and lives for the process.

    Args:
        environ: Environment mapping. Defaults to os.environ, read on first request.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ
        self._service: Optional[ConfigService] = None
        self.settings: Optional[ConfigLayerSettings] = None

    @property
    def initialized(self) -> bool:
        return self._service is not None

    @property
    def service(self) -> Optional[ConfigService]:
        return self._service

    async def handle(self, context: HandlerContext, next: Callable[[], Awaitable[R]]) -> R:
        if self._service is None:
            # No awaits between check and set: concurrent first requests
            # cannot both initialize.
            settings = ConfigLayerSettings.from_env(self._environ)
            service = build_config_service(settings, self._environ)
            context.container.register(CONFIG_SERVICE_TOKEN, service)
            self.settings = settings
            self._service = service
            logger.info(
                f"Config layer initialized (platform: {settings.platform.value}, "
                f"namespaces: {service.namespace_names or 'none'}, "
                f"refresh: {settings.refresh_interval_ms}ms)"
            )

        return await next()
