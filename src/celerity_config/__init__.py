"""Celerity configuration resolution and caching.

Application configuration comes from two places:

1. **Environment variables**, read live through CelerityEnv and
   resolve_config() with no I/O.

2. **Config stores** (AWS Secrets Manager, SSM Parameter Store, Valkey),
   fetched by ConfigBackend implementations into named ConfigNamespaces that
   cache their snapshot and refresh it in the background when stale.

ConfigLayer builds a ConfigService from the environment on the first request
and registers it in the request container.

Usage:
    from celerity_config import ConfigNamespace, ConfigService, resolve_config

    db = resolve_config("database", "orders")

    service = ConfigService()
    service.register_namespace("default", ConfigNamespace(backend, "my-secret", 30_000))
    host = await service.get_or_throw("DB_HOST")
"""

from .backends import ConfigBackend, StoreKind, resolve_backend
from .container import Container
from .env import CelerityEnv, Platform, celerity_env
from .errors import (
    AmbiguousNamespace,
    BackendError,
    BackendErrorKind,
    ConfigError,
    ConfigKeyNotFound,
    NamespaceError,
    NamespaceNotFound,
    NoNamespacesRegistered,
)
from .layer import CONFIG_SERVICE_TOKEN, ConfigLayer, ConfigLayerSettings
from .namespace import ConfigNamespace
from .resolver import ResolvedConfig, resolve_config
from .schema import PydanticSchema
from .service import ConfigService

__all__ = [
    "CelerityEnv",
    "Platform",
    "celerity_env",
    "resolve_config",
    "ResolvedConfig",
    "ConfigBackend",
    "StoreKind",
    "resolve_backend",
    "ConfigNamespace",
    "ConfigService",
    "ConfigLayer",
    "ConfigLayerSettings",
    "CONFIG_SERVICE_TOKEN",
    "Container",
    "PydanticSchema",
    "ConfigError",
    "BackendError",
    "BackendErrorKind",
    "ConfigKeyNotFound",
    "NamespaceError",
    "NamespaceNotFound",
    "AmbiguousNamespace",
    "NoNamespacesRegistered",
]
