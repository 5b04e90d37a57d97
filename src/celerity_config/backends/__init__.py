"""Config backends.

Backends are swappable store clients that implement ConfigBackend.fetch().
The variant is chosen once at wiring time by resolve_backend().
"""

from .base import ConfigBackend, StoreKind
from .empty import EmptyConfigBackend
from .lambda_extension import AwsLambdaExtensionBackend
from .parameter_store import AwsParameterStoreBackend
from .resolve import resolve_backend
from .secrets_manager import BINARY_SECRET_KEY, AwsSecretsManagerBackend
from .valkey import ValkeyConfigBackend

__all__ = [
    "ConfigBackend",
    "StoreKind",
    "resolve_backend",
    "EmptyConfigBackend",
    "AwsParameterStoreBackend",
    "AwsSecretsManagerBackend",
    "AwsLambdaExtensionBackend",
    "ValkeyConfigBackend",
    "BINARY_SECRET_KEY",
]
