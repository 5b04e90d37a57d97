"""Wiring-time backend selection."""

import logging
import os
from typing import Mapping, Optional, Union

from ..env import Platform
from .base import ConfigBackend, StoreKind
from .empty import EmptyConfigBackend
from .lambda_extension import AwsLambdaExtensionBackend
from .parameter_store import AwsParameterStoreBackend
from .secrets_manager import AwsSecretsManagerBackend
from .valkey import ValkeyConfigBackend, parse_port

logger = logging.getLogger(__name__)


def parse_store_kind(raw: Union[StoreKind, str, None]) -> StoreKind:
    """Interpret a store kind, case-insensitively.

    Missing or unrecognized kinds mean Secrets Manager; unrecognized ones
    are logged.
    """
    if isinstance(raw, StoreKind):
        return raw
    if not raw:
        return StoreKind.SECRETS_MANAGER
    try:
        return StoreKind(raw.strip().lower())
    except ValueError:
        logger.warning(f"Unknown config store kind {raw!r}, using {StoreKind.SECRETS_MANAGER.value}")
        return StoreKind.SECRETS_MANAGER


def resolve_backend(
    platform: Union[Platform, str],
    store_kind: Union[StoreKind, str, None] = StoreKind.SECRETS_MANAGER,
    environ: Optional[Mapping[str, str]] = None,
) -> ConfigBackend:
    """Select the backend for a platform and store kind.

    The store kind only matters on AWS:
    - Parameter Store: always direct API calls (the Lambda extension does
      not support GetParametersByPath)
    - Secrets Manager on Lambda with the extension attached: extension cache
    - Secrets Manager otherwise: direct API calls

    Selection never fails on malformed environment values; those surface as
    BackendErrors when the store is first read.
    """
    environ = os.environ if environ is None else environ
    platform = Platform(platform)

    if platform is Platform.AWS:
        return _resolve_aws_backend(parse_store_kind(store_kind), environ)
    elif platform is Platform.LOCAL:
        return ValkeyConfigBackend(
            host=environ.get("CELERITY_CONFIG_VALKEY_HOST"),
            port=parse_port(environ.get("CELERITY_CONFIG_VALKEY_PORT")),
        )
    else:
        return EmptyConfigBackend()


def _resolve_aws_backend(store_kind: StoreKind, environ: Mapping[str, str]) -> ConfigBackend:
    if store_kind is StoreKind.PARAMETER_STORE:
        return AwsParameterStoreBackend()

    is_lambda = bool(environ.get("AWS_LAMBDA_FUNCTION_NAME"))
    has_extension = bool(environ.get("PARAMETERS_SECRETS_EXTENSION_HTTP_PORT"))

    if is_lambda and has_extension:
        return AwsLambdaExtensionBackend(
            port=environ.get("PARAMETERS_SECRETS_EXTENSION_HTTP_PORT"),
            session_token=environ.get("AWS_SESSION_TOKEN", ""),
        )

    return AwsSecretsManagerBackend()
