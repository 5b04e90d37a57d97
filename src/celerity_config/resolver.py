"""Resource configuration resolution from environment variables.

A logical resource such as ``database`` (optionally qualified by an instance
name such as ``orders``) is described by application variables:

    CELERITY_APP_DATABASE_PROVIDER=aws
    CELERITY_APP_DATABASE_HOST=db.internal
    CELERITY_APP_DATABASE_ORDERS_HOST=orders.internal

Resolution performs no I/O.
"""

from dataclasses import dataclass, field
from typing import Optional

from .env import CelerityEnv, Platform, celerity_env

PROVIDER_KEY = "PROVIDER"
UNKNOWN_PROVIDER = "unknown"


@dataclass
class ResolvedConfig:
    """Provider and property bag for a resource.

    Attributes:
        provider: Explicit provider, inferred platform, or "unknown"
        properties: Property name (prefix stripped) to value
    """
    provider: str
    properties: dict[str, str] = field(default_factory=dict)


def resolve_config(
    resource_type: str,
    resource_name: Optional[str] = None,
    env: Optional[CelerityEnv] = None,
) -> ResolvedConfig:
    """Resolve the provider and properties for a resource.

    An explicit ``<PREFIX>_PROVIDER`` variable always wins, even when empty.
    Otherwise the deployment platform is used, or "unknown" when the platform
    is not recognized.

    Args:
        resource_type: Resource kind, e.g. "database"
        resource_name: Optional instance name, e.g. "orders"
        env: Environment accessor. Defaults to the process environment.
    """
    env = env or celerity_env

    prefix = resource_type.upper()
    if resource_name:
        prefix = f"{prefix}_{resource_name.upper()}"
    prefix = f"{prefix}_"

    provider: Optional[str] = None
    properties: dict[str, str] = {}

    for key, value in env.get_all_app_vars().items():
        if not key.startswith(prefix):
            continue
        suffix = key[len(prefix):]
        if suffix == PROVIDER_KEY:
            provider = value
        else:
            properties[suffix] = value

    if provider is None:
        platform = env.get_platform()
        provider = UNKNOWN_PROVIDER if platform is Platform.OTHER else platform.value

    return ResolvedConfig(provider=provider, properties=properties)
