"""Environment variable access under the Celerity naming conventions.

Variables are namespaced under a common outer prefix (``CELERITY`` by default):

    CELERITY_APP_<KEY>        application variables
    CELERITY_SECRET_<KEY>     secrets injected by the deploy engine
    CELERITY_VARIABLE_<KEY>   platform-injected variables
    CELERITY_PLATFORM         deployment platform identifier

Nothing is cached; every call reads the live environment.
"""

import os
from enum import Enum
from typing import Mapping, Optional


class Platform(str, Enum):
    """Canonical deployment platform tokens."""
    AWS = "aws"
    GCP = "gcp"
    AZURE = "azure"
    LOCAL = "local"
    OTHER = "other"


_KNOWN_PLATFORMS = {p.value: p for p in Platform if p is not Platform.OTHER}


class CelerityEnv:
    """Reads namespaced variables from a live environment mapping.

    Args:
        prefix: Outer prefix shared by all namespaces
        environ: Mapping to read from. Defaults to ``os.environ``.
    """

    def __init__(self, prefix: str = "CELERITY", environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix
        self._environ = environ

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def get(self, name: str) -> Optional[str]:
        """Read a raw variable ``<PREFIX>_<name>``."""
        return self.environ.get(f"{self.prefix}_{name}")

    def get_app_var(self, name: str) -> Optional[str]:
        return self.environ.get(f"{self.prefix}_APP_{name}")

    def get_all_app_vars(self) -> dict[str, str]:
        """Return every application variable with the namespace prefix stripped."""
        app_prefix = f"{self.prefix}_APP_"
        return {
            key[len(app_prefix):]: value
            for key, value in self.environ.items()
            if key.startswith(app_prefix)
        }

    def get_secret(self, name: str) -> Optional[str]:
        return self.environ.get(f"{self.prefix}_SECRET_{name}")

    def get_variable(self, name: str) -> Optional[str]:
        return self.environ.get(f"{self.prefix}_VARIABLE_{name}")

    def get_platform(self) -> Platform:
        """Resolve the platform identifier, case-insensitively.

        Unset, empty and unrecognized values all map to ``Platform.OTHER``.
        """
        raw = (self.environ.get(f"{self.prefix}_PLATFORM") or "").lower()
        return _KNOWN_PLATFORMS.get(raw, Platform.OTHER)


# Default accessor bound to the process environment
celerity_env = CelerityEnv()
