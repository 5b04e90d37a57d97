"""AWS Parameters and Secrets Lambda Extension backend.

The extension runs a local HTTP cache next to the function. It is detected by
the PARAMETERS_SECRETS_EXTENSION_HTTP_PORT variable, which AWS sets when the
extension layer is attached. Only Secrets Manager is supported: the extension
has no equivalent of GetParametersByPath.
"""

import logging
import os
from typing import Optional

import httpx

from ..errors import BackendError
from .base import ConfigBackend
from .secrets_manager import AwsSecretsManagerBackend, snapshot_from_secret

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION_PORT = "2773"
TOKEN_HEADER = "X-Aws-Parameters-Secrets-Token"


class AwsLambdaExtensionBackend(ConfigBackend):
    """Reads secrets through the extension, falling back to direct API calls.

    Args:
        fallback: Backend used when the extension is unreachable or errors
        port: Extension port. Defaults to PARAMETERS_SECRETS_EXTENSION_HTTP_PORT.
        session_token: Defaults to AWS_SESSION_TOKEN.
        timeout_seconds: Per-request timeout against the extension
        transport: Optional httpx transport (for testing)
    """

    def __init__(
        self,
        fallback: Optional[ConfigBackend] = None,
        port: Optional[str] = None,
        session_token: Optional[str] = None,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.port = port or os.environ.get("PARAMETERS_SECRETS_EXTENSION_HTTP_PORT", DEFAULT_EXTENSION_PORT)
        self.session_token = session_token if session_token is not None else os.environ.get("AWS_SESSION_TOKEN", "")
        self.timeout_seconds = timeout_seconds
        self.fallback = fallback or AwsSecretsManagerBackend()
        self._transport = transport

    @property
    def base_url(self) -> str:
        return f"http://localhost:{self.port}"

    async def fetch(self, store_id: str) -> dict[str, str]:
        try:
            return await self._fetch_from_extension(store_id)
        except (httpx.HTTPError, BackendError, ValueError) as e:
            logger.warning(f"Lambda extension fetch failed for {store_id!r} ({e}), using Secrets Manager directly")
            return await self.fallback.fetch(store_id)

    async def _fetch_from_extension(self, store_id: str) -> dict[str, str]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_seconds),
            transport=self._transport,
        ) as client:
            response = await client.get(
                "/secretsmanager/get",
                params={"secretId": store_id},
                headers={TOKEN_HEADER: self.session_token},
            )
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, dict):
            raise ValueError(f"unexpected extension response: {type(data).__name__}")
        return snapshot_from_secret(data, store_id)
