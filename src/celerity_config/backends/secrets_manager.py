"""AWS Secrets Manager backend."""

import asyncio
import base64
from typing import Any, Optional

from .aws import AWS_ERRORS, LazyBotoClient, translate_aws_error
from .base import ConfigBackend, decode_json_snapshot

# Key under which a binary secret payload is exposed (base64 encoded)
BINARY_SECRET_KEY = "SecretBinary"


class AwsSecretsManagerBackend(ConfigBackend):
    """Fetches a secret whose string payload is a flat JSON object."""

    def __init__(self, client: Optional[Any] = None, region_name: Optional[str] = None):
        self._client = LazyBotoClient("secretsmanager", client=client, region_name=region_name)

    async def fetch(self, store_id: str) -> dict[str, str]:
        return await asyncio.to_thread(self._fetch_sync, store_id)

    def _fetch_sync(self, store_id: str) -> dict[str, str]:
        try:
            result = self._client.get().get_secret_value(SecretId=store_id)
        except AWS_ERRORS as e:
            raise translate_aws_error(e, store_id) from e

        return snapshot_from_secret(result, store_id)


def snapshot_from_secret(result: dict, store_id: str) -> dict[str, str]:
    """Convert a GetSecretValue-shaped response into a snapshot."""
    secret_string = result.get("SecretString")
    if secret_string:
        return decode_json_snapshot(secret_string, store_id)

    secret_binary = result.get("SecretBinary")
    if secret_binary:
        if isinstance(secret_binary, str):
            # Already base64 text (HTTP APIs)
            return {BINARY_SECRET_KEY: secret_binary}
        return {BINARY_SECRET_KEY: base64.b64encode(secret_binary).decode("ascii")}

    return {}
