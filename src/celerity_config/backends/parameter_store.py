"""AWS SSM Parameter Store backend."""

import asyncio
import logging
from typing import Any, Optional

from .aws import AWS_ERRORS, LazyBotoClient, translate_aws_error
from .base import ConfigBackend

logger = logging.getLogger(__name__)


class AwsParameterStoreBackend(ConfigBackend):
    """Fetches every parameter under a path prefix.

    The store identifier is a parameter path such as ``/myapp/prod``. Nested
    parameters are flattened: ``/myapp/prod/db/host`` becomes ``db/host``.
    SecureString values are decrypted transparently.
    """

    def __init__(self, client: Optional[Any] = None, region_name: Optional[str] = None):
        self._client = LazyBotoClient("ssm", client=client, region_name=region_name)

    async def fetch(self, store_id: str) -> dict[str, str]:
        return await asyncio.to_thread(self._fetch_sync, store_id)

    def _fetch_sync(self, store_id: str) -> dict[str, str]:
        path = store_id if store_id.endswith("/") else f"{store_id}/"
        values: dict[str, str] = {}

        try:
            paginator = self._client.get().get_paginator("get_parameters_by_path")
            pages = paginator.paginate(Path=path, Recursive=True, WithDecryption=True)
            for page in pages:
                for param in page.get("Parameters", []):
                    name = param.get("Name")
                    value = param.get("Value")
                    if name is None or value is None:
                        continue
                    key = name[len(path):] if name.startswith(path) else name
                    values[key] = value
        except AWS_ERRORS as e:
            raise translate_aws_error(e, store_id) from e

        logger.debug(f"Parameter store {path}: {len(values)} parameters")
        return values
