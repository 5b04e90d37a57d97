"""Shared helpers for the boto3-based AWS backends."""

import threading
from typing import Any, Optional

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from ..errors import BackendError, BackendErrorKind

_AUTH_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnrecognizedClientException",
    "ExpiredTokenException",
    "InvalidClientTokenId",
    "InvalidSignatureException",
    "IncompleteSignature",
    "DecryptionFailure",
}
_NOT_FOUND_CODES = {
    "ResourceNotFoundException",
    "ParameterNotFound",
}


def translate_aws_error(exc: Exception, store_id: str) -> BackendError:
    """Map a botocore exception onto a BackendError."""
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        message = exc.response.get("Error", {}).get("Message", str(exc))
        if code in _AUTH_CODES:
            kind = BackendErrorKind.AUTH
        elif code in _NOT_FOUND_CODES:
            kind = BackendErrorKind.NOT_FOUND
        else:
            kind = BackendErrorKind.NETWORK
        return BackendError(kind, store_id, f"{code}: {message}")

    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return BackendError(BackendErrorKind.AUTH, store_id, str(exc))

    return BackendError(BackendErrorKind.NETWORK, store_id, str(exc))


AWS_ERRORS = (ClientError, BotoCoreError)


class LazyBotoClient:
    """Creates a boto3 client on first use.

    boto3 resolves region and credentials at client creation, which can fail;
    deferring it keeps those failures inside fetch() where they become
    BackendErrors.
    """

    def __init__(self, service_name: str, client: Optional[Any] = None, region_name: Optional[str] = None):
        self.service_name = service_name
        self.region_name = region_name
        self._client = client
        self._lock = threading.Lock()

    def get(self) -> Any:
        with self._lock:
            if self._client is None:
                self._client = boto3.client(self.service_name, region_name=self.region_name)
            return self._client
