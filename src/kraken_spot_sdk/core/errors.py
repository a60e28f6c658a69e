# src/kraken_spot_sdk/core/errors.py

"""
Error taxonomy for the REST pipeline.

Only transport and protocol failures are raised. Business errors returned by
the exchange in the envelope's `error` list are data: a call that does not
raise has not necessarily succeeded.
"""

from typing import Optional

from .models import ResponseMetadata


class KrakenSdkError(Exception):
    """Base exception for all errors raised by the SDK."""

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        metadata: Optional[ResponseMetadata] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        # Status and headers of the response, when the failure happened after one was received.
        self.metadata = metadata

    def __str__(self) -> str:
        if self.operation:
            return f"request for {self.operation} failed: {self.message}"
        return self.message


class ConstructionError(KrakenSdkError, ValueError):
    """A client component could not be built (e.g. the secret is not valid base64)."""

    pass


class ConfigurationError(KrakenSdkError):
    """The request or the client is configured in a way the pipeline does not support."""

    pass


class MissingCredentialsError(KrakenSdkError):
    """A private endpoint was called by a client running in public-only mode."""

    def __init__(self, path: str, *, operation: Optional[str] = None):
        self.path = path
        super().__init__(
            f"'{path}' is a private endpoint but the client has no credentials",
            operation=operation,
        )


class AuthorizationError(KrakenSdkError):
    """The request could not be signed with the data it carries."""

    pass


class RequestCancelledError(KrakenSdkError):
    """The call context was cancelled or its deadline expired."""

    pass


class TransportError(KrakenSdkError):
    """The remote host could not be reached or the exchange of bytes failed."""

    pass


class StatusError(KrakenSdkError):
    """The API replied with a status code other than 200."""

    def __init__(
        self,
        status_code: int,
        *,
        operation: Optional[str] = None,
        metadata: Optional[ResponseMetadata] = None,
    ):
        self.status_code = status_code
        super().__init__(
            f"unexpected status code received from Kraken API: {status_code}",
            operation=operation,
            metadata=metadata,
        )


class ContentTypeError(KrakenSdkError):
    """The response content type is missing or not supported."""

    def __init__(
        self,
        content_type: str,
        *,
        operation: Optional[str] = None,
        metadata: Optional[ResponseMetadata] = None,
    ):
        self.content_type = content_type
        super().__init__(
            f"response Content-Type is '{content_type}' but only application/json, "
            "application/octet-stream or application/zip are expected",
            operation=operation,
            metadata=metadata,
        )


class DecodeError(KrakenSdkError):
    """The JSON body could not be read or does not match the expected shape."""

    pass
