# src/kraken_spot_sdk/auth/authorizer.py

# --- Built Ins ---
from abc import ABC, abstractmethod
from typing import Any, Optional, Self

# --- Installed ---
from loguru import logger as log
from pydantic import ConfigDict, Field

# --- Local Application Imports ---
from .signer import decode_secret, sign
from ..config.models import ClientSettings
from ..core.context import RequestContext
from ..core.errors import AuthorizationError, ConstructionError, RequestCancelledError
from ..core.models import AppBaseModel, PreparedRequest, SecurityOptions

# Headers exclusively managed by the authorizer
HEADER_API_KEY = "API-Key"
HEADER_API_SIGN = "API-Sign"


class Authorizer(ABC):
    """
    Authorizes and post-processes outgoing requests before they are sent.

    Custom implementations can be plugged in to filter requests, route them to
    an egress gateway that signs them, and so on. When `authorize` raises, the
    request must not be sent.
    """

    @abstractmethod
    async def authorize(
        self,
        request: PreparedRequest,
        ctx: Optional[RequestContext] = None,
    ) -> PreparedRequest:
        raise NotImplementedError


class Credentials(AppBaseModel):
    """API key and decoded secret. Read-only once built."""

    model_config = ConfigDict(frozen=True)

    api_key: str
    secret: bytes = Field(repr=False)

    @classmethod
    def from_base64(cls, api_key: str, secret: str) -> Self:
        return cls(api_key=api_key, secret=decode_secret(secret))


class KrakenRestAuthorizer(Authorizer):
    """
    Signs requests to private endpoints with an API key and its secret.

    The request body must already carry a single `nonce` field (and `otp` when
    2FA is enabled). Requests to public endpoints are returned untouched.
    """

    def __init__(self, credentials: Credentials):
        self._credentials = credentials

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> Self:
        if not settings.has_credentials:
            raise ConstructionError("cannot build an authorizer: api_key and api_secret are required")
        return cls(Credentials.from_base64(settings.api_key, settings.api_secret.get_secret_value()))

    @property
    def api_key(self) -> str:
        return self._credentials.api_key

    async def authorize(
        self,
        request: PreparedRequest,
        ctx: Optional[RequestContext] = None,
    ) -> PreparedRequest:
        if request is None:
            raise TypeError("cannot authorize request: provided request is None")
        if ctx is not None and ctx.done():
            raise RequestCancelledError(f"failed to authorize request: {ctx.reason()}")

        if request.is_public:
            return request

        try:
            fields = request.form_fields()
        except ValueError as e:
            raise AuthorizationError(f"failed to authorize request: could not parse form data: {e}") from e

        nonces = [value for key, value in fields if key == "nonce"]
        if len(nonces) != 1:
            raise AuthorizationError(
                f"failed to authorize request to '{request.path}': expected exactly one nonce, got {len(nonces)}"
            )

        signature = sign(request.path, fields, self._credentials.secret)
        request.set_header(HEADER_API_KEY, self._credentials.api_key)
        request.set_header(HEADER_API_SIGN, signature)
        log.trace(f"Signed request to '{request.path}' with nonce {nonces[0]}")
        return request


def encode_nonce_and_security_options(
    form: dict[str, Any],
    nonce: int,
    secopts: Optional[SecurityOptions] = None,
) -> dict[str, Any]:
    """Sets the nonce and, when security options are given, the otp in the form data."""
    form["nonce"] = str(nonce)
    if secopts is not None:
        form["otp"] = secopts.second_factor
    return form
