# src/kraken_spot_sdk/core/models.py

from typing import Any, Generic, Optional, TypeVar, Union
from urllib.parse import parse_qsl, urlsplit

from pydantic import BaseModel, ConfigDict, Field

ResultT = TypeVar("ResultT")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Form data is either a mapping (values may be lists for repeated keys) or an
# ordered list of key/value pairs.
FormData = Union[dict[str, Any], list[tuple[str, Any]]]


class AppBaseModel(BaseModel):
    """Base model for all SDK data contracts."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )


# --- Wire Models ---


class KrakenResponse(AppBaseModel, Generic[ResultT]):
    """
    The envelope shared by every JSON response of the API.

    A non-empty `error` list carries business errors (e.g. 'EGeneral:Invalid
    arguments'). They are never raised by the client.
    """

    error: list[str] = Field(default_factory=list)
    result: Optional[ResultT] = None


class SecurityOptions(AppBaseModel):
    """Per-call security options threaded into the signed form data."""

    # Second factor (authenticator code or password). Empty when 2FA is not enabled.
    second_factor: str = ""


# --- Pipeline Models ---


class RequestDescriptor(AppBaseModel):
    """Everything an endpoint operation supplies to build one HTTP request."""

    operation: str = Field(..., description="Operation name used in logs and errors, e.g. 'GetServerTime'.")
    path: str = Field(..., description="Endpoint path relative to the base URL, e.g. '/public/Time'.")
    method: str = "GET"
    query: Optional[FormData] = None
    content_type: Optional[str] = None
    body: Optional[FormData] = None
    headers: dict[str, str] = Field(default_factory=dict)


class PreparedRequest(AppBaseModel):
    """An outgoing request, fully built, handed to the authorizer then to the transport."""

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: Optional[bytes] = None

    @property
    def path(self) -> str:
        """URL path, including the base URL prefix (e.g. '/0/private/Balance')."""
        return urlsplit(self.url).path

    @property
    def is_public(self) -> bool:
        return "public" in self.path.split("/")

    def get_header(self, name: str) -> Optional[str]:
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return None

    def set_header(self, name: str, value: str):
        """Sets a header, replacing any existing value whatever its case."""
        for key in [k for k in self.headers if k.lower() == name.lower()]:
            del self.headers[key]
        self.headers[name] = value

    def form_fields(self) -> list[tuple[str, str]]:
        """Form body pairs (when the body is form encoded) followed by query string pairs."""
        pairs: list[tuple[str, str]] = []
        content_type = (self.get_header("Content-Type") or "").split(";")[0].strip().lower()
        if self.body and content_type == FORM_CONTENT_TYPE:
            pairs.extend(parse_qsl(self.body.decode(), keep_blank_values=True, strict_parsing=True))
        query = urlsplit(self.url).query
        if query:
            pairs.extend(parse_qsl(query, keep_blank_values=True, strict_parsing=True))
        return pairs


class ResponseMetadata(AppBaseModel):
    """Transport level data of a response, kept once the body has been consumed."""

    status: int
    content_type: str
    headers: dict[str, str] = Field(default_factory=dict)
