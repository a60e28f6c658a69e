# src/kraken_spot_sdk/config/models.py

# --- Built Ins  ---
from typing import Optional

# --- Installed  ---
from pydantic import BaseModel, Field, SecretStr, computed_field, field_validator

KRAKEN_PRODUCTION_V0_BASE_URL = "https://api.kraken.com/0"
DEFAULT_USER_AGENT = "kraken-spot-sdk"


class ClientSettings(BaseModel):
    # API credentials are optional. Without them the client can only
    # reach public endpoints.
    api_key: Optional[str] = None
    api_secret: Optional[SecretStr] = Field(
        default=None,
        description="Base64 encoded secret, as displayed when the API key was created.",
    )

    base_url: str = Field(default=KRAKEN_PRODUCTION_V0_BASE_URL)
    user_agent: str = Field(default=DEFAULT_USER_AGENT, min_length=1)
    request_timeout_s: Optional[float] = Field(
        default=None,
        gt=0,
        description="Total timeout for a call when its context carries no deadline.",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @computed_field
    @property
    def has_credentials(self) -> bool:
        """True when both the API key and a non-empty secret are configured."""
        return bool(self.api_key) and self.api_secret is not None and bool(self.api_secret.get_secret_value().strip())
