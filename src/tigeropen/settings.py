"""Environment-backed settings primitives for :mod:`tigeropen`."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["TigerOpenSettings", "get_settings"]


class TigerOpenSettings(BaseSettings):
    """Expose environment-derived configuration knobs for the OpenAPI client.

    All environment lookups go through this class. Attributes correspond to
    ``TIGEROPEN_*`` environment variables and default to ``None`` (or the
    gateway default) when the variable is not present.

    Attributes:
        tiger_id: Developer identity issued by the gateway.
        account: Default trading account used when a request names none.
        secret_key: Institutional secret key forwarded in business content.
        private_key: RSA private key (PEM or bare base64).
        tiger_public_key: Gateway public key, kept for response verification.
        server_url: Gateway endpoint.
        device_id: Optional device identifier added to the envelope.
        notify_url: Optional callback URL added to the envelope.
        charset: Character set tag; also used in the ``Content-Type`` header.
        sign_type: Signature algorithm tag.
        version: Protocol version.
        lang: Language tag added to business content.
        token: Optional ``Authorization`` header value.
        timeout_seconds: HTTP timeout applied by the client.
        use_utc_timestamp: Format the envelope timestamp in UTC instead of
            local time.
    """

    tiger_id: str | None = Field(default=None, alias="TIGEROPEN_TIGER_ID")
    account: str | None = Field(default=None, alias="TIGEROPEN_ACCOUNT")
    secret_key: str | None = Field(default=None, alias="TIGEROPEN_SECRET_KEY")
    private_key: str | None = Field(default=None, alias="TIGEROPEN_PRIVATE_KEY")
    tiger_public_key: str | None = Field(
        default=None, alias="TIGEROPEN_TIGER_PUBLIC_KEY"
    )
    server_url: str | None = Field(default=None, alias="TIGEROPEN_SERVER_URL")
    device_id: str | None = Field(default=None, alias="TIGEROPEN_DEVICE_ID")
    notify_url: str | None = Field(default=None, alias="TIGEROPEN_NOTIFY_URL")
    charset: str = Field(default="UTF-8", alias="TIGEROPEN_CHARSET")
    sign_type: str = Field(default="RSA", alias="TIGEROPEN_SIGN_TYPE")
    version: str = Field(default="2.0", alias="TIGEROPEN_VERSION")
    lang: str = Field(default="en_US", alias="TIGEROPEN_LANG")
    token: str | None = Field(default=None, alias="TIGEROPEN_TOKEN")
    timeout_seconds: float = Field(default=15.0, alias="TIGEROPEN_TIMEOUT")
    use_utc_timestamp: bool = Field(default=False, alias="TIGEROPEN_UTC_TIMESTAMP")

    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    @field_validator("private_key", "tiger_public_key", mode="before")
    @classmethod
    def _convert_newlines(cls, value: object) -> str | None:
        """Convert literal ``\\n`` sequences in key material to newlines."""

        if value in (None, ""):
            return None
        return str(value).replace("\\n", "\n")

    @field_validator("timeout_seconds", mode="before")
    @classmethod
    def _parse_timeout(cls, value: object) -> float:
        """Parse the timeout while tolerating malformed input.

        Args:
            value: Raw environment value.

        Returns:
            Parsed positive float, otherwise the 15 second default.
        """

        if isinstance(value, bool):
            return 15.0
        if isinstance(value, (int, float)):
            return float(value) if value > 0 else 15.0
        if isinstance(value, str):
            try:
                parsed = float(value.strip())
            except ValueError:
                return 15.0
            return parsed if parsed > 0 else 15.0
        return 15.0


def get_settings() -> TigerOpenSettings:
    """Return a :class:`TigerOpenSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return TigerOpenSettings()
