"""Resolved client configuration and env-file loading."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Final

from tigeropen.exceptions import BuildError
from tigeropen.settings import TigerOpenSettings, get_settings

__all__ = [
    "DEFAULT_SERVER_URL",
    "REGIONAL_SERVER_URL",
    "ClientConfig",
    "load_env_file",
]

DEFAULT_SERVER_URL: Final[str] = "https://openapi.tigerfintech.com/gateway"
REGIONAL_SERVER_URL: Final[str] = "https://openapi.tigerfintech.com/hkg/gateway"
DEFAULT_CHARSET: Final[str] = "UTF-8"
DEFAULT_SIGN_TYPE: Final[str] = "RSA"
DEFAULT_VERSION: Final[str] = "2.0"
DEFAULT_LANG: Final[str] = "en_US"
DEFAULT_TIMEOUT_SECONDS: Final[float] = 15.0

# Licenses served by the regional gateway.
_REGIONAL_LICENSES: Final[frozenset[str]] = frozenset({"TBNZ", "TBSG"})


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Connection settings with gateway defaults applied.

    Attributes:
        tiger_id: Developer identity sent as ``tiger_id``.
        private_key: RSA private key material (PEM or bare base64).
        account: Default account for requests that do not name one.
        secret_key: Institutional secret key added to business content.
        tiger_public_key: Gateway public key material.
        server_url: Gateway endpoint receiving the POST.
        device_id: Added to the envelope as ``device_id`` when set.
        notify_url: Added to the envelope as ``notify_url`` when set.
        charset: ``charset`` envelope field and ``Content-Type`` charset.
        sign_type: ``sign_type`` envelope field.
        version: ``version`` envelope field.
        lang: Default ``lang`` business field.
        token: ``Authorization`` header value when set.
        timeout_seconds: HTTP timeout.
        use_utc_timestamp: Format ``timestamp`` in UTC rather than local time.
    """

    tiger_id: str
    private_key: str
    account: str = ""
    secret_key: str = ""
    tiger_public_key: str = ""
    server_url: str = DEFAULT_SERVER_URL
    device_id: str = ""
    notify_url: str = ""
    charset: str = DEFAULT_CHARSET
    sign_type: str = DEFAULT_SIGN_TYPE
    version: str = DEFAULT_VERSION
    lang: str = DEFAULT_LANG
    token: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    use_utc_timestamp: bool = False

    def validate(self) -> ClientConfig:
        """Return ``self`` when the required fields are present.

        Raises:
            BuildError: If ``tiger_id`` or ``private_key`` is empty.
        """

        if not self.tiger_id:
            raise BuildError("tiger_id is required", stage="config", field="tiger_id")
        if not self.private_key:
            raise BuildError(
                "private key is required", stage="config", field="private_key"
            )
        return self

    def with_overrides(self, **changes: object) -> ClientConfig:
        """Return a copy with ``changes`` applied; empty values are ignored."""

        applied = {
            key: value for key, value in changes.items() if value not in (None, "")
        }
        return replace(self, **applied)  # type: ignore[arg-type]

    @classmethod
    def from_settings(
        cls, settings: TigerOpenSettings | None = None, **overrides: object
    ) -> ClientConfig:
        """Build a configuration from environment settings.

        Args:
            settings: Optional pre-instantiated settings. When omitted
                :func:`tigeropen.settings.get_settings` is used.
            **overrides: Explicit values taking precedence over settings.
        """

        env = settings or get_settings()
        base = cls(
            tiger_id=env.tiger_id or "",
            private_key=env.private_key or "",
            account=env.account or "",
            secret_key=env.secret_key or "",
            tiger_public_key=env.tiger_public_key or "",
            server_url=env.server_url or DEFAULT_SERVER_URL,
            device_id=env.device_id or "",
            notify_url=env.notify_url or "",
            charset=env.charset or DEFAULT_CHARSET,
            sign_type=env.sign_type or DEFAULT_SIGN_TYPE,
            version=env.version or DEFAULT_VERSION,
            lang=env.lang or DEFAULT_LANG,
            token=env.token or "",
            timeout_seconds=env.timeout_seconds,
            use_utc_timestamp=env.use_utc_timestamp,
        )
        return base.with_overrides(**overrides)

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, str], **overrides: object
    ) -> ClientConfig:
        """Build a configuration from ``key=value`` pairs of an env file.

        Besides the plain field names, the mapping may carry
        ``private_key_pk1``/``private_key_pk8`` (PKCS#1 preferred) and a
        ``license`` which selects the regional gateway for TBNZ/TBSG accounts
        unless ``server_url`` is given explicitly.
        """

        known = {item.name for item in fields(cls)}
        kwargs: dict[str, object] = {
            key: value for key, value in values.items() if key in known and value
        }
        if "private_key" not in kwargs:
            pk1 = values.get("private_key_pk1")
            pk8 = values.get("private_key_pk8")
            if pk1 or pk8:
                kwargs["private_key"] = pk1 or pk8
        if "server_url" not in kwargs:
            license_name = (values.get("license") or "").strip().upper()
            if license_name in _REGIONAL_LICENSES:
                kwargs["server_url"] = REGIONAL_SERVER_URL
        if "timeout_seconds" in kwargs:
            kwargs["timeout_seconds"] = _parse_timeout(str(kwargs["timeout_seconds"]))
        if "use_utc_timestamp" in kwargs:
            flag = str(kwargs["use_utc_timestamp"]).strip().lower()
            kwargs["use_utc_timestamp"] = flag in {"1", "true", "yes"}
        config = cls(
            tiger_id=str(kwargs.pop("tiger_id", "")),
            private_key=str(kwargs.pop("private_key", "")),
        )
        config = replace(config, **kwargs)  # type: ignore[arg-type]
        return config.with_overrides(**overrides)


def _parse_timeout(raw: str) -> float:
    try:
        value = float(raw.strip())
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def load_env_file(path: str | Path) -> dict[str, str]:
    """Parse a simple ``key=value`` text file.

    Blank lines, ``#`` comments and lines without ``=`` are skipped. Keys and
    values are stripped; the first ``=`` splits key from value.

    Raises:
        OSError: If the file cannot be read.
    """

    values: dict[str, str] = {}
    text = Path(path).read_text(encoding="utf-8")
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        values[key.strip()] = value.strip()
    return values
