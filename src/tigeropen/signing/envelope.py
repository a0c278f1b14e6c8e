"""Assemble signed request envelopes for the gateway.

One call builds one envelope:

1. business parameters are encoded compactly into ``biz_content``;
2. the fixed envelope fields are merged in;
3. the sign content is built over every field except ``sign``;
4. the sign content is signed and attached as ``sign``;
5. the whole envelope is encoded compactly as the request body, then into
   the configured charset.

Any failure aborts the call before a request body exists.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType

from tigeropen.config import ClientConfig
from tigeropen.exceptions import BuildError, EncodeError, TigerOpenError
from tigeropen.signing.canonicalize import EncodeMode, canonical_encode
from tigeropen.signing.sign_content import SIGN_FIELD, build_sign_content
from tigeropen.signing.signer import RsaSigner

logger = logging.getLogger(__name__)

__all__ = [
    "TIMESTAMP_FORMAT",
    "EnvelopeAssembler",
    "SignedEnvelope",
    "assemble_envelope",
]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True, slots=True)
class SignedEnvelope:
    """A finished envelope, ready for transport.

    Attributes:
        method: Gateway method name (``assets``, ``place_order`` ...).
        params: Read-only envelope fields, ``sign`` included.
        sign_content: Exact string that was signed.
        body: Compact canonical JSON of ``params``; the HTTP request body.
        content_type: ``Content-Type`` header matching the ``charset`` field.
        payload: ``body`` encoded with the configured charset.
    """

    method: str
    params: Mapping[str, object]
    sign_content: str
    body: str
    content_type: str
    payload: bytes

    @property
    def signature(self) -> str:
        """Base64 signature carried in the ``sign`` field."""
        return str(self.params[SIGN_FIELD])

    @property
    def biz_content(self) -> str:
        """Canonical business content string."""
        return str(self.params["biz_content"])

    def body_bytes(self) -> bytes:
        """Return the body encoded with the envelope charset."""
        return self.payload


def _local_now() -> datetime:
    return datetime.now()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EnvelopeAssembler:
    """Build signed envelopes for one client configuration.

    The assembler holds only immutable state (the configuration and a signer
    whose key is parsed once), so it can be shared between threads.

    Args:
        config: Resolved client configuration.
        signer: Optional signer; built from ``config.private_key`` when
            omitted, raising :class:`~tigeropen.exceptions.PrivateKeyError`
            for unusable key material.
        clock: Optional callable returning the current time; defaults to
            local time or UTC according to ``config.use_utc_timestamp``.

    Raises:
        BuildError: If ``config.charset`` names no known codec.
    """

    def __init__(
        self,
        config: ClientConfig,
        signer: RsaSigner | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        try:
            codecs.lookup(config.charset)
        except LookupError as exc:
            raise BuildError(
                f"unknown charset {config.charset!r}", stage="config", field="charset"
            ) from exc
        self._config = config
        self._signer = signer or RsaSigner(config.private_key)
        if clock is None:
            clock = _utc_now if config.use_utc_timestamp else _local_now
        self._clock = clock

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def signer(self) -> RsaSigner:
        return self._signer

    def envelope_fields(self, method: str, biz_content: str) -> dict[str, object]:
        """Return the unsigned envelope fields for ``method``."""

        if not method:
            raise BuildError(
                "method name is required", stage="envelope", field="method"
            )
        cfg = self._config
        if not cfg.tiger_id:
            raise BuildError(
                "tiger_id is required", stage="envelope", field="tiger_id"
            )
        params: dict[str, object] = {
            "method": method,
            "version": cfg.version,
            "biz_content": biz_content,
            "timestamp": self._clock().strftime(TIMESTAMP_FORMAT),
            "tiger_id": cfg.tiger_id,
            "charset": cfg.charset,
            "sign_type": cfg.sign_type,
        }
        if cfg.device_id:
            params["device_id"] = cfg.device_id
        if cfg.notify_url:
            params["notify_url"] = cfg.notify_url
        return params

    def assemble(
        self, method: str, business_params: Mapping[str, object] | None = None
    ) -> SignedEnvelope:
        """Encode, sign and finalize one request.

        Raises:
            EncodeError: If a business parameter is not representable.
            BuildError: If the envelope fields are malformed.
            SignError: If signing fails.
        """

        if business_params is not None and not isinstance(business_params, Mapping):
            kind = type(business_params).__name__
            raise BuildError(
                f"business parameters must be a mapping, got {kind}",
                stage="biz_content",
            )
        try:
            biz_content = canonical_encode(business_params or {}, EncodeMode.COMPACT)
        except EncodeError as exc:
            raise EncodeError(
                exc.message, stage="biz_content", field=exc.field
            ) from exc

        params = self.envelope_fields(method, biz_content)
        sign_content = build_sign_content(params)
        logger.debug(
            "Built sign content",
            extra={
                "method": method,
                "stage": "sign_content",
                "fields": sorted(params),
                "sign_content_length": len(sign_content),
            },
        )

        signature = self._signer.sign(sign_content)
        params[SIGN_FIELD] = signature

        try:
            body = canonical_encode(params, EncodeMode.COMPACT)
        except EncodeError as exc:  # pragma: no cover - fields are strings
            raise EncodeError(exc.message, stage="body", field=exc.field) from exc
        try:
            payload = body.encode(self._config.charset)
        except UnicodeEncodeError as exc:
            raise EncodeError(
                f"body is not representable in {self._config.charset}", stage="body"
            ) from exc

        return SignedEnvelope(
            method=method,
            params=MappingProxyType(params),
            sign_content=sign_content,
            body=body,
            content_type=f"application/json;charset={self._config.charset}",
            payload=payload,
        )


def assemble_envelope(
    business_params: Mapping[str, object] | None,
    config: ClientConfig,
    method: str,
    *,
    now: datetime | None = None,
    signer: RsaSigner | None = None,
) -> SignedEnvelope:
    """Build a signed envelope in one call.

    Args:
        business_params: Method-specific fields; ``None`` means no fields.
        config: Client configuration supplying the envelope fields and key.
        method: Gateway method name.
        now: Optional fixed timestamp, mainly for reproducible output.
        signer: Optional pre-built signer, avoiding a second key parse.

    Raises:
        TigerOpenError: Any local failure, see :meth:`EnvelopeAssembler.assemble`.
    """

    clock = (lambda: now) if now is not None else None
    assembler = EnvelopeAssembler(config, signer, clock=clock)
    try:
        return assembler.assemble(method, business_params)
    except TigerOpenError:
        logger.warning(
            "Envelope assembly failed",
            extra={"method": method},
            exc_info=True,
        )
        raise
