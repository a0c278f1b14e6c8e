"""HTTP client executing signed OpenAPI requests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime

import httpx
from pydantic import ValidationError

from tigeropen import __version__
from tigeropen.config import ClientConfig
from tigeropen.exceptions import ApiError, TransportError
from tigeropen.models import (
    ApiResponse,
    AssetsResult,
    OrderResult,
    PositionsResult,
    parse_assets,
    parse_order,
    parse_positions,
)
from tigeropen.requests import (
    AssetsRequest,
    CancelOrderRequest,
    Order,
    PositionsRequest,
)
from tigeropen.settings import TigerOpenSettings
from tigeropen.signing.envelope import EnvelopeAssembler, SignedEnvelope

LOGGER = logging.getLogger(__name__)

__all__ = ["TigerOpenClient"]


class TigerOpenClient:
    """Execute signed requests against the gateway.

    The private key is parsed when the client is created; unusable key
    material raises :class:`~tigeropen.exceptions.PrivateKeyError` before any
    request is attempted. Envelope construction errors abort a call before
    network I/O.

    Args:
        config: Resolved configuration; ``tiger_id`` and ``private_key`` are
            required.
        http_client: Optional ``httpx.Client`` reused for every call. When
            omitted a short-lived client is opened per request.
        clock: Optional time source for envelope timestamps.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: httpx.Client | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config.validate()
        self._assembler = EnvelopeAssembler(self._config, clock=clock)
        self._http_client = http_client
        self._user_agent = f"openapi-python-sdk-{__version__}"

    @classmethod
    def from_settings(
        cls, settings: TigerOpenSettings | None = None, **overrides: object
    ) -> TigerOpenClient:
        """Create a client from ``TIGEROPEN_*`` environment settings."""

        return cls(ClientConfig.from_settings(settings, **overrides))

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def assembler(self) -> EnvelopeAssembler:
        return self._assembler

    def get_assets(self, request: AssetsRequest | None = None) -> AssetsResult:
        """Query account assets."""

        biz = (request or AssetsRequest()).to_biz(self._config)
        return parse_assets(self._call("assets", biz))

    def get_positions(self, request: PositionsRequest | None = None) -> PositionsResult:
        """Query current positions."""

        biz = (request or PositionsRequest()).to_biz(self._config)
        return parse_positions(self._call("positions", biz))

    def place_order(self, order: Order) -> OrderResult:
        """Submit an order.

        Raises:
            ApiError: If the gateway rejects the order; the decoded
                :class:`OrderResult` is attached as ``result``.
        """

        result = parse_order(self._call("place_order", order.to_biz(self._config)))
        self._raise_if_rejected("order", result)
        return result

    def cancel_order(self, request: CancelOrderRequest) -> OrderResult:
        """Cancel an order by global id or account order id.

        Raises:
            ApiError: If the gateway rejects the cancellation.
        """

        result = parse_order(self._call("cancel_order", request.to_biz(self._config)))
        self._raise_if_rejected("cancel", result)
        return result

    def build_envelope(
        self, method: str, business_params: Mapping[str, object] | None = None
    ) -> SignedEnvelope:
        """Return the signed envelope for ``method`` without sending it."""

        return self._assembler.assemble(method, business_params)

    def headers(self, envelope: SignedEnvelope) -> dict[str, str]:
        """HTTP headers accompanying ``envelope``."""

        headers = {
            "Content-Type": envelope.content_type,
            "Cache-Control": "no-cache",
            "Connection": "Keep-Alive",
            "User-Agent": self._user_agent,
        }
        if self._config.token:
            headers["Authorization"] = self._config.token
        return headers

    @staticmethod
    def _raise_if_rejected(kind: str, result: OrderResult) -> None:
        if result.order.rejected:
            raise ApiError(
                f"{kind} rejected code={result.order.code} msg={result.order.message}",
                code=result.order.code,
                result=result,
            )

    def _call(self, method: str, biz: Mapping[str, object]) -> ApiResponse:
        envelope = self._assembler.assemble(method, biz)
        url = self._config.server_url
        headers = self.headers(envelope)
        content = envelope.body_bytes()

        try:
            if self._http_client is not None:
                response = self._http_client.post(url, content=content, headers=headers)
            else:
                with httpx.Client(timeout=self._config.timeout_seconds) as client:
                    response = client.post(url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "OpenAPI transport error",
                extra={"method": method, "url": url},
                exc_info=exc,
            )
            raise TransportError(f"request {method} failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            body = response.text
            LOGGER.warning(
                "OpenAPI HTTP error",
                extra={
                    "method": method,
                    "url": url,
                    "status_code": response.status_code,
                },
            )
            raise TransportError(
                f"unexpected status {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            result = ApiResponse.model_validate(response.json())
        except (ValueError, TypeError, ValidationError) as exc:
            LOGGER.warning(
                "OpenAPI response parsing error",
                extra={"method": method, "url": url},
                exc_info=exc,
            )
            raise TransportError(
                f"decode {method} response: {exc}", stage="response"
            ) from exc

        if not result.success:
            LOGGER.info(
                "OpenAPI returned non-zero code",
                extra={
                    "method": method,
                    "code": result.code,
                    "api_message": result.message,
                },
            )
        return result
