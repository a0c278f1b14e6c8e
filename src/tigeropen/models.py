"""Pydantic models describing gateway responses."""

from __future__ import annotations

import json
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from tigeropen.exceptions import ApiError

__all__ = [
    "ApiResponse",
    "AssetItem",
    "AssetsResult",
    "OrderIdData",
    "OrderResult",
    "Position",
    "PositionsResult",
    "parse_assets",
    "parse_order",
    "parse_positions",
]


class ApiResponse(BaseModel):
    """Outer response envelope returned by the gateway."""

    model_config = ConfigDict(extra="ignore")

    code: int = Field(default=0, description="Business status code; 0 is success.")
    message: str = Field(default="", description="Status message.")
    data: Any = Field(default=None, description="Method specific payload.")
    sign: str | None = Field(default=None, description="Gateway signature.")

    @field_validator("message", mode="before")
    @classmethod
    def _none_message(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("data", mode="before")
    @classmethod
    def _decode_string_payload(cls, value: object) -> object:
        """Decode payloads that arrive as a JSON document inside a string."""

        if isinstance(value, str):
            trimmed = value.strip()
            if not trimmed:
                return None
            try:
                return json.loads(trimmed)
            except json.JSONDecodeError:
                return value
        return value

    @property
    def success(self) -> bool:
        return self.code == 0


class _Item(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)


class AssetItem(_Item):
    """One asset segment of an account."""

    account: str = ""
    currency: str = ""
    net_liquidation: float = Field(default=0.0, alias="netLiquidation")
    equity_with_loan: float = Field(default=0.0, alias="equityWithLoan")
    available_funds: float = Field(default=0.0, alias="availableFunds")
    buying_power: float = Field(default=0.0, alias="buyingPower")
    cash: float = 0.0
    gross_position_value: float = Field(default=0.0, alias="grossPositionValue")
    unrealized_pnl: float = Field(default=0.0, alias="unrealizedPnL")
    realized_pnl: float = Field(default=0.0, alias="realizedPnL")
    maint_margin_req: float = Field(default=0.0, alias="maintMarginReq")
    init_margin_req: float = Field(default=0.0, alias="initMarginReq")
    update_time: int = Field(default=0, alias="updateTime")


class Position(_Item):
    """One held position."""

    account: str = ""
    symbol: str = ""
    sec_type: str = ""
    currency: str = ""
    market: str = ""
    position: float = 0.0
    average_cost: float = Field(default=0.0, alias="avgCost")
    market_price: float = Field(default=0.0, alias="marketPrice")
    market_value: float = Field(default=0.0, alias="marketValue")
    unrealized_pnl: float = Field(default=0.0, alias="unrealizedPnL")
    realized_pnl: float = Field(default=0.0, alias="realizedPnL")
    update_time: int = Field(default=0, alias="updateTime")


class OrderIdData(BaseModel):
    """Payload of ``place_order`` and ``cancel_order`` responses."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    order_id: int = Field(default=0, alias="orderId")
    id: int = 0
    sub_ids: list[int] = Field(default_factory=list, alias="subIds")
    orders: Any = None
    code: int = 0
    message: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fallback_order_id(cls, value: object) -> object:
        """Use ``order_id`` when ``orderId`` is missing or zero."""

        if (
            isinstance(value, dict)
            and not value.get("orderId")
            and value.get("order_id")
        ):
            value = dict(value)
            value["orderId"] = value.pop("order_id")
        return value

    @field_validator("code", mode="before")
    @classmethod
    def _int_or_string(cls, value: object) -> object:
        """Accept numeric codes encoded as numbers or quoted strings."""

        if value is None:
            return 0
        if isinstance(value, str):
            stripped = value.strip()
            return int(stripped) if stripped else 0
        return value

    @field_validator("message", mode="before")
    @classmethod
    def _none_message(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def rejected(self) -> bool:
        return self.code != 0


class AssetsResult(BaseModel):
    response: ApiResponse
    items: list[AssetItem] = Field(default_factory=list)
    is_success: bool = False


class PositionsResult(BaseModel):
    response: ApiResponse
    items: list[Position] = Field(default_factory=list)
    is_success: bool = False


class OrderResult(BaseModel):
    response: ApiResponse
    order: OrderIdData = Field(default_factory=OrderIdData)


def _items(response: ApiResponse, method: str) -> tuple[list[dict[str, Any]], bool]:
    data = response.data
    if data is None:
        return [], False
    if not isinstance(data, dict):
        raise ApiError(
            f"unexpected {method} payload type {type(data).__name__}",
            code=response.code,
        )
    raw_items = data.get("items") or []
    if not isinstance(raw_items, list):
        raise ApiError(f"unexpected {method} items type", code=response.code)
    for index, item in enumerate(raw_items):
        if not isinstance(item, dict):
            raise ApiError(
                f"decode {method} item {index}: expected object, "
                f"got {type(item).__name__}",
                code=response.code,
            )
    return raw_items, bool(data.get("is_success"))


def _parse_items(
    model: type[_Item], raw_items: list[dict[str, Any]], method: str
) -> list[Any]:
    parsed = []
    for raw in raw_items:
        try:
            item = model.model_validate(raw)
        except ValidationError as exc:
            raise ApiError(f"decode {method} item: {exc}") from exc
        item.raw = raw
        parsed.append(item)
    return parsed


def parse_assets(response: ApiResponse) -> AssetsResult:
    raw_items, is_success = _items(response, "assets")
    return AssetsResult(
        response=response,
        items=_parse_items(AssetItem, raw_items, "assets"),
        is_success=is_success,
    )


def parse_positions(response: ApiResponse) -> PositionsResult:
    raw_items, is_success = _items(response, "positions")
    return PositionsResult(
        response=response,
        items=_parse_items(Position, raw_items, "positions"),
        is_success=is_success,
    )


def parse_order(response: ApiResponse) -> OrderResult:
    """Decode an order response, tolerating an empty payload."""

    data = response.data
    if data is None:
        return OrderResult(response=response)
    try:
        order = OrderIdData.model_validate(data)
    except ValidationError as exc:
        raise ApiError(f"decode order response: {exc}", code=response.code) from exc
    return OrderResult(response=response, order=order)
