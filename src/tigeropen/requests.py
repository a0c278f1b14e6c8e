"""Business-parameter builders for the trading operations.

Each request type turns its fields into the ``biz_content`` mapping. Optional
fields are included only when they are set; nothing is defaulted here except
account, secret key and language, which fall back to the client
configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tigeropen.config import ClientConfig

__all__ = [
    "AssetsRequest",
    "CancelOrderRequest",
    "Contract",
    "ContractLeg",
    "Order",
    "PositionsRequest",
]


def _identity_fields(
    config: ClientConfig, account: str, secret_key: str
) -> dict[str, object]:
    biz: dict[str, object] = {}
    account = account or config.account
    secret_key = secret_key or config.secret_key
    if account:
        biz["account"] = account
    if secret_key:
        biz["secret_key"] = secret_key
    return biz


def _put_if(biz: dict[str, object], key: str, value: object) -> None:
    """Set ``key`` unless ``value`` is ``None``, empty text or an empty list."""

    if value is None or value == "" or value == []:
        return
    biz[key] = value


def _finish(
    biz: dict[str, object], config: ClientConfig, lang: str
) -> dict[str, object]:
    lang = lang or config.lang
    if lang:
        biz["lang"] = lang
    return biz


@dataclass(slots=True)
class AssetsRequest:
    """Query account assets."""

    account: str = ""
    sub_accounts: list[str] = field(default_factory=list)
    segment: bool = False
    market_value: bool = False
    base_currency: str = ""
    consolidated: bool | None = None
    secret_key: str = ""
    lang: str = ""

    def to_biz(self, config: ClientConfig) -> dict[str, object]:
        biz = _identity_fields(config, self.account, self.secret_key)
        if self.segment:
            biz["segment"] = True
        if self.market_value:
            biz["market_value"] = True
        _put_if(biz, "sub_accounts", list(self.sub_accounts))
        _put_if(biz, "base_currency", self.base_currency)
        _put_if(biz, "consolidated", self.consolidated)
        return _finish(biz, config, self.lang)


@dataclass(slots=True)
class PositionsRequest:
    """Query current positions."""

    account: str = ""
    symbol: str = ""
    sec_type: str = ""
    currency: str = ""
    market: str = ""
    sub_accounts: list[str] = field(default_factory=list)
    expiry: str = ""
    strike: float | None = None
    put_call: str = ""
    asset_quote_type: str = ""
    secret_key: str = ""
    lang: str = ""

    def to_biz(self, config: ClientConfig) -> dict[str, object]:
        biz = _identity_fields(config, self.account, self.secret_key)
        _put_if(biz, "symbol", self.symbol)
        _put_if(biz, "sec_type", self.sec_type)
        _put_if(biz, "currency", self.currency)
        _put_if(biz, "market", self.market)
        _put_if(biz, "sub_accounts", list(self.sub_accounts))
        _put_if(biz, "expiry", self.expiry)
        _put_if(biz, "strike", self.strike)
        _put_if(biz, "right", self.put_call)
        _put_if(biz, "asset_quote_type", self.asset_quote_type)
        return _finish(biz, config, self.lang)


@dataclass(slots=True)
class CancelOrderRequest:
    """Cancel an order by global id or account order id."""

    account: str = ""
    id: int | None = None
    order_id: int | None = None
    secret_key: str = ""
    lang: str = ""

    def to_biz(self, config: ClientConfig) -> dict[str, object]:
        biz = _identity_fields(config, self.account, self.secret_key)
        _put_if(biz, "order_id", self.order_id)
        _put_if(biz, "id", self.id)
        return _finish(biz, config, self.lang)


@dataclass(slots=True)
class Contract:
    """Instrument description shared by orders and order legs."""

    symbol: str = ""
    currency: str = ""
    sec_type: str = ""
    exchange: str = ""
    local_symbol: str = ""
    expiry: str = ""
    strike: float | None = None
    put_call: str = ""
    multiplier: str = ""

    def to_biz(self) -> dict[str, object]:
        biz: dict[str, object] = {}
        _put_if(biz, "symbol", self.symbol)
        _put_if(biz, "currency", self.currency)
        _put_if(biz, "sec_type", self.sec_type)
        _put_if(biz, "exchange", self.exchange)
        _put_if(biz, "local_symbol", self.local_symbol)
        _put_if(biz, "expiry", self.expiry)
        _put_if(biz, "strike", self.strike)
        _put_if(biz, "right", self.put_call)
        _put_if(biz, "multiplier", self.multiplier)
        return biz


@dataclass(slots=True)
class ContractLeg:
    """One leg of a combo order; fields are passed through unmodeled."""

    contract: Contract = field(default_factory=Contract)
    ratio: int = 0
    action: str = ""

    def to_biz(self) -> dict[str, object]:
        biz = self.contract.to_biz()
        if self.ratio:
            biz["ratio"] = self.ratio
        _put_if(biz, "action", self.action)
        return biz


@dataclass(slots=True)
class Order:
    """Order submission; ``total_quantity`` is always sent."""

    contract: Contract = field(default_factory=Contract)
    action: str = ""
    order_type: str = ""
    quantity: float = 0
    account: str = ""
    secret_key: str = ""
    quantity_scale: int | None = None
    limit_price: float | None = None
    aux_price: float | None = None
    trail_stop_price: float | None = None
    trailing_percent: float | None = None
    percent_offset: float | None = None
    time_in_force: str = ""
    outside_rth: bool | None = None
    adjust_limit: bool | None = None
    user_mark: str = ""
    expire_time: int | None = None
    combo_type: str = ""
    contract_legs: list[ContractLeg] = field(default_factory=list)
    cash_amount: float | None = None
    trading_session_type: str = ""
    order_id: int | None = None
    id: int | None = None
    lang: str = ""

    def to_biz(self, config: ClientConfig) -> dict[str, object]:
        biz = _identity_fields(config, self.account, self.secret_key)
        biz.update(self.contract.to_biz())
        if self.contract_legs:
            biz["contract_legs"] = [leg.to_biz() for leg in self.contract_legs]
            biz.setdefault("sec_type", "MLEG")
        _put_if(biz, "id", self.id)
        _put_if(biz, "order_id", self.order_id)
        _put_if(biz, "order_type", self.order_type)
        _put_if(biz, "action", self.action)
        biz["total_quantity"] = self.quantity
        _put_if(biz, "total_quantity_scale", self.quantity_scale)
        _put_if(biz, "limit_price", self.limit_price)
        _put_if(biz, "aux_price", self.aux_price)
        _put_if(biz, "trail_stop_price", self.trail_stop_price)
        _put_if(biz, "trailing_percent", self.trailing_percent)
        _put_if(biz, "percent_offset", self.percent_offset)
        _put_if(biz, "time_in_force", self.time_in_force)
        _put_if(biz, "outside_rth", self.outside_rth)
        _put_if(biz, "adjust_limit", self.adjust_limit)
        _put_if(biz, "user_mark", self.user_mark)
        _put_if(biz, "expire_time", self.expire_time)
        _put_if(biz, "combo_type", self.combo_type)
        _put_if(biz, "cash_amount", self.cash_amount)
        _put_if(biz, "trading_session_type", self.trading_session_type)
        return _finish(biz, config, self.lang)
