"""Tests for business-parameter builders."""

from tigeropen.requests import (
    AssetsRequest,
    CancelOrderRequest,
    Contract,
    ContractLeg,
    Order,
    PositionsRequest,
)
from tigeropen.signing import canonical_encode


def test_assets_defaults_come_from_config(client_config):
    assert AssetsRequest().to_biz(client_config) == {
        "account": "DU575569",
        "lang": "en_US",
    }


def test_assets_optional_fields(client_config):
    config = client_config.with_overrides(secret_key="S3CR3T")
    request = AssetsRequest(
        account="U1",
        segment=True,
        market_value=True,
        sub_accounts=["U1a"],
        base_currency="USD",
        consolidated=False,
        lang="zh_CN",
    )
    assert request.to_biz(config) == {
        "account": "U1",
        "secret_key": "S3CR3T",
        "segment": True,
        "market_value": True,
        "sub_accounts": ["U1a"],
        "base_currency": "USD",
        "consolidated": False,
        "lang": "zh_CN",
    }


def test_positions_right_field(client_config):
    biz = PositionsRequest(
        symbol="AAPL", sec_type="OPT", expiry="20250117", strike=150.0, put_call="CALL"
    ).to_biz(client_config)
    assert biz["right"] == "CALL"
    assert biz["strike"] == 150.0
    assert "put_call" not in biz
    assert "market" not in biz


def test_cancel_order(client_config):
    assert CancelOrderRequest(id=123).to_biz(client_config) == {
        "account": "DU575569",
        "id": 123,
        "lang": "en_US",
    }


def test_limit_order(client_config):
    order = Order(
        contract=Contract(symbol="AAPL", sec_type="STK", currency="USD"),
        action="BUY",
        order_type="LMT",
        quantity=10,
        limit_price=150.5,
        outside_rth=False,
    )
    biz = order.to_biz(client_config)
    assert biz == {
        "account": "DU575569",
        "symbol": "AAPL",
        "sec_type": "STK",
        "currency": "USD",
        "order_type": "LMT",
        "action": "BUY",
        "total_quantity": 10,
        "limit_price": 150.5,
        "outside_rth": False,
        "lang": "en_US",
    }
    assert canonical_encode(biz).startswith('{"account":"DU575569","action":"BUY"')


def test_zero_quantity_is_still_sent(client_config):
    biz = Order(order_type="MKT", action="SELL").to_biz(client_config)
    assert biz["total_quantity"] == 0


def test_combo_order_legs(client_config):
    leg = ContractLeg(
        contract=Contract(
            symbol="AAPL", sec_type="OPT", expiry="20250117", strike=150, put_call="PUT"
        ),
        ratio=1,
        action="BUY",
    )
    order = Order(
        contract=Contract(symbol="AAPL"),
        contract_legs=[leg],
        combo_type="VERTICAL",
        order_type="LMT",
        quantity=1,
        limit_price=1.2,
    )
    biz = order.to_biz(client_config)
    assert biz["sec_type"] == "MLEG"
    assert biz["combo_type"] == "VERTICAL"
    assert biz["contract_legs"] == [
        {
            "symbol": "AAPL",
            "sec_type": "OPT",
            "expiry": "20250117",
            "strike": 150,
            "right": "PUT",
            "ratio": 1,
            "action": "BUY",
        }
    ]
