"""Tests for the HTTP client using mocks to avoid real gateway calls."""

import base64
import json
import logging
from unittest.mock import MagicMock, patch

import httpx
import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from tigeropen import __version__
from tigeropen.client import TigerOpenClient
from tigeropen.config import DEFAULT_SERVER_URL, ClientConfig
from tigeropen.exceptions import (
    ApiError,
    BuildError,
    EncodeError,
    PrivateKeyError,
    TransportError,
)
from tigeropen.requests import CancelOrderRequest, Contract, Order, PositionsRequest
from tigeropen.signing import build_sign_content


def _response(payload=None, status_code=200, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload
    return response


def _mock_http(mock_client_class, response):
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    mock_client.post.return_value = response
    return mock_client


@patch("httpx.Client")
def test_get_assets_posts_signed_body(
    mock_client_class, client_config, rsa_key, fixed_clock
):
    mock_client = _mock_http(
        mock_client_class,
        _response({"code": 0, "data": {"items": [{"account": "DU575569"}]}}),
    )
    client = TigerOpenClient(client_config, clock=fixed_clock)

    result = client.get_assets()

    assert result.items[0].account == "DU575569"
    mock_client_class.assert_called_once_with(timeout=15.0)
    call = mock_client.post.call_args
    assert call.args == (DEFAULT_SERVER_URL,)
    headers = call.kwargs["headers"]
    assert headers["Content-Type"] == "application/json;charset=UTF-8"
    assert headers["User-Agent"] == f"openapi-python-sdk-{__version__}"
    assert "Authorization" not in headers

    body = json.loads(call.kwargs["content"].decode("utf-8"))
    assert body["method"] == "assets"
    assert json.loads(body["biz_content"]) == {
        "account": "DU575569",
        "lang": "en_US",
    }
    rsa_key.public_key().verify(
        base64.b64decode(body["sign"]),
        build_sign_content(body).encode("utf-8"),
        padding.PKCS1v15(),
        hashes.SHA1(),
    )


def test_injected_http_client_and_token(client_config):
    http_client = MagicMock()
    http_client.post.return_value = _response({"code": 0, "data": {"items": []}})
    client = TigerOpenClient(
        client_config.with_overrides(token="tok-1"), http_client=http_client
    )

    result = client.get_positions(PositionsRequest(symbol="AAPL"))

    assert result.items == []
    headers = http_client.post.call_args.kwargs["headers"]
    assert headers["Authorization"] == "tok-1"


@patch("httpx.Client")
def test_non_200_status_raises_transport_error(mock_client_class, client_config):
    _mock_http(mock_client_class, _response(status_code=502, text="bad gateway"))
    client = TigerOpenClient(client_config)

    with pytest.raises(TransportError) as excinfo:
        client.get_assets()
    assert excinfo.value.status_code == 502
    assert excinfo.value.body == "bad gateway"
    assert excinfo.value.stage == "transport"


@patch("httpx.Client")
def test_network_failure_raises_transport_error(mock_client_class, client_config):
    mock_client = _mock_http(mock_client_class, None)
    mock_client.post.side_effect = httpx.ConnectError("connection refused")
    client = TigerOpenClient(client_config)

    with pytest.raises(TransportError, match="connection refused"):
        client.get_assets()


@patch("httpx.Client")
def test_invalid_json_raises_transport_error(mock_client_class, client_config):
    response = _response()
    response.json.side_effect = ValueError("Expecting value")
    _mock_http(mock_client_class, response)
    client = TigerOpenClient(client_config)

    with pytest.raises(TransportError) as excinfo:
        client.get_assets()
    assert excinfo.value.stage == "response"


@patch("httpx.Client")
def test_non_zero_code_is_returned_and_logged(
    mock_client_class, client_config, caplog
):
    _mock_http(mock_client_class, _response({"code": 1010, "message": "bad account"}))
    client = TigerOpenClient(client_config)

    with caplog.at_level(logging.INFO, logger="tigeropen"):
        result = client.get_assets()

    assert not result.response.success
    assert result.response.message == "bad account"
    assert any(getattr(record, "code", None) == 1010 for record in caplog.records)


@patch("httpx.Client")
def test_place_order(mock_client_class, client_config):
    mock_client = _mock_http(
        mock_client_class, _response({"code": 0, "data": {"id": 5, "orderId": 99}})
    )
    client = TigerOpenClient(client_config)
    order = Order(
        contract=Contract(symbol="AAPL", sec_type="STK"),
        action="BUY",
        order_type="MKT",
        quantity=1,
    )

    result = client.place_order(order)

    assert result.order.order_id == 99
    body = json.loads(mock_client.post.call_args.kwargs["content"])
    assert body["method"] == "place_order"
    assert json.loads(body["biz_content"])["total_quantity"] == 1


@patch("httpx.Client")
def test_rejected_order_raises_api_error(mock_client_class, client_config):
    _mock_http(
        mock_client_class,
        _response({"code": 0, "data": {"code": "1200", "message": "insufficient"}}),
    )
    client = TigerOpenClient(client_config)

    with pytest.raises(ApiError) as excinfo:
        client.cancel_order(CancelOrderRequest(id=5))
    assert excinfo.value.code == 1200
    assert excinfo.value.result.order.message == "insufficient"


def test_construction_validates_config(pkcs1_pem):
    with pytest.raises(BuildError):
        TigerOpenClient(ClientConfig(tiger_id="", private_key=pkcs1_pem))
    with pytest.raises(PrivateKeyError):
        TigerOpenClient(ClientConfig(tiger_id="1", private_key="garbage"))


@patch("httpx.Client")
def test_local_failure_skips_network(mock_client_class, client_config):
    client = TigerOpenClient(client_config)
    with pytest.raises(EncodeError):
        client.build_envelope("assets", {"price": float("nan")})
    mock_client_class.assert_not_called()
