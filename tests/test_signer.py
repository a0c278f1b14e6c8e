"""Tests for RSA key loading and signing."""

import base64

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding

from tigeropen.exceptions import PrivateKeyError, SignError
from tigeropen.signing.signer import (
    RsaSigner,
    load_private_key,
    load_public_key,
    sign,
    verify_signature,
)


@pytest.mark.parametrize(
    "fixture_name", ["pkcs1_pem", "pkcs8_pem", "bare_pkcs1", "bare_pkcs8"]
)
def test_load_private_key_forms(request, rsa_key, fixture_name):
    material = request.getfixturevalue(fixture_name)
    key = load_private_key(material)
    assert key.private_numbers() == rsa_key.private_numbers()


def test_load_private_key_escaped_newlines_and_bytes(rsa_key, pkcs1_pem):
    escaped = pkcs1_pem.replace("\n", "\\n")
    assert load_private_key(escaped).private_numbers() == rsa_key.private_numbers()
    loaded = load_private_key(pkcs1_pem.encode("ascii"))
    assert loaded.private_numbers() == rsa_key.private_numbers()


@pytest.mark.parametrize("material", ["", "   ", "not a key", "-----BEGIN junk"])
def test_load_private_key_invalid(material):
    with pytest.raises(PrivateKeyError) as excinfo:
        load_private_key(material)
    assert excinfo.value.stage == "key"


def test_load_private_key_rejects_non_rsa():
    ec_pem = ec.generate_private_key(ec.SECP256R1()).private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    with pytest.raises(PrivateKeyError, match="not RSA"):
        load_private_key(ec_pem)


def test_sign_is_sha1_pkcs1v15(rsa_key):
    data = "method=assets&ts=1"
    signature = sign(rsa_key, data)
    raw = base64.b64decode(signature)
    assert len(raw) == rsa_key.key_size // 8
    # Raises InvalidSignature on mismatch
    rsa_key.public_key().verify(
        raw, data.encode("utf-8"), padding.PKCS1v15(), hashes.SHA1()
    )
    assert sign(rsa_key, data.encode("utf-8")) == signature


def test_sign_with_unusable_key():
    with pytest.raises(SignError) as excinfo:
        sign(object(), "data")
    assert excinfo.value.stage == "sign"


def test_verify_signature(rsa_key):
    signature = sign(rsa_key, "payload")
    public_key = rsa_key.public_key()
    assert verify_signature(public_key, "payload", signature)
    assert not verify_signature(public_key, "payload2", signature)
    assert not verify_signature(public_key, "payload", "!!not-base64!!")


def test_load_public_key(rsa_key):
    pem = rsa_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    der = rsa_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    expected = rsa_key.public_key().public_numbers()
    assert load_public_key(pem).public_numbers() == expected
    bare = base64.b64encode(der).decode("ascii")
    assert load_public_key(bare).public_numbers() == expected
    with pytest.raises(PrivateKeyError):
        load_public_key("")


def test_rsa_signer(rsa_key, bare_pkcs8):
    signer = RsaSigner(bare_pkcs8)
    assert signer.algorithm == "RSA"
    signature = signer.sign("hello")
    assert signer.verify("hello", signature)
    assert RsaSigner(rsa_key).sign("hello") == signature
