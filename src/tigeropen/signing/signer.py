"""RSA signing for gateway requests.

The gateway verifies ``SHA1withRSA`` signatures (RSASSA-PKCS1-v1_5 over a
SHA-1 digest). The digest algorithm is fixed by the counterparty; a stronger
hash would not verify on the server side.

Provides:
- load_private_key(material): parse PEM or bare base64 key material
- sign(private_key, data): base64 signature over ``data``
- verify_signature(public_key, data, signature): counterpart check
- RsaSigner(material): signer holding a key parsed once at construction
"""

from __future__ import annotations

import base64
import binascii
import logging

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from tigeropen.exceptions import PrivateKeyError, SignError

logger = logging.getLogger(__name__)

__all__ = [
    "RsaSigner",
    "load_private_key",
    "load_public_key",
    "sign",
    "verify_signature",
]

_PEM_MARKER = "-----BEGIN"


def _normalize_material(material: str) -> str:
    # Keys copied out of env files often carry escaped newlines.
    return material.replace("\\n", "\n").strip()


def _decode_bare_base64(material: str) -> bytes:
    compact = "".join(material.split())
    return base64.b64decode(compact, validate=True)


def load_private_key(material: str | bytes) -> RSAPrivateKey:
    """Parse RSA private key material.

    Accepts a PEM block (``RSA PRIVATE KEY`` or ``PRIVATE KEY``) or the bare
    base64 body of either encoding without PEM framing.

    Raises:
        PrivateKeyError: If the material is empty, unparsable, or not RSA.
    """

    if isinstance(material, bytes):
        material = material.decode("utf-8", errors="replace")
    text = _normalize_material(material or "")
    if not text:
        raise PrivateKeyError("private key is required", stage="key")

    try:
        if _PEM_MARKER in text:
            key = serialization.load_pem_private_key(
                text.encode("ascii"), password=None
            )
        else:
            key = serialization.load_der_private_key(
                _decode_bare_base64(text), password=None
            )
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise PrivateKeyError("unable to parse private key", stage="key") from exc

    if not isinstance(key, RSAPrivateKey):
        raise PrivateKeyError(
            f"private key is not RSA ({type(key).__name__})", stage="key"
        )
    return key


def load_public_key(material: str | bytes) -> RSAPublicKey:
    """Parse an RSA public key given as PEM or bare base64 DER.

    Raises:
        PrivateKeyError: If the material does not describe an RSA public key.
    """

    if isinstance(material, bytes):
        material = material.decode("utf-8", errors="replace")
    text = _normalize_material(material or "")
    if not text:
        raise PrivateKeyError("public key is required", stage="key")
    try:
        if _PEM_MARKER in text:
            key = serialization.load_pem_public_key(text.encode("ascii"))
        else:
            key = serialization.load_der_public_key(_decode_bare_base64(text))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise PrivateKeyError("unable to parse public key", stage="key") from exc
    if not isinstance(key, RSAPublicKey):
        raise PrivateKeyError(
            f"public key is not RSA ({type(key).__name__})", stage="key"
        )
    return key


def _as_bytes(data: bytes | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def sign(private_key: RSAPrivateKey, data: bytes | str) -> str:
    """Return the base64 ``SHA1withRSA`` signature of ``data``.

    Strings are signed as their UTF-8 bytes.

    Raises:
        SignError: If the key cannot produce a signature.
    """

    try:
        signature = private_key.sign(
            _as_bytes(data), padding.PKCS1v15(), hashes.SHA1()
        )
    except (AttributeError, TypeError, ValueError, UnsupportedAlgorithm) as exc:
        raise SignError("unable to sign content", stage="sign") from exc
    return base64.b64encode(signature).decode("ascii")


def verify_signature(
    public_key: RSAPublicKey, data: bytes | str, signature_b64: str
) -> bool:
    """Return ``True`` when ``signature_b64`` is valid for ``data``."""

    try:
        signature = base64.b64decode(signature_b64, validate=True)
    except (binascii.Error, ValueError):
        return False
    try:
        public_key.verify(
            signature, _as_bytes(data), padding.PKCS1v15(), hashes.SHA1()
        )
    except InvalidSignature:
        return False
    return True


class RsaSigner:
    """
    Signer bound to one RSA private key.

    The key is parsed once, when the signer is created, and is read-only
    afterwards; a single instance may be shared across threads.

    Args:
    ----
        private_key: PEM or bare base64 key material, or an already parsed
            :class:`RSAPrivateKey`.

    Attributes:
    ----------
        algorithm: Always ``"RSA"``, the ``sign_type`` tag sent to the gateway.

    """

    algorithm = "RSA"

    def __init__(self, private_key: str | bytes | RSAPrivateKey) -> None:
        """Parse and keep the private key."""
        if isinstance(private_key, RSAPrivateKey):
            self._key = private_key
        else:
            self._key = load_private_key(private_key)
        logger.debug(
            "Loaded RSA signing key",
            extra={"key_size": self._key.key_size},
        )

    @property
    def public_key(self) -> RSAPublicKey:
        """Public half of the signing key."""
        return self._key.public_key()

    def sign(self, data: bytes | str) -> str:
        """Return the base64 signature of ``data``."""
        return sign(self._key, data)

    def verify(self, data: bytes | str, signature_b64: str) -> bool:
        """Check a signature produced by this signer."""
        return verify_signature(self.public_key, data, signature_b64)
