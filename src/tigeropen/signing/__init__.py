"""
Canonicalization and signing core for gateway requests.

These helpers are pure: no I/O, no shared mutable state. Only the parsed
private key inside :class:`RsaSigner` is shared, read-only.
"""

from .canonicalize import (
    EncodeMode,
    ParameterValue,
    canonical_encode,
    to_parameter_value,
)
from .envelope import EnvelopeAssembler, SignedEnvelope, assemble_envelope
from .sign_content import build_sign_content
from .signer import (
    RsaSigner,
    load_private_key,
    load_public_key,
    sign,
    verify_signature,
)

__all__ = [
    "EncodeMode",
    "EnvelopeAssembler",
    "ParameterValue",
    "RsaSigner",
    "SignedEnvelope",
    "assemble_envelope",
    "build_sign_content",
    "canonical_encode",
    "load_private_key",
    "load_public_key",
    "sign",
    "to_parameter_value",
    "verify_signature",
]
