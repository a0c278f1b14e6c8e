"""Tiger OpenAPI - signed request construction and a minimal trading client."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "EncodeMode",
    "SignedEnvelope",
    "TigerOpenClient",
    "assemble_envelope",
    "build_sign_content",
    "canonical_encode",
    "sign",
]

if TYPE_CHECKING:
    from .client import TigerOpenClient
    from .config import ClientConfig
    from .signing import (
        EncodeMode,
        SignedEnvelope,
        assemble_envelope,
        build_sign_content,
        canonical_encode,
        sign,
    )


def __getattr__(name: str) -> Any:
    """Lazily import modules so the signing core loads without httpx."""

    module_map = {
        "ClientConfig": "config",
        "EncodeMode": "signing",
        "SignedEnvelope": "signing",
        "TigerOpenClient": "client",
        "assemble_envelope": "signing",
        "build_sign_content": "signing",
        "canonical_encode": "signing",
        "sign": "signing",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
