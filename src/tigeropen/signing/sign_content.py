"""Build the string that is actually signed for a gateway request."""

from __future__ import annotations

from collections.abc import Mapping

from tigeropen.exceptions import BuildError, EncodeError
from tigeropen.signing.canonicalize import EncodeMode, canonical_encode, nest_field

__all__ = ["SIGN_FIELD", "build_sign_content"]

SIGN_FIELD = "sign"


def build_sign_content(params: Mapping[str, object] | None) -> str:
    """Flatten envelope parameters into ``k1=v1&k2=v2`` sorted by name.

    String values are written verbatim, without quoting or escaping. Every
    other value is rendered with the spaced canonical encoding. The ``sign``
    field itself is never part of the signed content.

    Raises:
        BuildError: If ``params`` is ``None`` or has a non-string key.
        EncodeError: If a value cannot be encoded.
    """

    if params is None:
        raise BuildError("parameter mapping is required", stage="sign_content")
    for key in params:
        if not isinstance(key, str):
            raise BuildError(
                f"parameter name {key!r} is not a string", stage="sign_content"
            )

    pairs: list[str] = []
    for key in sorted(params):
        if key == SIGN_FIELD:
            continue
        value = params[key]
        if isinstance(value, str):
            rendered = value
        else:
            try:
                rendered = canonical_encode(value, EncodeMode.SPACED)
            except EncodeError as exc:
                raise EncodeError(
                    exc.message, stage="sign_content", field=nest_field(key, exc.field)
                ) from exc
        pairs.append(f"{key}={rendered}")
    return "&".join(pairs)
