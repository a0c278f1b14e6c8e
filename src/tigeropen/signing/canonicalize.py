"""Deterministic JSON canonicalization for signed gateway requests.

The gateway recomputes the signature from the exact text it receives, so the
encoding is part of the wire protocol: keys sorted, no forced ``\\uXXXX``
escaping of non-ASCII text, and one of two fixed separator conventions.

* :attr:`EncodeMode.COMPACT` - ``{"a":1,"b":2}``; used for ``biz_content``
  and the request body.
* :attr:`EncodeMode.SPACED` - ``{"a": 1, "b": 2}``; used when a non-string
  value is rendered into the sign content string.

Both modes share one traversal. Separators are emitted structurally by the
encoder, so text inside string literals (including escaped quotes) is never
altered.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Final, TypeAlias, Union

from tigeropen.exceptions import EncodeError

__all__ = [
    "EncodeMode",
    "ParameterValue",
    "canonical_encode",
    "nest_field",
    "to_parameter_value",
]

ParameterValue: TypeAlias = Union[
    None,
    bool,
    int,
    float,
    str,
    list["ParameterValue"],
    dict[str, "ParameterValue"],
]


class EncodeMode(str, Enum):
    """Separator convention applied by :func:`canonical_encode`."""

    COMPACT = "compact"
    SPACED = "spaced"


_SEPARATORS: Final[dict[EncodeMode, tuple[str, str]]] = {
    EncodeMode.COMPACT: (",", ":"),
    EncodeMode.SPACED: (", ", ": "),
}


def to_parameter_value(value: object, path: str = "") -> ParameterValue:
    """Normalize ``value`` into the :data:`ParameterValue` union.

    Tuples and other non-string sequences become lists, mappings become dicts
    and subclasses of the scalar types (``IntEnum``, ``StrEnum`` and so on) are
    reduced to their plain base type.

    Args:
        value: Arbitrary Python object supplied by a caller.
        path: Location of ``value`` inside the enclosing payload, used in
            error messages (``contract_legs[0].strike``).

    Returns:
        An equivalent value built only from the union members.

    Raises:
        EncodeError: If ``value`` (or anything nested in it) is a non-finite
            float, a mapping with non-string keys, a container that contains
            itself, or a type outside the union.
    """

    return _normalize(value, path, set())


def _normalize(value: object, path: str, active: set[int]) -> ParameterValue:
    match value:
        case None:
            return None
        case bool():
            return bool(value)
        case str():
            return _check_text(str.__str__(value), path)
        case int():
            return int(value)
        case float():
            if not math.isfinite(value):
                raise EncodeError(
                    f"non-finite float {value!r} is not representable",
                    field=path or None,
                )
            return float(value)
        case Mapping():
            _enter(value, path, active)
            normalized: dict[str, ParameterValue] = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise EncodeError(
                        f"mapping key {key!r} is not a string", field=path or None
                    )
                key_text = _check_text(str.__str__(key), path)
                normalized[key_text] = _normalize(
                    item, nest_field(path, key_text), active
                )
            active.discard(id(value))
            return normalized
        case bytes() | bytearray() | memoryview():
            raise EncodeError(
                f"binary value of type {type(value).__name__} is not representable",
                field=path or None,
            )
        case Sequence():
            _enter(value, path, active)
            items = [
                _normalize(item, f"{path}[{index}]", active)
                for index, item in enumerate(value)
            ]
            active.discard(id(value))
            return items
        case _:
            raise EncodeError(
                f"value of type {type(value).__name__} is not representable",
                field=path or None,
            )


def canonical_encode(value: object, mode: EncodeMode | str = EncodeMode.COMPACT) -> str:
    """Return the canonical JSON text for ``value``.

    Args:
        value: Payload to encode. It is normalized with
            :func:`to_parameter_value` first.
        mode: Separator convention, see :class:`EncodeMode`.

    Returns:
        Deterministic JSON text with sorted keys.

    Raises:
        EncodeError: If the payload is not representable.
    """

    try:
        separators = _SEPARATORS[EncodeMode(mode)]
    except ValueError as exc:
        raise EncodeError(f"unknown encode mode {mode!r}") from exc
    try:
        normalized = to_parameter_value(value)
    except RecursionError as exc:
        raise EncodeError("value is nested too deeply") from exc
    try:
        return json.dumps(
            normalized,
            sort_keys=True,
            ensure_ascii=False,
            allow_nan=False,
            separators=separators,
        )
    except (TypeError, ValueError, RecursionError) as exc:  # pragma: no cover
        raise EncodeError(str(exc)) from exc


def _enter(container: object, path: str, active: set[int]) -> None:
    """Track ``container`` while its items are walked; a repeat is a cycle."""

    marker = id(container)
    if marker in active:
        raise EncodeError("circular reference", field=path or None)
    active.add(marker)


def _check_text(text: str, path: str) -> str:
    """Reject strings that cannot be transmitted as UTF-8 (lone surrogates)."""

    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodeError(
            "string is not valid unicode text", field=path or None
        ) from exc
    return text


def nest_field(parent: str, child: str | None) -> str:
    """Join a parent field name with a nested path reported by an error."""

    if not child:
        return parent
    if not parent:
        return child
    if child.startswith("["):
        return f"{parent}{child}"
    return f"{parent}.{child}"
