"""Typed decoding of query parameters and request bodies.

Populates ``dict`` or dataclass targets from already-parsed request
data, converting values to the annotated field types. Used by
``Context.body_parser`` and ``Context.query_parser``.

Conversion is strict: a value that cannot become the annotated type
raises ``DecodeError`` (400) naming the field. Missing keys fall back
to the field default; a missing field without a default is an error.

Supported field types: ``str``, ``int``, ``float``, ``bool``,
``list[...]`` of those, ``X | None``, and ``Any``.
"""

from __future__ import annotations

import dataclasses
import re
import types
import typing
from collections.abc import Mapping
from typing import Any

from sprig._internal.multimap import MultiValueMapping
from sprig.errors import DecodeError

_INT = re.compile(r"[+-]?[0-9]+")
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off", ""})


class _Mismatch(Exception):  # noqa: N818
    """Internal: a single value could not be converted."""


def is_decodable_dataclass(target: Any) -> bool:
    """Return True if *target* is a dataclass type (not an instance)."""
    return isinstance(target, type) and dataclasses.is_dataclass(target)


def decode_into[T](target: type[T], data: Mapping[str, Any]) -> T:
    """Build a *target* instance from *data*.

    ``dict`` targets receive a plain copy of *data* (first value per key
    for query strings). Dataclass targets are filled field by field.

    Raises ``DecodeError`` on conversion failure, ``TypeError`` for a
    target that is neither ``dict`` nor a dataclass.
    """
    if target is dict:
        if isinstance(data, MultiValueMapping):
            return typing.cast(T, {key: data[key] for key in data})
        return typing.cast(T, dict(data))

    if not is_decodable_dataclass(target):
        msg = f"Cannot decode into {target!r}: expected dict or a dataclass type"
        raise TypeError(msg)

    hints = typing.get_type_hints(target)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(target):  # type: ignore[arg-type]
        if not f.init or f.name not in data:
            continue
        annotation = hints.get(f.name, Any)
        if isinstance(data, MultiValueMapping) and _is_list(annotation):
            raw: Any = data.get_list(f.name)
        else:
            raw = data[f.name]
        try:
            kwargs[f.name] = _convert(raw, annotation)
        except _Mismatch as exc:
            msg = f"Field {f.name!r}: {exc}"
            raise DecodeError(msg) from None

    try:
        return target(**kwargs)
    except TypeError as exc:
        # Required field absent from the payload
        raise DecodeError(str(exc)) from None


def _is_list(annotation: Any) -> bool:
    if annotation is list:
        return True
    return typing.get_origin(annotation) is list


def _convert(value: Any, annotation: Any) -> Any:
    """Convert *value* to *annotation*; raise ``_Mismatch`` on failure."""
    if annotation is Any:
        return value

    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        options = typing.get_args(annotation)
        if value is None and type(None) in options:
            return None
        for option in options:
            if option is type(None):
                continue
            try:
                return _convert(value, option)
            except _Mismatch:
                continue
        raise _Mismatch(f"{value!r} does not match {annotation}")

    if annotation is list or origin is list:
        args = typing.get_args(annotation)
        item_type = args[0] if args else Any
        items = value if isinstance(value, list) else [value]
        return [_convert(item, item_type) for item in items]

    if annotation is str:
        if isinstance(value, str):
            return value
        raise _Mismatch(f"expected a string, got {value!r}")

    if annotation is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in _TRUE:
            return True
        if isinstance(value, str) and value.lower() in _FALSE:
            return False
        raise _Mismatch(f"expected a boolean, got {value!r}")

    if annotation is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and _INT.fullmatch(value):
            return int(value)
        raise _Mismatch(f"expected an integer, got {value!r}")

    if annotation is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                pass
        raise _Mismatch(f"expected a number, got {value!r}")

    # Unknown annotation: keep the decoded value as is
    return value
