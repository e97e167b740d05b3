"""Build expressions from Python values.

Compound values are assembled by trackers: each collects its elements one at a
time in insertion order and yields the matching expression from ``finish``.
"""

from __future__ import annotations

import dataclasses
import enum
import types
from typing import Any, List, Optional, Union, get_args, get_origin, get_type_hints

from .decode import Character
from .errors import EncodeError
from .nodes import (
    Array, Bool, Char, Expr, Field, Float, Int, NamedTuple, Node, Object, Option, String, Struct,
    Tuple, Unit, needs_evaluation,
)
from .utils import I32_MAX, I32_MIN


class SeqTracker:
    def __init__(self) -> None:
        self.items: List[Expr] = []

    def push(self, item: Expr) -> None:
        self.items.append(item)

    def finish(self) -> Expr:
        return Array(self.items)


class TupleTracker(SeqTracker):
    def finish(self) -> Expr:
        return Tuple(self.items)


class TupleStructTracker(SeqTracker):
    def __init__(self, name: str) -> None:
        super().__init__()
        self.name = name

    def finish(self) -> Expr:
        return NamedTuple(self.name, self.items)


class MapTracker:
    def __init__(self) -> None:
        self.fields: List[Field] = []

    def push(self, key: Expr, value: Expr) -> None:
        if not isinstance(key, String):
            raise EncodeError(f"Map keys must encode to strings, got {type(key).__name__}")
        self.fields.append(Field(key.value, value))

    def finish(self) -> Expr:
        return Object(self.fields)


class StructTracker:
    def __init__(self, name: str) -> None:
        self.name = name
        self.fields: List[Field] = []

    def push(self, name: str, value: Expr) -> None:
        self.fields.append(Field(name, value))

    def finish(self) -> Expr:
        return Struct(self.name, self.fields)


def _is_optional(hint: Any) -> bool:
    origin = get_origin(hint)
    if origin is not Union and origin is not types.UnionType:
        return False

    return type(None) in get_args(hint)


def encode(value: Any, hint: Optional[Any] = None) -> Expr:
    """Encode *value*; *hint* is the declared type, if known.

    ``None`` is the absent optional. A value whose hint is ``Optional[...]``
    is wrapped as a present optional.
    """
    if value is not None and hint is not None and _is_optional(hint):
        inner = [a for a in get_args(hint) if a is not type(None)]
        return Option(encode(value, inner[0] if len(inner) == 1 else None))

    match value:
        case None:
            return Option(None)
        case Node() if not needs_evaluation(value):
            return value
        case Node():
            raise EncodeError(f"Cannot encode unevaluated {type(value).__name__}")
        case bool():
            return Bool(value)
        case enum.Enum():
            return NamedTuple(value.name, [])
        case int():
            if not I32_MIN <= value <= I32_MAX:
                raise EncodeError(f"Integer {value} does not fit in 32 bits")
            return Int(value)
        case float():
            return Float(value)
        case Character():
            return Char(str(value))
        case str():
            return String(value)

    if type(value) is tuple and not value:
        return Unit()

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _encode_dataclass(value)

    if isinstance(value, tuple) and hasattr(value, "_fields"):
        tracker: SeqTracker = TupleStructTracker(type(value).__name__)
        hints = get_type_hints(type(value))
        for name, item in zip(value._fields, value):
            tracker.push(encode(item, hints.get(name)))
        return tracker.finish()

    if isinstance(value, tuple):
        tracker = TupleTracker()
        for item in value:
            tracker.push(encode(item))
        return tracker.finish()

    if isinstance(value, list):
        tracker = SeqTracker()
        for item in value:
            tracker.push(encode(item))
        return tracker.finish()

    if isinstance(value, dict):
        mapping = MapTracker()
        for key, item in value.items():
            mapping.push(encode(key), encode(item))
        return mapping.finish()

    raise EncodeError(f"Cannot encode value of type {type(value).__name__}")


def _encode_dataclass(value: Any) -> Expr:
    tracker = StructTracker(type(value).__name__)
    hints = get_type_hints(type(value))

    for f in dataclasses.fields(value):
        tracker.push(f.name, encode(getattr(value, f.name), hints.get(f.name)))

    return tracker.finish()
