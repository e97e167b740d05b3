"""Typed decoding of reduced expressions into Python values.

``Decoder`` exposes one request per data shape (primitive, sequence, tuple,
map, record, tagged tuple, tagged enum). ``Decoder.decode_as`` looks at the
target type, issues the matching request and builds the Python value from
what the request hands back.
"""

from __future__ import annotations

import dataclasses
import enum
import types
from collections import abc
from typing import Any, Dict, List, Sequence, Tuple as Pair, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from .errors import (
    DecodeError,
    ExpectedEnum,
    ExpectedMap,
    ExpectedNamedTuple,
    ExpectedOption,
    ExpectedSequence,
    ExpectedStruct,
    ExpectedTuple,
    ExpectedUnit,
    InvalidType,
    MissingField,
    UnknownVariant,
    UnsupportedTarget,
    Unevaluated,
    WrongName,
    WrongTupleLength,
)
from . import nodes
from .nodes import Expr, Field, kind_name, needs_evaluation, render

T = TypeVar("T")

_SEQUENCE_ORIGINS = (list, abc.Sequence, abc.MutableSequence, abc.Iterable, abc.Collection)
_MAPPING_ORIGINS = (dict, abc.Mapping, abc.MutableMapping)


class Character(str):
    """Decode target that asks for the char kind rather than text."""


def _is_named_tuple_class(target: Any) -> bool:
    return isinstance(target, type) and issubclass(target, tuple) and hasattr(target, "_fields")


def _is_union(target: Any) -> bool:
    origin = get_origin(target)
    return origin is Union or origin is types.UnionType


class VariantAccess:
    """Content of one enum variant, requested in the shape the variant declares."""

    def __init__(self, decoder: Decoder):
        self.decoder = decoder

    @property
    def expr(self) -> Expr:
        return self.decoder.expr

    def unit_variant(self) -> None:
        match self.expr:
            case nodes.NamedTuple(_, []):
                return None
        raise self.decoder.fail(ExpectedEnum(kind_name(self.expr)))

    def newtype_variant(self) -> Expr:
        match self.expr:
            case nodes.NamedTuple(_, [item]):
                return item
            case nodes.NamedTuple(_, items):
                raise self.decoder.fail(WrongTupleLength(1, len(items)))
        raise self.decoder.fail(ExpectedNamedTuple(kind_name(self.expr)))

    def tuple_variant(self, length: int) -> List[Expr]:
        match self.expr:
            case nodes.NamedTuple(_, items) if len(items) == length:
                return items
            case nodes.NamedTuple(_, items):
                raise self.decoder.fail(WrongTupleLength(length, len(items)))
        raise self.decoder.fail(ExpectedNamedTuple(kind_name(self.expr)))

    def struct_variant(self) -> Dict[str, Expr]:
        match self.expr:
            case nodes.Struct(_, fields):
                return {f.name: f.value for f in fields}
        raise self.decoder.fail(ExpectedStruct(kind_name(self.expr)))


class Decoder:
    def __init__(self, expr: Expr):
        self.expr = expr

    def fail(self, exc: DecodeError) -> DecodeError:
        exc.attach(self.expr.pos)
        return exc

    def _child(self, expr: Expr) -> Decoder:
        return Decoder(expr)

    # ---------- shape requests ----------

    def decode_bool(self) -> bool:
        if isinstance(self.expr, nodes.Bool):
            return self.expr.value
        raise self.fail(InvalidType("bool", kind_name(self.expr)))

    def decode_int(self) -> int:
        if isinstance(self.expr, nodes.Int):
            return self.expr.value
        raise self.fail(InvalidType("int", kind_name(self.expr)))

    def decode_float(self) -> float:
        match self.expr:
            case nodes.Float(value):
                return value
            case nodes.Int(value):
                return float(value)
        raise self.fail(InvalidType("float", kind_name(self.expr)))

    def decode_str(self) -> str:
        match self.expr:
            case nodes.String(value) | nodes.Char(value):
                return value
        raise self.fail(InvalidType("string", kind_name(self.expr)))

    def decode_char(self) -> Character:
        if isinstance(self.expr, nodes.Char):
            return Character(self.expr.value)
        raise self.fail(InvalidType("char", kind_name(self.expr)))

    def decode_unit(self) -> None:
        if isinstance(self.expr, nodes.Unit):
            return None
        raise self.fail(ExpectedUnit(kind_name(self.expr)))

    def decode_option(self) -> Expr | None:
        if isinstance(self.expr, nodes.Option):
            return self.expr.value
        raise self.fail(ExpectedOption(kind_name(self.expr)))

    def decode_seq(self) -> List[Expr]:
        match self.expr:
            case nodes.Array(items) | nodes.Tuple(items) | nodes.NamedTuple(_, items):
                return items
        raise self.fail(ExpectedSequence(kind_name(self.expr)))

    def decode_tuple(self, length: int) -> List[Expr]:
        match self.expr:
            case nodes.Tuple(items) | nodes.Array(items):
                if len(items) != length:
                    raise self.fail(WrongTupleLength(length, len(items)))
                return items
            case nodes.Unit() if length == 0:
                return []
        raise self.fail(ExpectedTuple(kind_name(self.expr)))

    def decode_map(self) -> List[Field]:
        if isinstance(self.expr, nodes.Object):
            return self.expr.fields
        raise self.fail(ExpectedMap(kind_name(self.expr)))

    def decode_struct(self, name: str) -> Dict[str, Expr]:
        match self.expr:
            case nodes.Struct(found, fields):
                if found != name:
                    raise self.fail(WrongName(name, found))
                return {f.name: f.value for f in fields}
        raise self.fail(ExpectedStruct(kind_name(self.expr)))

    def _decode_named(self, name: str, length: int) -> List[Expr]:
        match self.expr:
            case nodes.NamedTuple(found, items):
                if found != name:
                    raise self.fail(WrongName(name, found))
                if len(items) != length:
                    raise self.fail(WrongTupleLength(length, len(items)))
                return items
        raise self.fail(ExpectedNamedTuple(kind_name(self.expr)))

    def decode_unit_struct(self, name: str) -> None:
        self._decode_named(name, 0)

    def decode_newtype_struct(self, name: str) -> Expr:
        return self._decode_named(name, 1)[0]

    def decode_tuple_struct(self, name: str, length: int) -> List[Expr]:
        return self._decode_named(name, length)

    def decode_enum(self, variants: Sequence[str]) -> Pair[str, VariantAccess]:
        match self.expr:
            case nodes.NamedTuple(tag, _) | nodes.Struct(tag, _):
                if tag not in variants:
                    raise self.fail(UnknownVariant(tag, variants))
                return tag, VariantAccess(self)
        raise self.fail(ExpectedEnum(kind_name(self.expr)))

    # ---------- target driven decoding ----------

    def decode_any(self) -> Any:
        match self.expr:
            case nodes.Float(v) | nodes.Int(v) | nodes.Bool(v) | nodes.String(v):
                return v
            case nodes.Char(v):
                return Character(v)
            case nodes.Unit():
                return None
            case nodes.Option(None):
                return None
            case nodes.Option(inner):
                return self._child(inner).decode_any()
            case nodes.Array(items):
                return [self._child(item).decode_any() for item in items]
            case nodes.Tuple(items):
                return tuple(self._child(item).decode_any() for item in items)
            case nodes.Object(fields):
                return {f.name: self._child(f.value).decode_any() for f in fields}
        raise self.fail(InvalidType("untagged value", kind_name(self.expr)))

    def decode_as(self, target: Any) -> Any:
        if target is Any or target is object:
            return self.decode_any()
        if target is None or target is type(None):
            return self.decode_unit()
        if _is_union(target):
            return self._decode_union(target)

        origin = get_origin(target)
        if origin is not None:
            return self._decode_generic(origin, get_args(target), target)

        if target is bool:
            return self.decode_bool()
        if target is int:
            return self.decode_int()
        if target is float:
            return self.decode_float()
        if target is Character:
            return self.decode_char()
        if target is str:
            return self.decode_str()
        if target in (list, tuple, dict):
            return self._decode_generic(target, (), target)
        if isinstance(target, type) and issubclass(target, enum.Enum):
            return self._decode_enum_class(target)
        if dataclasses.is_dataclass(target) and isinstance(target, type):
            return self._decode_dataclass(target, self.decode_struct(target.__name__))
        if _is_named_tuple_class(target):
            return self._decode_named_tuple(target)

        raise self.fail(UnsupportedTarget(target))

    def _decode_generic(self, origin: Any, args: Pair[Any, ...], target: Any) -> Any:
        if origin in _SEQUENCE_ORIGINS:
            item_type = args[0] if args else Any
            return [self._child(item).decode_as(item_type) for item in self.decode_seq()]

        if origin is tuple:
            if (not args and target in (tuple, Pair)) or (len(args) == 2 and args[1] is Ellipsis):
                item_type = args[0] if args else Any
                return tuple(self._child(item).decode_as(item_type) for item in self.decode_seq())
            if args == ((),):
                args = ()
            items = self.decode_tuple(len(args))
            return tuple(self._child(item).decode_as(t) for item, t in zip(items, args))

        if origin in _MAPPING_ORIGINS:
            key_type, value_type = args if args else (str, Any)
            if key_type not in (str, Any):
                raise self.fail(UnsupportedTarget(target))
            return {f.name: self._child(f.value).decode_as(value_type) for f in self.decode_map()}

        raise self.fail(UnsupportedTarget(target))

    def _decode_union(self, target: Any) -> Any:
        args = get_args(target)
        rest = tuple(a for a in args if a is not type(None))

        if len(rest) != len(args):
            inner = self.decode_option()
            if inner is None:
                return None
            inner_target = rest[0] if len(rest) == 1 else Union[rest]
            return self._child(inner).decode_as(inner_target)

        return self._decode_tagged_union(rest, target)

    def _decode_tagged_union(self, classes: Pair[Any, ...], target: Any) -> Any:
        by_name: Dict[str, Type[Any]] = {}

        for cls in classes:
            if not (dataclasses.is_dataclass(cls) or _is_named_tuple_class(cls)):
                raise self.fail(UnsupportedTarget(target))
            by_name[cls.__name__] = cls

        tag, variant = self.decode_enum(list(by_name))
        cls = by_name[tag]

        if dataclasses.is_dataclass(cls):
            return self._decode_dataclass(cls, variant.struct_variant())

        hints = get_type_hints(cls)
        match len(cls._fields):
            case 0:
                variant.unit_variant()
                return cls()
            case 1:
                inner = variant.newtype_variant()
                return cls(self._child(inner).decode_as(hints.get(cls._fields[0], Any)))
            case n:
                items = variant.tuple_variant(n)
                return cls(*(self._child(item).decode_as(hints.get(name, Any))
                             for item, name in zip(items, cls._fields)))

    def _decode_enum_class(self, target: Type[enum.Enum]) -> enum.Enum:
        tag, variant = self.decode_enum([member.name for member in target])
        variant.unit_variant()

        return target[tag]

    def _decode_dataclass(self, cls: Type[T], stored: Dict[str, Expr]) -> T:
        hints = get_type_hints(cls)
        kwargs: Dict[str, Any] = {}

        for f in dataclasses.fields(cls):
            if not f.init:
                continue
            if f.name in stored:
                kwargs[f.name] = self._child(stored[f.name]).decode_as(hints.get(f.name, Any))
            elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise self.fail(MissingField(f.name))

        return cls(**kwargs)

    def _decode_named_tuple(self, cls: Any) -> Any:
        hints = get_type_hints(cls)
        fields = cls._fields

        match len(fields):
            case 0:
                self.decode_unit_struct(cls.__name__)
                return cls()
            case 1:
                inner = self.decode_newtype_struct(cls.__name__)
                return cls(self._child(inner).decode_as(hints.get(fields[0], Any)))
            case n:
                items = self.decode_tuple_struct(cls.__name__, n)
                return cls(*(self._child(item).decode_as(hints.get(name, Any))
                             for item, name in zip(items, fields)))


def decode(expr: Expr, target: Any = Any) -> Any:
    """Decode the reduced expression *expr* into *target*.

    Raises ``Unevaluated`` when *expr* still holds identifiers, operators,
    calls or control constructs.
    """
    if needs_evaluation(expr):
        exc = Unevaluated(render(expr))
        exc.attach(expr.pos)
        raise exc

    return Decoder(expr).decode_as(target)
