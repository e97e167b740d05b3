from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import NamedTuple, Optional

import pytest

from libretto import Character, EncodeError, Scope, bind, decode, encode, eval_expr
from libretto.encode import MapTracker, SeqTracker, StructTracker, TupleStructTracker
from libretto.nodes import (
    Array, BinOp, Bool, Char, Field, Float, Ident, Int, NamedTuple as TaggedTuple, Object,
    Option, String, Struct, Tuple, Unit,
)


@dataclass
class Point:
    x: int
    y: int
    name: str


@dataclass
class Limits:
    low: int
    high: Optional[int] = None


class Mode(enum.Enum):
    Fast = "fast"
    Slow = "slow"


class Pair(NamedTuple):
    a: int
    b: Optional[str]


@pytest.mark.parametrize(
    "value, expected",
    [
        pytest.param(5, Int(5), id="int"),
        pytest.param(True, Bool(True), id="bool-before-int"),
        pytest.param(2.5, Float(2.5), id="float"),
        pytest.param("s", String("s"), id="str"),
        pytest.param(Character("c"), Char("c"), id="char"),
        pytest.param(None, Option(None), id="none"),
        pytest.param((), Unit(), id="unit"),
        pytest.param((1, "a"), Tuple([Int(1), String("a")]), id="tuple"),
        pytest.param([1, 2], Array([Int(1), Int(2)]), id="list"),
        pytest.param([], Array([]), id="empty-list"),
        pytest.param({"a": 1}, Object([Field("a", Int(1))]), id="dict"),
        pytest.param(
            Point(1, 2, "p"),
            Struct("Point", [Field("x", Int(1)), Field("y", Int(2)), Field("name", String("p"))]),
            id="dataclass",
        ),
        pytest.param(
            Limits(0, 10),
            Struct("Limits", [Field("low", Int(0)), Field("high", Option(Int(10)))]),
            id="optional-field-present",
        ),
        pytest.param(
            Limits(0),
            Struct("Limits", [Field("low", Int(0)), Field("high", Option(None))]),
            id="optional-field-absent",
        ),
        pytest.param(Mode.Fast, TaggedTuple("Fast", []), id="enum"),
        pytest.param(
            Pair(1, "x"),
            TaggedTuple("Pair", [Int(1), Option(String("x"))]),
            id="named-tuple",
        ),
        pytest.param(Int(3), Int(3), id="reduced-node"),
    ],
)
def test_encode_values(value, expected) -> None:
    assert encode(value) == expected


def test_encode_with_optional_hint() -> None:
    assert encode(3, Optional[int]) == Option(Int(3))
    assert encode(None, Optional[int]) == Option(None)


@pytest.mark.parametrize(
    "value",
    [
        pytest.param(2 ** 40, id="int-too-large"),
        pytest.param(-(2 ** 31) - 1, id="int-too-small"),
        pytest.param({1: "a"}, id="non-str-key"),
        pytest.param(object(), id="unknown-type"),
        pytest.param({1, 2}, id="set"),
        pytest.param(Ident("x"), id="unreduced-node"),
        pytest.param(BinOp("+", Int(1), Int(2)), id="unreduced-binop"),
    ],
)
def test_encode_failures(value) -> None:
    with pytest.raises(EncodeError):
        encode(value)


def test_trackers_preserve_insertion_order() -> None:
    seq = SeqTracker()
    for n in (3, 1, 2):
        seq.push(Int(n))
    assert seq.finish() == Array([Int(3), Int(1), Int(2)])

    tagged = TupleStructTracker("Rgb")
    tagged.push(Int(1))
    assert tagged.finish() == TaggedTuple("Rgb", [Int(1)])

    record = StructTracker("Cfg")
    record.push("b", Int(2))
    record.push("a", Int(1))
    assert record.finish() == Struct("Cfg", [Field("b", Int(2)), Field("a", Int(1))])


def test_map_tracker_rejects_non_text_keys() -> None:
    mapping = MapTracker()
    mapping.push(String("ok"), Int(1))

    with pytest.raises(EncodeError):
        mapping.push(Int(1), Int(2))

    assert mapping.finish() == Object([Field("ok", Int(1))])


def test_bound_values_are_usable_in_scripts() -> None:
    scope = Scope()
    bind(scope, "p", Point(1, 2, "n"))
    bind(scope, "mode", Mode.Slow)

    assert eval_expr("p.x + p.y", scope) == Int(3)
    assert eval_expr("match mode { Fast => 1, Slow => 2 }", scope) == Int(2)


def test_encoded_dataclass_decodes_back() -> None:
    value = Limits(1, 5)

    assert decode(encode(value), Limits) == value
