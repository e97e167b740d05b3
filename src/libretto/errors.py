"""Exception taxonomy shared by the parser, evaluator and typed bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class Pos:
    line: int
    column: int
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    def __str__(self) -> str:
        return f"line {self.line}, col {self.column}"


class LibrettoError(Exception):
    pos: Optional[Pos]

    def __init__(self, message: str, pos: Optional[Pos] = None):
        super().__init__(message)
        self.message = message
        self.pos = pos

    def attach(self, pos: Optional[Pos]) -> None:
        """Record *pos* unless a more specific position is already known."""
        if self.pos is None and pos is not None:
            self.pos = pos

    def __str__(self) -> str:
        if self.pos is None:
            return self.message

        return f"{self.message} ({self.pos})"


# ---------- Syntax ----------

class ParseError(LibrettoError):
    def __init__(
        self,
        message: str,
        pos: Optional[Pos] = None,
        *,
        context: str = "",
        expected: Sequence[str] = (),
    ):
        super().__init__(message, pos)
        self.context = context
        self.expected = sorted(expected)

    @property
    def line(self) -> Optional[int]:
        return self.pos.line if self.pos else None

    @property
    def column(self) -> Optional[int]:
        return self.pos.column if self.pos else None


class MalformedTree(ParseError):
    """The parse tree does not have the shape the grammar guarantees."""


# ---------- Evaluation ----------

class EvalError(LibrettoError):
    pass


class UnboundName(EvalError):
    def __init__(self, name: str):
        super().__init__(f"Unbound name '{name}'")
        self.name = name


class UndefinedFunction(EvalError):
    def __init__(self, name: str):
        super().__init__(f"Undefined function '{name}'")
        self.name = name


class ArityMismatch(EvalError):
    def __init__(self, expected: int, got: int, name: Optional[str] = None):
        target = f"'{name}'" if name else "function"
        super().__init__(f"{target} expects {expected} argument(s); got {got}")
        self.expected = expected
        self.got = got
        self.name = name


class TypeMismatch(EvalError):
    def __init__(self, action: str, lhs: str, rhs: Optional[str] = None):
        if rhs is None:
            message = f"Cannot {action} {lhs}"
        else:
            message = f"Cannot {action} {lhs} and {rhs}"
        super().__init__(message)
        self.action = action
        self.lhs = lhs
        self.rhs = rhs


class DivisionByZero(EvalError):
    def __init__(self) -> None:
        super().__init__("Integer division by zero")


class IntegerOverflow(EvalError):
    def __init__(self, action: str, value: int):
        super().__init__(f"Integer overflow: cannot {action}, result {value} does not fit in 32 bits")
        self.action = action
        self.value = value


class MissingMember(EvalError):
    def __init__(self, name: str):
        super().__init__(f"No member named '{name}'")
        self.name = name


class UnknownMethod(EvalError):
    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} has no method '{name}'")
        self.kind = kind
        self.name = name


class NotIndexable(EvalError):
    def __init__(self, kind: str):
        super().__init__(f"Cannot index into {kind}")
        self.kind = kind


class NotFieldAccessible(EvalError):
    def __init__(self, kind: str, name: str):
        super().__init__(f"Cannot access field '{name}' of {kind}")
        self.kind = kind
        self.name = name


class IndexOutOfRange(EvalError):
    def __init__(self, index: int, length: int):
        super().__init__(f"Index {index} out of range for length {length}")
        self.index = index
        self.length = length


class Unmatched(EvalError):
    def __init__(self, value: str):
        super().__init__(f"No match arm matched {value}")
        self.value = value


# ---------- Decoding ----------

class DecodeError(LibrettoError):
    pass


class Unevaluated(DecodeError):
    def __init__(self, expr: str):
        super().__init__(f"Expression must be evaluated before decoding: {expr}")
        self.expr = expr


class ShapeMismatch(DecodeError):
    """Base for the Expected* family: the stored kind differs from the request."""

    expected_shape = "value"

    def __init__(self, found: str):
        super().__init__(f"Expected {self.expected_shape}, found {found}")
        self.found = found


class ExpectedStruct(ShapeMismatch):
    expected_shape = "struct"


class ExpectedMap(ShapeMismatch):
    expected_shape = "map"


class ExpectedSequence(ShapeMismatch):
    expected_shape = "sequence"


class ExpectedTuple(ShapeMismatch):
    expected_shape = "tuple"


class ExpectedNamedTuple(ShapeMismatch):
    expected_shape = "named tuple"


class ExpectedEnum(ShapeMismatch):
    expected_shape = "enum"


class ExpectedUnit(ShapeMismatch):
    expected_shape = "unit"


class ExpectedOption(ShapeMismatch):
    expected_shape = "option"


class InvalidType(ShapeMismatch):
    def __init__(self, expected: str, found: str):
        self.expected_shape = expected
        super().__init__(found)


class WrongName(DecodeError):
    def __init__(self, expected: str, found: str):
        super().__init__(f"Expected name '{expected}', found '{found}'")
        self.expected = expected
        self.found = found


class WrongTupleLength(DecodeError):
    def __init__(self, expected: int, found: int):
        super().__init__(f"Expected {expected} item(s), found {found}")
        self.expected = expected
        self.found = found


class MissingField(DecodeError):
    def __init__(self, name: str):
        super().__init__(f"Missing field '{name}'")
        self.name = name


class UnknownVariant(DecodeError):
    def __init__(self, name: str, choices: Sequence[str]):
        super().__init__(f"Unknown variant '{name}', expected one of {', '.join(choices)}")
        self.name = name
        self.choices = list(choices)


class UnsupportedTarget(DecodeError):
    def __init__(self, target: object):
        super().__init__(f"Cannot decode into {target!r}")
        self.target = target


# ---------- Encoding ----------

class EncodeError(LibrettoError):
    pass


# ---------- Script files ----------

class LoadError(LibrettoError):
    """A script file could not be read."""

    def __init__(self, path: object, reason: str):
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason
