"""libretto: an embeddable configuration and scripting language.

Scripts are parsed into expression trees, evaluated against lexical scopes
and decoded into typed Python values::

    scope = libretto.load("let speed = 3 * 2;")
    libretto.decode_binding(scope, "speed", int)
"""

from .builder import build_program, process_expr
from .decode import Character, Decoder, decode
from .encode import encode
from .errors import (
    ArityMismatch,
    DecodeError,
    DivisionByZero,
    EncodeError,
    EvalError,
    ExpectedEnum,
    ExpectedMap,
    ExpectedNamedTuple,
    ExpectedOption,
    ExpectedSequence,
    ExpectedStruct,
    ExpectedTuple,
    ExpectedUnit,
    IndexOutOfRange,
    IntegerOverflow,
    InvalidType,
    LibrettoError,
    LoadError,
    MalformedTree,
    MissingField,
    MissingMember,
    NotFieldAccessible,
    NotIndexable,
    ParseError,
    Pos,
    TypeMismatch,
    UnboundName,
    UndefinedFunction,
    Unevaluated,
    UnknownMethod,
    UnknownVariant,
    Unmatched,
    UnsupportedTarget,
    WrongName,
    WrongTupleLength,
)
from .evaluator import evaluate, execute
from .loader import ScriptHandle
from .nodes import needs_evaluation, render
from .runtime import bind, call_function, decode_binding, eval_expr, load, load_file
from .scope import Scope

__all__ = [
    "ArityMismatch",
    "Character",
    "DecodeError",
    "Decoder",
    "DivisionByZero",
    "EncodeError",
    "EvalError",
    "ExpectedEnum",
    "ExpectedMap",
    "ExpectedNamedTuple",
    "ExpectedOption",
    "ExpectedSequence",
    "ExpectedStruct",
    "ExpectedTuple",
    "ExpectedUnit",
    "IndexOutOfRange",
    "IntegerOverflow",
    "InvalidType",
    "LibrettoError",
    "LoadError",
    "MalformedTree",
    "MissingField",
    "MissingMember",
    "NotFieldAccessible",
    "NotIndexable",
    "ParseError",
    "Pos",
    "Scope",
    "ScriptHandle",
    "TypeMismatch",
    "UnboundName",
    "UndefinedFunction",
    "Unevaluated",
    "UnknownMethod",
    "UnknownVariant",
    "Unmatched",
    "UnsupportedTarget",
    "WrongName",
    "WrongTupleLength",
    "bind",
    "build_program",
    "call_function",
    "decode",
    "decode_binding",
    "encode",
    "eval_expr",
    "evaluate",
    "execute",
    "load",
    "load_file",
    "needs_evaluation",
    "process_expr",
    "render",
]
