"""Expression, statement and pattern trees.

Expressions double as values: evaluation maps an expression to a *reduced*
expression (see ``needs_evaluation``), and only reduced expressions reach the
typed decoder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union
from typing_extensions import TypeAlias

from .errors import Pos
from .utils import format_float


@dataclass
class Node:
    pos: Optional[Pos] = field(default=None, kw_only=True, compare=False, repr=False)


# ---------- Primitives ----------

@dataclass
class Float(Node):
    value: float

@dataclass
class Int(Node):
    value: int

@dataclass
class Bool(Node):
    value: bool

@dataclass
class Char(Node):
    value: str

@dataclass
class String(Node):
    value: str

@dataclass
class Unit(Node):
    pass


# ---------- Containers and tagged values ----------

@dataclass
class Field:
    name: str
    value: Expr

@dataclass
class Array(Node):
    items: List[Expr]

@dataclass
class Object(Node):
    fields: List[Field]

@dataclass
class Tuple(Node):
    items: List[Expr]

@dataclass
class Option(Node):
    value: Optional[Expr]

@dataclass
class NamedTuple(Node):
    name: str
    items: List[Expr]

@dataclass
class Struct(Node):
    name: str
    fields: List[Field]


# ---------- References, operators, control ----------

@dataclass
class Ident(Node):
    name: str

@dataclass
class Accessor:
    name: str
    args: Optional[List[Expr]] = None

    @property
    def is_call(self) -> bool:
        return self.args is not None

@dataclass
class MemberAccess(Node):
    subject: Expr
    accessors: List[Accessor]

@dataclass
class BinOp(Node):
    op: str
    lhs: Expr
    rhs: Expr

CAST_TARGETS = ("i32", "f32")

@dataclass
class Cast(Node):
    value: Expr
    target: str

@dataclass
class Block(Node):
    statements: List[Statement]
    result: Expr

@dataclass
class FnCall(Node):
    name: str
    args: List[Expr]

@dataclass
class CondValue:
    value: Expr

@dataclass
class CondLet:
    pattern: Pattern
    value: Expr

IfCond: TypeAlias = Union[CondValue, CondLet]

@dataclass
class Branch:
    cond: IfCond
    body: Expr

@dataclass
class IfChain(Node):
    branches: List[Branch]
    otherwise: Optional[Expr] = None

@dataclass
class Arm:
    pattern: Pattern
    body: Expr

@dataclass
class Match(Node):
    scrutinee: Expr
    arms: List[Arm]


Expr: TypeAlias = Union[
    Float, Int, Bool, Char, String, Unit,
    Array, Object, Tuple, Option, NamedTuple, Struct,
    Ident, MemberAccess, BinOp, Cast, Block, FnCall, IfChain, Match,
]


# ---------- Statements ----------

@dataclass
class Let(Node):
    name: str
    value: Expr
    annotation: Optional[str] = None

@dataclass
class ExprStmt(Node):
    value: Expr

@dataclass
class FnDef(Node):
    name: str
    params: List[str]
    body: Expr

Statement: TypeAlias = Union[Let, ExprStmt, FnDef]


# ---------- Patterns ----------

@dataclass
class AnyPattern(Node):
    pass

@dataclass
class ConstPattern(Node):
    value: Expr

@dataclass
class IdentPattern(Node):
    name: str

@dataclass
class TuplePattern(Node):
    items: List[Pattern]

@dataclass
class TupleStructPattern(Node):
    name: str
    items: List[Pattern]

@dataclass
class FieldPattern:
    name: str
    pattern: Pattern

@dataclass
class StructPattern(Node):
    name: str
    fields: List[FieldPattern]

Pattern: TypeAlias = Union[
    AnyPattern, ConstPattern, IdentPattern, TuplePattern, TupleStructPattern, StructPattern,
]


def needs_evaluation(expr: Expr) -> bool:
    """True unless *expr* is fully reduced data."""
    match expr:
        case Float() | Int() | Bool() | Char() | String() | Unit():
            return False
        case Array(items) | Tuple(items) | NamedTuple(_, items):
            return any(needs_evaluation(item) for item in items)
        case Object(fields) | Struct(_, fields):
            return any(needs_evaluation(f.value) for f in fields)
        case Option(value):
            return value is not None and needs_evaluation(value)
        case _:
            return True


def kind_name(expr: Expr) -> str:
    match expr:
        case Float():
            return "float"
        case Int():
            return "int"
        case Bool():
            return "bool"
        case Char():
            return "char"
        case String():
            return "string"
        case Unit():
            return "unit"
        case Array():
            return "array"
        case Object():
            return "object"
        case Tuple():
            return "tuple"
        case Option():
            return "option"
        case NamedTuple(name, _):
            return f"named tuple {name}"
        case Struct(name, _):
            return f"struct {name}"
        case _:
            return "unevaluated " + type(expr).__name__.lower()


# ---------- Rendering ----------

_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
    "\\": "\\\\",
}


def _quote(text: str, quote: str) -> str:
    out = []

    for ch in text:
        if ch == quote:
            out.append("\\" + ch)
        else:
            out.append(_ESCAPES.get(ch, ch))

    return quote + "".join(out) + quote


def _join(items: List[Expr]) -> str:
    return ", ".join(render(item) for item in items)


def _fields(fields: List[Field]) -> str:
    return ", ".join(f"{f.name}: {render(f.value)}" for f in fields)


def _key(name: str) -> str:
    return name if name.isidentifier() else _quote(name, '"')


def render(node: Union[Expr, Statement, Pattern]) -> str:
    """Render a node back to source-like text."""
    match node:
        case Float(value):
            return format_float(value)
        case Bool(value):
            return "true" if value else "false"
        case Int(value):
            return str(value)
        case Char(value):
            return _quote(value, "'")
        case String(value):
            return _quote(value, '"')
        case Unit():
            return "()"
        case Array(items):
            return f"[{_join(items)}]"
        case Object(fields):
            if not fields:
                return "{}"
            return "{ " + ", ".join(f"{_key(f.name)}: {render(f.value)}" for f in fields) + " }"
        case Tuple(items):
            if len(items) == 1:
                return f"({render(items[0])},)"
            return f"({_join(items)})"
        case Option(None):
            return "None"
        case Option(value):
            return f"Some({render(value)})"
        case NamedTuple(name, []):
            return name
        case NamedTuple(name, items):
            return f"{name}({_join(items)})"
        case Struct(name, []):
            return f"{name} {{}}"
        case Struct(name, fields):
            return f"{name} {{ {_fields(fields)} }}"
        case Ident(name):
            return name
        case MemberAccess(subject, accessors):
            text = render(subject)
            for acc in accessors:
                text += "." + acc.name
                if acc.args is not None:
                    text += f"({_join(acc.args)})"
            return text
        case BinOp(op, lhs, rhs):
            return f"({render(lhs)} {op} {render(rhs)})"
        case Cast(value, target):
            return f"{render(value)} as {target}"
        case Block(statements, result):
            parts = [render(s) for s in statements]
            if not isinstance(result, Unit):
                parts.append(render(result))
            return "{ " + " ".join(parts) + " }" if parts else "{ }"
        case FnCall(name, args):
            return f"{name}({_join(args)})"
        case IfChain(branches, otherwise):
            pieces = []
            for branch in branches:
                if isinstance(branch.cond, CondLet):
                    cond = f"let {render(branch.cond.pattern)} = {render(branch.cond.value)}"
                else:
                    cond = render(branch.cond.value)
                pieces.append(f"if {cond} {render(branch.body)}")
            text = " else ".join(pieces)
            if otherwise is not None:
                text += f" else {render(otherwise)}"
            return text
        case Match(scrutinee, arms):
            body = ", ".join(f"{render(arm.pattern)} => {render(arm.body)}" for arm in arms)
            return f"match {render(scrutinee)} {{ {body} }}"
        case Let(name, value, annotation):
            ann = f": {annotation}" if annotation else ""
            return f"let {name}{ann} = {render(value)};"
        case ExprStmt(value):
            return f"{render(value)};"
        case FnDef(name, params, body):
            return f"fn {name}({', '.join(params)}) {render(body)}"
        case AnyPattern():
            return "_"
        case ConstPattern(value):
            return render(value)
        case IdentPattern(name):
            return name
        case TuplePattern(items):
            return "(" + ", ".join(render(p) for p in items) + ")"
        case TupleStructPattern(name, []):
            return name
        case TupleStructPattern(name, items):
            return f"{name}(" + ", ".join(render(p) for p in items) + ")"
        case StructPattern(name, fields):
            inner = ", ".join(f"{f.name}: {render(f.pattern)}" for f in fields)
            return f"{name} {{ {inner} }}"
        case _:
            raise TypeError(f"Cannot render {type(node).__name__}")
