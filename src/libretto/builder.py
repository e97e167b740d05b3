"""Turn Lark parse trees into expression, statement and pattern trees."""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Tuple as Pair

from lark import Token, Tree

from .errors import MalformedTree, ParseError, Pos
from .nodes import (
    Accessor, AnyPattern, Arm, Array, Block, Bool, Branch, Cast, CAST_TARGETS, Char,
    CondLet, CondValue, ConstPattern, Expr, ExprStmt, Field, FieldPattern, Float, FnCall,
    FnDef, Ident, IdentPattern, IfChain, Int, Let, Match, MemberAccess, NamedTuple, BinOp,
    Object, Option, Pattern, Statement, String, Struct, StructPattern, Tuple, TuplePattern,
    TupleStructPattern, Unit,
)
from .parser import parse_source
from .tree import Node, is_token, is_tree, node_pos, subtrees, tokens_of, tree_children, tree_label
from .utils import I32_MAX, I32_MIN

# Lowest precedence first.
TIERS: List[Pair[str, ...]] = [
    ("==", "!=", "<", ">"),
    ("+", "-"),
    ("*", "/"),
]

STATEMENT_LABELS = frozenset({"let_stmt", "fn_def", "expr_stmt"})


def _span(start: Optional[Pos], end: Optional[Pos]) -> Optional[Pos]:
    if start is None or end is None:
        return start or end

    return Pos(start.line, start.column, end.end_line, end.end_column)


def _malformed(node: Node, what: str) -> MalformedTree:
    label = tree_label(node) or getattr(node, "type", type(node).__name__)
    return MalformedTree(f"Malformed {label}: {what}", node_pos(node))


# ---------- Operator folding ----------

def fold_operators(first: Expr, rest: List[Pair[str, Expr]], tier: int = 0) -> Expr:
    """Fold an operand/operator run into a binary tree.

    Scans right to left for the last operator of the current tier, folds the
    left part at the same tier and the right part at the next one, so equal
    precedence chains come out left-associative.
    """
    if tier == len(TIERS):
        if rest:
            leftover = " ".join(op for op, _ in rest)
            raise MalformedTree(f"Operators left after folding: {leftover}", first.pos)
        return first

    ops = TIERS[tier]

    for i in range(len(rest) - 1, -1, -1):
        op, operand = rest[i]
        if op not in ops:
            continue

        lhs = fold_operators(first, rest[:i], tier)
        rhs = fold_operators(operand, rest[i + 1:], tier + 1)
        return BinOp(op, lhs, rhs, pos=_span(lhs.pos, rhs.pos))

    return fold_operators(first, rest, tier + 1)


def _build_value(node: Tree) -> Expr:
    children = tree_children(node)
    if not children or len(children) % 2 == 0:
        raise _malformed(node, "expected operands separated by operators")

    first = build_expression(children[0])
    rest: List[Pair[str, Expr]] = []

    for op_node, operand in zip(children[1::2], children[2::2]):
        if tree_label(op_node) != "binop":
            raise _malformed(node, "expected an operator")
        op = str(tree_children(op_node)[0])
        rest.append((op, build_expression(operand)))

    return fold_operators(first, rest)


# ---------- Literals ----------

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
}
_ESCAPE_RE = re.compile(r"\\(u\{([0-9a-fA-F]{1,6})\}|.)", re.S)


def unescape(body: str, pos: Optional[Pos] = None) -> str:
    def replace(m: re.Match) -> str:
        if m.group(2) is not None:
            code = int(m.group(2), 16)
            if code > 0x10FFFF:
                raise ParseError(f"Invalid unicode escape \\u{{{m.group(2)}}}", pos)
            return chr(code)

        ch = m.group(1)
        if ch in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[ch]

        raise ParseError(f"Unknown escape sequence \\{ch}", pos)

    return _ESCAPE_RE.sub(replace, body)


def string_value(tok: Token) -> str:
    text = str(tok)
    if tok.type == "RAW_STRING":
        hashes = len(text) - len(text.lstrip("r").lstrip("#")) - 1
        return text[2 + hashes:len(text) - 1 - hashes]

    return unescape(text[1:-1], node_pos(tok))


def _signed(node: Tree) -> Pair[bool, Token]:
    toks = tokens_of(node)
    return toks[0].type == "MINUS", toks[-1]


def _build_int(node: Tree) -> Expr:
    negative, tok = _signed(node)
    value = -int(tok) if negative else int(tok)
    if not I32_MIN <= value <= I32_MAX:
        raise ParseError(f"Integer literal {value} does not fit in 32 bits", node_pos(node))

    return Int(value, pos=node_pos(node))


def _build_float(node: Tree) -> Expr:
    negative, tok = _signed(node)
    value = float(tok)

    return Float(-value if negative else value, pos=node_pos(node))


def _build_char(node: Tree) -> Expr:
    tok = tokens_of(node)[0]
    value = unescape(str(tok)[1:-1], node_pos(tok))
    if len(value) != 1:
        raise ParseError(f"Character literal must hold one character, got {str(tok)}", node_pos(tok))

    return Char(value, pos=node_pos(node))


# ---------- Compound expressions ----------

def _build_exprs(nodes: List[Node]) -> List[Expr]:
    return [build_expression(n) for n in nodes if is_tree(n)]


def _call_args(node: Optional[Tree]) -> List[Expr]:
    if node is None:
        return []

    return _build_exprs(tree_children(node))


def _build_tuple(node: Tree) -> Expr:
    return Tuple(_build_exprs(tree_children(node)), pos=node_pos(node))


def _check_unique(names: List[str], node: Tree) -> None:
    seen = set()

    for name in names:
        if name in seen:
            raise ParseError(f"Duplicate key '{name}'", node_pos(node))
        seen.add(name)


def _build_object(node: Tree) -> Expr:
    fields: List[Field] = []

    for entry in subtrees(node):
        key, value = tree_children(entry)
        name = string_value(key) if key.type == "STRING" else str(key)
        fields.append(Field(name, build_expression(value)))

    _check_unique([f.name for f in fields], node)
    return Object(fields, pos=node_pos(node))


def _build_struct(node: Tree) -> Expr:
    name = str(tree_children(node)[0])
    fields: List[Field] = []

    for entry in subtrees(node):
        parts = tree_children(entry)
        key = str(parts[0])
        if len(parts) == 1:
            # shorthand `Name { x }` means `Name { x: x }`
            value: Expr = Ident(key, pos=node_pos(parts[0]))
        else:
            value = build_expression(parts[1])
        fields.append(Field(key, value))

    _check_unique([f.name for f in fields], node)
    return Struct(name, fields, pos=node_pos(node))


def _build_tagged_tuple(node: Tree) -> Expr:
    name_tok, args = tree_children(node)
    name = str(name_tok)
    items = _call_args(args)
    pos = node_pos(node)

    if name == "Some":
        if len(items) != 1:
            raise ParseError(f"Some takes exactly one value, got {len(items)}", pos)
        return Option(items[0], pos=pos)

    return NamedTuple(name, items, pos=pos)


def _build_tagged_unit(node: Tree) -> Expr:
    name = str(tree_children(node)[0])
    if name == "None":
        return Option(None, pos=node_pos(node))

    return NamedTuple(name, [], pos=node_pos(node))


def _build_fn_call(node: Tree) -> Expr:
    name_tok, args = tree_children(node)
    return FnCall(str(name_tok), _call_args(args), pos=node_pos(node))


def _build_accessors(node: Tree) -> List[Accessor]:
    children = tree_children(node)
    name_tok = children[0]
    args = _call_args(children[1]) if len(children) > 1 else None

    if name_tok.type == "FLOAT":
        # `t.0.1` lexes its tail as one float token
        parts = str(name_tok).split(".")
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            raise ParseError(f"Invalid tuple index {str(name_tok)}", node_pos(name_tok))
        return [Accessor(parts[0]), Accessor(parts[1], args)]

    return [Accessor(str(name_tok), args)]


def _build_member_access(node: Tree) -> Expr:
    head, *rest = tree_children(node)
    accessors: List[Accessor] = []

    for acc in rest:
        accessors.extend(_build_accessors(acc))

    return MemberAccess(build_expression(head), accessors, pos=node_pos(node))


def _build_cast(node: Tree) -> Expr:
    operand = tree_children(node)[0]
    target = str(tokens_of(node, "IDENT")[-1])
    if target not in CAST_TARGETS:
        raise ParseError(f"Cannot cast to '{target}'; expected one of {', '.join(CAST_TARGETS)}", node_pos(node))

    return Cast(build_expression(operand), target, pos=node_pos(node))


def build_block(node: Tree) -> Block:
    statements: List[Statement] = []
    result: Optional[Expr] = None

    for child in subtrees(node):
        if tree_label(child) in STATEMENT_LABELS:
            if result is not None:
                raise _malformed(node, "statement after result value")
            statements.append(build_statement(child))
        else:
            result = build_expression(child)

    pos = node_pos(node)
    if result is None:
        result = Unit(pos=pos)

    return Block(statements, result, pos=pos)


def _build_cond(node: Tree):
    if tree_label(node) == "cond_let":
        pattern, value = subtrees(node)
        return CondLet(build_pattern(pattern), build_expression(value))

    return CondValue(build_expression(subtrees(node)[0]))


def _build_if_chain(node: Tree) -> Expr:
    parts = subtrees(node)
    branches: List[Branch] = []

    for cond, body in zip(parts[0::2], parts[1::2]):
        if tree_label(cond) == "block":
            raise _malformed(node, "expected a condition")
        branches.append(Branch(_build_cond(cond), build_block(body)))

    otherwise = build_block(parts[-1]) if len(parts) % 2 == 1 else None

    return IfChain(branches, otherwise, pos=node_pos(node))


def _build_match(node: Tree) -> Expr:
    scrutinee, *arms = subtrees(node)
    built: List[Arm] = []

    for arm in arms:
        pattern, body = subtrees(arm)
        built.append(Arm(build_pattern(pattern), build_expression(body)))

    return Match(build_expression(scrutinee), built, pos=node_pos(node))


_EXPR_BUILDERS: Dict[str, Callable[[Tree], Expr]] = {
    "value": _build_value,
    "int": _build_int,
    "float": _build_float,
    "true": lambda n: Bool(True, pos=node_pos(n)),
    "false": lambda n: Bool(False, pos=node_pos(n)),
    "string": lambda n: String(string_value(tokens_of(n)[0]), pos=node_pos(n)),
    "char": _build_char,
    "unit": lambda n: Unit(pos=node_pos(n)),
    "tuple": _build_tuple,
    "array": lambda n: Array(_build_exprs(tree_children(n)), pos=node_pos(n)),
    "object": _build_object,
    "ident": lambda n: Ident(str(tree_children(n)[0]), pos=node_pos(n)),
    "fn_call": _build_fn_call,
    "tagged_unit": _build_tagged_unit,
    "tagged_tuple": _build_tagged_tuple,
    "struct": _build_struct,
    "member_access": _build_member_access,
    "cast": _build_cast,
    "block": build_block,
    "if_chain": _build_if_chain,
    "match_expr": _build_match,
}


def build_expression(node: Node) -> Expr:
    if not is_tree(node):
        raise _malformed(node, "expected an expression tree")

    builder = _EXPR_BUILDERS.get(node.data)
    if builder is None:
        raise _malformed(node, "not an expression")

    return builder(node)


# ---------- Patterns ----------

def _build_field_pattern(node: Tree) -> FieldPattern:
    parts = tree_children(node)
    name = str(parts[0])
    if len(parts) == 1:
        return FieldPattern(name, IdentPattern(name, pos=node_pos(parts[0])))

    return FieldPattern(name, build_pattern(parts[1]))


def build_pattern(node: Node) -> Pattern:
    if not is_tree(node):
        raise _malformed(node, "expected a pattern tree")

    pos = node_pos(node)
    children = tree_children(node)

    match node.data:
        case "ident_pattern":
            name = str(children[0])
            if name == "_":
                return AnyPattern(pos=pos)
            return IdentPattern(name, pos=pos)
        case "unit_struct_pattern":
            return TupleStructPattern(str(children[0]), [], pos=pos)
        case "tuple_struct_pattern":
            items = [build_pattern(ch) for ch in children[1:]]
            return TupleStructPattern(str(children[0]), items, pos=pos)
        case "struct_pattern":
            fields = [_build_field_pattern(ch) for ch in children[1:]]
            return StructPattern(str(children[0]), fields, pos=pos)
        case "unit_pattern":
            return ConstPattern(Unit(pos=pos), pos=pos)
        case "tuple_pattern":
            return TuplePattern([build_pattern(ch) for ch in children], pos=pos)
        case "const_pattern":
            return ConstPattern(build_expression(children[0]), pos=pos)
        case _:
            raise _malformed(node, "not a pattern")


# ---------- Statements ----------

def _annotation(node: Optional[Tree]) -> Optional[str]:
    if node is None:
        return None

    return str(tree_children(node)[0])


def _build_let(node: Tree) -> Statement:
    children = tree_children(node)
    name = str(children[1])
    annotation = None
    value_node = children[-1]

    if len(children) == 4:
        annotation = _annotation(children[2])

    return Let(name, build_expression(value_node), annotation, pos=node_pos(node))


def _build_fn_def(node: Tree) -> Statement:
    children = tree_children(node)
    name = str(children[1])
    params: List[str] = []
    body: Optional[Block] = None

    for child in children[2:]:
        match tree_label(child):
            case "param":
                params.append(str(tree_children(child)[0]))
            case "block":
                body = build_block(child)
            case _:
                pass  # return annotation

    if body is None:
        raise _malformed(node, "missing body")
    if len(set(params)) != len(params):
        raise ParseError(f"Duplicate parameter name in fn {name}", node_pos(node))

    return FnDef(name, params, body, pos=node_pos(node))


def build_statement(node: Node) -> Statement:
    match tree_label(node):
        case "let_stmt":
            return _build_let(node)
        case "fn_def":
            return _build_fn_def(node)
        case "expr_stmt":
            return ExprStmt(build_expression(subtrees(node)[0]), pos=node_pos(node))
        case _:
            raise _malformed(node, "not a statement")


# ---------- Entry points ----------

def build_statements(tree: Tree) -> List[Statement]:
    return [build_statement(ch) for ch in subtrees(tree) if tree_label(ch) in STATEMENT_LABELS]


def build_program(source: str) -> List[Statement]:
    """Parse *source* with the `file` rule and build its statements."""
    return build_statements(parse_source(source, "file"))


def _as_block(tree: Tree, source: str) -> Block:
    block = build_block(tree)
    lines = source.split("\n")
    block.pos = Pos(1, 1, len(lines), len(lines[-1]) + 1)

    return block


def process_expr(source: str) -> Block:
    """Parse *source* as statements followed by a result value."""
    return _as_block(parse_source(source, "expr"), source)


def process_repl(source: str) -> Pair[List[Statement], Optional[Expr]]:
    tree = parse_source(source, "repl")
    statements = build_statements(tree)
    tail = [ch for ch in subtrees(tree) if tree_label(ch) not in STATEMENT_LABELS]

    return statements, (build_expression(tail[0]) if tail else None)
