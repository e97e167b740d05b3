from __future__ import annotations

import logging
import math
import os
import struct
from pathlib import Path

I32_MIN = -(2 ** 31)
I32_MAX = 2 ** 31 - 1

DEBUG_PY_TRACE_ENV = "LIBRETTO_DEBUG_PY_TRACE"
LOG_LEVEL_ENV = "LIBRETTO_LOG_LEVEL"
GRAMMAR_ENV = "LIBRETTO_GRAMMAR"

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def debug_py_trace_enabled() -> bool:
    """Python tracebacks are shown by the CLI and REPL when this is set."""
    return _env_flag(DEBUG_PY_TRACE_ENV)


def env_log_level(default: int = logging.WARNING) -> int:
    raw = os.environ.get(LOG_LEVEL_ENV)
    if not raw:
        return default

    raw = raw.strip()
    if raw.isdigit():
        return int(raw)

    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def grammar_path() -> Path:
    override = os.environ.get(GRAMMAR_ENV)
    if override:
        return Path(override)

    return Path(__file__).resolve().parent / "grammar.lark"


def to_f32(value: float) -> float:
    """Round a Python float to the nearest 32-bit float."""
    if math.isnan(value) or math.isinf(value):
        return value

    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def to_i32(value: float) -> int:
    """Truncate toward zero and saturate into the signed 32-bit range."""
    if math.isnan(value):
        return 0
    if value >= I32_MAX:
        return I32_MAX
    if value <= I32_MIN:
        return I32_MIN

    return int(value)


def int_div(lhs: int, rhs: int) -> int:
    """Integer division truncating toward zero. Caller rejects rhs == 0."""
    quotient = abs(lhs) // abs(rhs)

    return quotient if (lhs < 0) == (rhs < 0) else -quotient


def float_div(lhs: float, rhs: float) -> float:
    if rhs != 0.0:
        return lhs / rhs

    if math.isnan(lhs) or lhs == 0.0:
        return math.nan

    sign = math.copysign(1.0, lhs) * math.copysign(1.0, rhs)
    return math.copysign(math.inf, sign)


def format_float(value: float) -> str:
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"

    text = repr(value)
    if "e" in text or "." in text:
        return text

    return text + ".0"

