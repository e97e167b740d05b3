"""Evaluator helper modules for the libretto runtime."""

__all__ = [
    "access",
    "control",
    "ops",
    "patterns",
]
