"""Evaluator helper modules for the lambda interpreter."""

__all__ = [
    "chains",
    "common",
    "expr",
    "helpers",
]
