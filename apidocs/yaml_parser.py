"""Minimal indentation-based YAML reader for simple API description documents.

Handles comments, blank lines, ``key: value`` pairs and nested mappings (two
columns of indentation per level). Sequences, multi-line scalars, anchors and
flow mappings other than the literal ``{}`` / ``[]`` tokens are not supported;
documents that need them should be converted to JSON first (see
``apidocs.loader``).
"""
import re
from typing import Any

INDENT_STEP = 2

_NUMBER_RE = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")


def _unquote(s: str) -> str:
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        return s[1:-1]
    return s


def _coerce(value: str) -> Any:
    # Scalar value: quoted string, boolean, number, or plain string.
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    if value == "true":
        return True
    if value == "false":
        return False
    if _NUMBER_RE.match(value):
        if re.fullmatch(r"[-+]?\d+", value):
            return int(value)
        return float(value)
    return value


def parse_yaml(text: str) -> dict:
    """Parse a flat or nested scalar mapping written in block YAML."""
    result: dict = {}
    stack: list[dict] = [result]
    current_indent = 0

    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        if ":" not in trimmed:
            continue

        indent = len(line) - len(line.lstrip())
        key, _, value = trimmed.partition(":")
        key = _unquote(key.strip())
        value = value.strip()

        while len(stack) > 1 and indent <= current_indent:
            stack.pop()
            current_indent -= INDENT_STEP

        current = stack[-1]
        if value in ("", "{}"):
            current[key] = {}
            stack.append(current[key])
            current_indent = indent
        elif value == "[]":
            current[key] = []
        else:
            current[key] = _coerce(value)

    return result
