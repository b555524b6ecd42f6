"""Latent-bug indicators in raw diff text.

A handful of line-level patterns that tend to hide bugs the path rules can't
see. Warnings name the file and new-file line; they do not affect the score.
"""

from __future__ import annotations

import re

from impactlens.models import DiffWarning
from impactlens.vcs.diff_parser import DiffHunk, FileDiff, parse_diff

# `[obj.prop]`, `[obj?.prop]`, `[...obj.prop]`
_ARRAY_FROM_PROPERTY = re.compile(
    r"\[\s*(\.\.\.)?\s*([A-Za-z_$][\w$]*(?:\??\.[A-Za-z_$][\w$]*)+)\s*\]"
)
_LITERAL_CONTEXT = ("=", "(", ",", ":", "[", "{", "?", "return", "=>")

_RETURN = re.compile(r"^\s*return\b\s*(.*?)\s*;?\s*$")
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")

_AWAIT_CALL = re.compile(r"\bawait\s+([A-Za-z_$][\w$.]*)\s*\(")


def return_shape(expression: str) -> str:
    """Coarse shape of a returned expression."""
    expr = expression.strip().rstrip(";").strip()
    if not expr:
        return "nothing"
    if expr[0] == "{":
        return "object"
    if expr[0] == "[":
        return "array"
    if expr in ("null", "undefined", "None", "nil"):
        return "null"
    if expr in ("true", "false", "True", "False"):
        return "boolean"
    if expr[0] in "\"'`":
        return "string"
    if _NUMBER.match(expr):
        return "number"
    return "expression"


def _array_from_property(fd: FileDiff, hunk: DiffHunk) -> list[DiffWarning]:
    warnings = []
    for line_no, text in hunk.added_with_numbers():
        for match in _ARRAY_FROM_PROPERTY.finditer(text):
            before = text[: match.start()].rstrip()
            if before and not before.endswith(_LITERAL_CONTEXT):
                continue  # subscript like items[obj.index]
            expr = match.group(2)
            if match.group(1):
                message = (
                    f"Spreading `{expr}` into an array throws if it is undefined; "
                    "add a default (`?? []`)."
                )
            else:
                message = (
                    f"Array literal built from `{expr}`; if the property is missing "
                    "the array holds `undefined` instead of being empty."
                )
            warnings.append(
                DiffWarning(kind="array_from_property", path=fd.path, line=line_no, message=message)
            )
    return warnings


def _return_shape_change(fd: FileDiff, hunk: DiffHunk) -> list[DiffWarning]:
    old_shapes = set()
    for line in hunk.removed:
        match = _RETURN.match(line)
        if match:
            old_shapes.add(return_shape(match.group(1)))
    new_returns = []
    for line_no, line in hunk.added_with_numbers():
        match = _RETURN.match(line)
        if match:
            new_returns.append((line_no, return_shape(match.group(1))))
    old_shapes.discard("expression")
    new_shapes = {shape for _, shape in new_returns} - {"expression"}
    if not old_shapes or not new_shapes or not old_shapes.isdisjoint(new_shapes):
        return []
    line_no = next(n for n, shape in new_returns if shape in new_shapes)
    old = "/".join(sorted(old_shapes))
    new = "/".join(sorted(new_shapes))
    return [
        DiffWarning(
            kind="return_shape_changed",
            path=fd.path,
            line=line_no,
            message=f"Return value changed from {old} to {new}; callers may rely on the old shape.",
        )
    ]


def _dropped_await(fd: FileDiff, hunk: DiffHunk) -> list[DiffWarning]:
    awaited = {m.group(1) for line in hunk.removed for m in _AWAIT_CALL.finditer(line)}
    if not awaited:
        return []
    warnings = []
    for line_no, text in hunk.added_with_numbers():
        for name in awaited:
            call = re.search(rf"(?<![\w$.]){re.escape(name)}\s*\(", text)
            if call and not re.search(r"\bawait\s+$", text[: call.start()]):
                warnings.append(
                    DiffWarning(
                        kind="await_removed",
                        path=fd.path,
                        line=line_no,
                        message=f"`{name}(...)` was awaited before and is not any more; "
                                "the caller now gets a pending promise.",
                    )
                )
    return warnings


_CHECKS = (_array_from_property, _return_shape_change, _dropped_await)


def scan_diff(diff_text: str) -> list[DiffWarning]:
    """Scan unified diff text for latent-bug indicators."""
    warnings: list[DiffWarning] = []
    for fd in parse_diff(diff_text):
        for hunk in fd.hunks:
            for check in _CHECKS:
                warnings.extend(check(fd, hunk))
    return warnings
