from __future__ import annotations

import contextlib
import io
from typing import Any, Callable


def normalize_path(path: str) -> str:
    value = str(path or "").strip()
    if not value:
        return "/"
    if "?" in value:
        value = value.split("?", 1)[0]
    if not value.startswith("/"):
        value = "/" + value
    return value or "/"


def header_values(headers: dict[str, Any] | None, name: str) -> list[Any]:
    """Returns every value stored under ``name``, matching header names case-insensitively.

    Values are kept as-is (cookie headers hold records, not strings); a scalar
    value is treated as a one-element list.
    """
    if not headers:
        return []
    wanted = str(name or "").strip().lower()
    out: list[Any] = []
    for key, value in headers.items():
        if str(key).strip().lower() != wanted:
            continue
        if value is None:
            continue
        out.extend(value if isinstance(value, (list, tuple)) else [value])
    return out


def first_header_value(headers: dict[str, Any] | None, name: str) -> Any:
    values = header_values(headers, name)
    return values[0] if values else None


def stringify_keys(params: dict[Any, Any] | None) -> dict[str, Any]:
    if not params:
        return {}
    return {str(key): value for key, value in params.items()}


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, memoryview):
        return value.tobytes().decode("utf-8", errors="replace")
    raise TypeError("body must be bytes-like or str")


def capture_stdout(fn: Callable[[], Any]) -> str:
    buffer = io.StringIO()
    with contextlib.redirect_stdout(buffer):
        fn()
    return buffer.getvalue()
