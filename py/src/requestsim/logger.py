from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StructuredLogger(Protocol):
    def debug(self, message: str, *fields: dict[str, Any]) -> None: ...

    def info(self, message: str, *fields: dict[str, Any]) -> None: ...

    def warn(self, message: str, *fields: dict[str, Any]) -> None: ...

    def error(self, message: str, *fields: dict[str, Any]) -> None: ...

    def with_field(self, key: str, value: Any) -> StructuredLogger: ...

    def with_fields(self, fields: dict[str, Any]) -> StructuredLogger: ...


class NoOpLogger:
    def debug(self, _message: str, *fields: dict[str, Any]) -> None:
        return None

    def info(self, _message: str, *fields: dict[str, Any]) -> None:
        return None

    def warn(self, _message: str, *fields: dict[str, Any]) -> None:
        return None

    def error(self, _message: str, *fields: dict[str, Any]) -> None:
        return None

    def with_field(self, _key: str, _value: Any) -> StructuredLogger:
        return self

    def with_fields(self, _fields: dict[str, Any]) -> StructuredLogger:
        return self


class RecordingLogger:
    """Logger that keeps every entry in memory, for inspecting what a simulated call logged."""

    def __init__(self, fields: dict[str, Any] | None = None, entries: list[dict[str, Any]] | None = None) -> None:
        self.fields: dict[str, Any] = dict(fields or {})
        self.entries: list[dict[str, Any]] = entries if entries is not None else []

    def _record(self, level: str, message: str, fields: tuple[dict[str, Any], ...]) -> None:
        merged = dict(self.fields)
        for extra in fields:
            merged.update(extra or {})
        self.entries.append({"level": level, "message": str(message), "fields": merged})

    def debug(self, message: str, *fields: dict[str, Any]) -> None:
        self._record("debug", message, fields)

    def info(self, message: str, *fields: dict[str, Any]) -> None:
        self._record("info", message, fields)

    def warn(self, message: str, *fields: dict[str, Any]) -> None:
        self._record("warn", message, fields)

    def error(self, message: str, *fields: dict[str, Any]) -> None:
        self._record("error", message, fields)

    def with_field(self, key: str, value: Any) -> StructuredLogger:
        return self.with_fields({key: value})

    def with_fields(self, fields: dict[str, Any]) -> StructuredLogger:
        # Children share the entry list with their parent.
        return RecordingLogger({**self.fields, **(fields or {})}, self.entries)

    def messages(self, level: str | None = None) -> list[str]:
        return [e["message"] for e in self.entries if level is None or e["level"] == level]


_global_logger: StructuredLogger = NoOpLogger()


def get_logger() -> StructuredLogger:
    return _global_logger


def set_logger(logger: StructuredLogger | None) -> None:
    global _global_logger
    _global_logger = logger if logger is not None else NoOpLogger()


__all__ = [
    "NoOpLogger",
    "RecordingLogger",
    "StructuredLogger",
    "get_logger",
    "set_logger",
]
