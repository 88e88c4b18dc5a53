from __future__ import annotations

from typing import Any, Iterator


class TestSession:
    """In-memory stand-in for a request session.

    There is no cookie, store or disk lifecycle: ``update``/``close`` do
    nothing, the id is always empty and ``delete`` empties the store in place.
    """

    __test__ = False

    def __init__(self, attributes: dict[str, Any] | None = None) -> None:
        self._attributes: dict[str, Any] = dict(attributes or {})

    def __getitem__(self, key: str) -> Any:
        return self._attributes.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self._attributes[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._attributes

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __repr__(self) -> str:
        return f"TestSession({self._attributes!r})"

    def get(self, key: str, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._attributes[key] = value

    def to_dict(self) -> dict[str, Any]:
        return dict(self._attributes)

    @property
    def session_id(self) -> str:
        return ""

    def update(self) -> None:
        return None

    def close(self) -> None:
        return None

    def delete(self) -> None:
        self._attributes.clear()


class FlashHash(dict):
    """Flash messages stored under the session's ``"flash"`` key."""

    def now(self, key: str, value: Any) -> None:
        self[key] = value

    def discard(self, key: str | None = None) -> None:
        if key is None:
            self.clear()
        else:
            self.pop(key, None)
