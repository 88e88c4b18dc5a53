from __future__ import annotations

import urllib.parse
from dataclasses import dataclass
from typing import Any, Protocol

from requestsim.errors import RoutingError
from requestsim.util import normalize_path


class RouteResolver(Protocol):
    def generate(self, params: dict[str, Any]) -> tuple[str, set[str]]: ...


@dataclass(slots=True)
class Route:
    pattern: str
    segments: list[tuple[str, str]]
    defaults: dict[str, str]
    name: str | None
    order: int

    @property
    def segment_keys(self) -> set[str]:
        return {value for kind, value in self.segments if kind != "static"}


class RouteSet:
    """Ordered route table used to turn parameter sets back into paths.

    Patterns use ``:name`` or ``{name}`` for dynamic segments and ``{name+}``
    for a trailing catch-all; keyword defaults supply values a path does not
    carry (typically ``controller`` and ``action``).
    """

    def __init__(self) -> None:
        self._routes: list[Route] = []

    @property
    def routes(self) -> list[Route]:
        return list(self._routes)

    def add(self, pattern: str, *, name: str | None = None, **defaults: Any) -> RouteSet:
        parsed = _parse_route_segments(_split_path(pattern))
        if parsed is None:
            raise ValueError(f"invalid route pattern: {pattern!r}")
        segments, canonical = parsed
        self._routes.append(
            Route(
                pattern="/" + "/".join(canonical) if canonical else "/",
                segments=segments,
                defaults={str(k): str(v) for k, v in defaults.items()},
                name=str(name).strip() if name else None,
                order=len(self._routes),
            )
        )
        return self

    def named(self, name: str) -> Route | None:
        for route in self._routes:
            if route.name == name:
                return route
        return None

    def named_routes(self) -> dict[str, Route]:
        return {route.name: route for route in self._routes if route.name}

    def generate(self, params: dict[str, Any]) -> tuple[str, set[str]]:
        supplied = {str(k): v for k, v in (params or {}).items() if v is not None}
        for route in self._routes:
            path = _generate_path(route, supplied)
            if path is None:
                continue
            consumed = route.segment_keys | set(route.defaults)
            extras = {str(key) for key in (params or {}) if str(key) not in consumed}
            return path, extras
        raise RoutingError(f"no route matches {_describe(supplied)}", supplied)


def _generate_path(route: Route, supplied: dict[str, Any]) -> str | None:
    for key, default in route.defaults.items():
        if key in route.segment_keys:
            continue
        if key in supplied and str(supplied[key]) != default:
            return None

    parts: list[str] = []
    for kind, value in route.segments:
        if kind == "static":
            parts.append(value)
            continue
        raw = supplied.get(value, route.defaults.get(value))
        if raw is None or str(raw) == "":
            return None
        if kind == "proxy":
            parts.append(urllib.parse.quote(str(raw), safe="/"))
        else:
            parts.append(urllib.parse.quote(str(raw), safe=""))
    return normalize_path("/".join(parts))


def _describe(params: dict[str, Any]) -> str:
    return "{" + ", ".join(f"{k}={params[k]!r}" for k in sorted(params)) + "}"


def _split_path(path: str) -> list[str]:
    value = normalize_path(path).lstrip("/")
    if not value:
        return []
    return value.split("/")


def _parse_route_segments(raw_segments: list[str]) -> tuple[list[tuple[str, str]], list[str]] | None:
    segments: list[tuple[str, str]] = []
    canonical: list[str] = []

    for idx, raw in enumerate(raw_segments):
        value = str(raw or "").strip()
        if not value:
            return None

        if value.startswith(":") and len(value) > 1:
            value = "{" + value[1:] + "}"

        if value.startswith("{") and value.endswith("}") and len(value) > 2:
            inner = value[1:-1].strip()
            if inner.endswith("+"):
                name = inner[:-1].strip()
                if not name:
                    return None
                if idx != len(raw_segments) - 1:
                    return None
                segments.append(("proxy", name))
                canonical.append("{" + name + "+}")
                continue

            if not inner:
                return None
            segments.append(("param", inner))
            canonical.append("{" + inner + "}")
            continue

        segments.append(("static", value))
        canonical.append(value)

    return segments, canonical
