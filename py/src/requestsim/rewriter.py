from __future__ import annotations

import urllib.parse
from typing import Any, Protocol

from requestsim.util import stringify_keys

# Options that shape the generated URL rather than the route parameters.
_URL_OPTIONS = ("only_path", "anchor", "host", "protocol", "port")


class UrlRewriterFactory(Protocol):
    def __call__(self, request: Any, params: dict[str, Any]) -> Any: ...


class UrlRewriter:
    def __init__(self, request: Any, params: dict[str, Any] | None = None) -> None:
        self.request = request
        self.params = stringify_keys(params)

    def rewrite(self, options: dict[str, Any] | None = None) -> str:
        opts = {**self.params, **stringify_keys(options)}
        url_opts = {key: opts.pop(key) for key in _URL_OPTIONS if key in opts}

        path, extras = self.request.routes.generate(opts)
        query = {key: opts[key] for key in sorted(extras, key=str) if opts.get(key) is not None}

        url = path
        query_string = to_query(query)
        if query_string:
            url += "?" + query_string
        anchor = url_opts.get("anchor")
        if anchor:
            url += "#" + urllib.parse.quote(str(anchor), safe="")
        if url_opts.get("only_path"):
            return url
        return self._root(url_opts) + url

    def _root(self, url_opts: dict[str, Any]) -> str:
        protocol = str(url_opts.get("protocol") or "http").rstrip(":/")
        host = str(url_opts.get("host") or getattr(self.request, "host", "") or "test.host")
        port = url_opts.get("port")
        if port is None:
            port = getattr(self.request, "port", None)
        default_port = 443 if protocol == "https" else 80
        if port and int(port) != default_port:
            host = f"{host}:{int(port)}"
        return f"{protocol}://{host}"


def to_query(params: dict[str, Any]) -> str:
    """Encodes nested parameters with bracketed keys: ``{"post": {"title": "x"}}`` becomes ``post[title]=x``."""
    pairs: list[tuple[str, str]] = []
    for key in sorted(params, key=str):
        _flatten(str(key), params[key], pairs)
    return urllib.parse.urlencode(pairs)


def _flatten(prefix: str, value: Any, pairs: list[tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, dict):
        for key in sorted(value, key=str):
            _flatten(f"{prefix}[{key}]", value[key], pairs)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _flatten(f"{prefix}[]", item, pairs)
    else:
        pairs.append((prefix, str(value)))
