from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from requestsim.router import RouteResolver, RouteSet
from requestsim.session import TestSession
from requestsim.util import normalize_path

METHODS = ("GET", "POST", "PUT", "DELETE", "HEAD")


@dataclass(slots=True)
class RequestDefaults:
    host: str = "test.host"
    request_uri: str = "/"
    remote_addr: str = "0.0.0.0"
    port: int = 80


def normalize_request_defaults(defaults: RequestDefaults | None) -> RequestDefaults:
    if defaults is None:
        return RequestDefaults()
    try:
        port = int(defaults.port)
    except (TypeError, ValueError):
        port = 80
    return RequestDefaults(
        host=str(defaults.host or "").strip() or "test.host",
        request_uri=str(defaults.request_uri or "") or "/",
        remote_addr=str(defaults.remote_addr or "").strip() or "0.0.0.0",
        port=port if port > 0 else 80,
    )


class TestRequest:
    """Synthetic request handed to a controller under test.

    Parameters are split three ways: ``path_parameters`` holds what the route
    consumes, the rest goes to ``query_parameters`` for GET requests and to
    ``request_parameters`` (the body) for every other method.
    """

    __test__ = False

    def __init__(
        self,
        query_parameters: dict[str, Any] | None = None,
        request_parameters: dict[str, Any] | None = None,
        session: TestSession | None = None,
        *,
        routes: RouteResolver | None = None,
        defaults: RequestDefaults | None = None,
    ) -> None:
        self.query_parameters: dict[str, Any] = query_parameters if query_parameters is not None else {}
        self.request_parameters: dict[str, Any] = request_parameters if request_parameters is not None else {}
        self.path_parameters: dict[str, Any] = {}
        self.session: TestSession = session if session is not None else TestSession()
        self.routes: RouteResolver = routes if routes is not None else RouteSet()
        self.env: dict[str, Any] = {}
        self.cookies: dict[str, Any] = {}
        self._parameters: dict[str, Any] | None = None

        cfg = normalize_request_defaults(defaults)
        self.host = cfg.host
        self._request_uri: str | None = cfg.request_uri
        self._path: str | None = None
        self.remote_addr = cfg.remote_addr
        self.env["SERVER_PORT"] = cfg.port

    def __repr__(self) -> str:
        return f"TestRequest(method={self.method!r}, request_uri={self.request_uri!r})"

    @property
    def method(self) -> str:
        return str(self.env.get("REQUEST_METHOD") or "GET").strip().upper()

    @method.setter
    def method(self, value: str) -> None:
        method = str(value or "").strip().upper()
        if method not in METHODS:
            raise ValueError(f"unsupported request method: {value!r}")
        self.env["REQUEST_METHOD"] = method

    @property
    def is_get(self) -> bool:
        return self.method == "GET"

    @property
    def is_post(self) -> bool:
        return self.method == "POST"

    @property
    def is_put(self) -> bool:
        return self.method == "PUT"

    @property
    def is_delete(self) -> bool:
        return self.method == "DELETE"

    @property
    def is_head(self) -> bool:
        return self.method == "HEAD"

    @property
    def xml_http_request(self) -> bool:
        return str(self.env.get("HTTP_X_REQUESTED_WITH") or "").lower() == "xmlhttprequest"

    xhr = xml_http_request

    @property
    def port(self) -> int:
        return int(self.env.get("SERVER_PORT") or 0)

    @port.setter
    def port(self, number: Any) -> None:
        self.env["SERVER_PORT"] = int(number)

    @property
    def remote_addr(self) -> str:
        return str(self.env.get("REMOTE_ADDR") or "")

    @remote_addr.setter
    def remote_addr(self, addr: str) -> None:
        self.env["REMOTE_ADDR"] = addr

    @property
    def action(self) -> str | None:
        return self.query_parameters.get("action")

    @action.setter
    def action(self, action_name: str) -> None:
        self.query_parameters.update({"action": action_name})
        self._parameters = None

    @property
    def request_uri(self) -> str:
        if self._request_uri is not None:
            return self._request_uri
        return str(self.env.get("REQUEST_URI") or "")

    @request_uri.setter
    def request_uri(self, uri: str) -> None:
        self._request_uri = uri
        self._path = uri.split("?", 1)[0]

    @property
    def path(self) -> str:
        if self._path is not None:
            return self._path
        uri = self.request_uri
        return normalize_path(uri) if uri else ""

    def set_request_uri_env(self, value: str) -> None:
        """Writes ``REQUEST_URI`` into the env and drops the explicit uri/path overrides."""
        self.env["REQUEST_URI"] = value
        self._request_uri = None
        self._path = None

    @property
    def parameters(self) -> dict[str, Any]:
        if self._parameters is None:
            merged: dict[str, Any] = {}
            merged.update(self.query_parameters)
            merged.update(self.request_parameters)
            merged.update(self.path_parameters)
            self._parameters = merged
        return self._parameters

    def reset_session(self) -> None:
        self.session = TestSession()

    def reset_parameters(self) -> None:
        """Empties all three parameter buckets so the next assignment starts clean."""
        self.query_parameters.clear()
        self.request_parameters.clear()
        self.path_parameters.clear()
        self._parameters = None

    def assign_parameters(self, parameters: dict[Any, Any]) -> None:
        _path, extras = self.routes.generate(dict(parameters))
        extra_keys = {str(key) for key in extras}
        non_path_parameters = self.query_parameters if self.is_get else self.request_parameters
        for key, value in parameters.items():
            if str(key) in extra_keys:
                non_path_parameters[key] = value
            else:
                self.path_parameters[key] = value
        self._parameters = None
