from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from requestsim.errors import TypeMismatchError
from requestsim.session import TestSession
from requestsim.util import capture_stdout, first_header_value, header_values


@dataclass(slots=True)
class Cookie:
    name: str
    value: Any = ""
    path: str = "/"
    domain: str | None = None
    expires: str | None = None
    secure: bool = False
    http_only: bool = False


@dataclass(slots=True)
class RenderMetadata:
    first_render: str | None = None
    assigns: dict[str, Any] | None = None


@dataclass(slots=True)
class TestResponse:
    """Response produced by a controller under test, plus the predicates used to inspect it.

    Every accessor is safe on a half-filled response: a missing status line
    reads as code 0, missing headers as None and a missing flash as ``{}``.
    """

    __test__ = False

    status: str | None = "200 OK"
    headers: dict[str, Any] = field(default_factory=dict)
    body: Any = ""
    session: Any = field(default_factory=TestSession)
    template: RenderMetadata = field(default_factory=RenderMetadata)
    redirected_to: dict[str, Any] | None = None

    @property
    def response_code(self) -> int:
        if self.status is None:
            return 0
        try:
            return int(str(self.status)[:3])
        except ValueError:
            return 0

    @property
    def success(self) -> bool:
        return self.response_code == 200

    @property
    def missing(self) -> bool:
        return self.response_code == 404

    @property
    def redirect(self) -> bool:
        return 300 <= self.response_code <= 399

    @property
    def error(self) -> bool:
        return 500 <= self.response_code <= 599

    server_error = error

    @property
    def redirect_url(self) -> str | None:
        if not self.redirect:
            return None
        return first_header_value(self.headers, "location")

    def redirect_url_match(self, pattern: str | re.Pattern[str] | None) -> bool:
        url = self.redirect_url
        if url is None:
            return False
        compiled = _compile_pattern(pattern)
        if compiled is None:
            return False
        return compiled.search(str(url)) is not None

    def rendered_file(self, with_controller: bool = False) -> str | None:
        first_render = self.template.first_render if self.template is not None else None
        if first_render is None:
            return None
        if not with_controller:
            return first_render
        return first_render.rstrip("/").split("/")[-1] or first_render

    @property
    def rendered_with_file(self) -> bool:
        return self.rendered_file() is not None

    @property
    def flash(self) -> dict[str, Any]:
        return _session_get(self.session, "flash") or {}

    @property
    def has_flash(self) -> bool:
        return bool(_session_get(self.session, "flash"))

    @property
    def has_flash_with_contents(self) -> bool:
        return bool(self.flash)

    def has_flash_object(self, name: str | None = None) -> bool:
        return self.flash.get(name) is not None

    def has_session_object(self, name: str | None = None) -> bool:
        return _session_get(self.session, name) is not None

    @property
    def template_objects(self) -> dict[str, Any]:
        if self.template is None:
            return {}
        return self.template.assigns or {}

    def has_template_object(self, name: str | None = None) -> bool:
        return self.template_objects.get(name) is not None

    @property
    def cookies(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for cookie in header_values(self.headers, "cookie"):
            out[_cookie_name(cookie)] = cookie
        return out

    def binary_content(self) -> str:
        if not callable(self.body):
            raise TypeMismatchError(f"response body is not callable: {self.body!r}")
        return capture_stdout(self.body)


def _compile_pattern(pattern: Any) -> re.Pattern[str] | None:
    if isinstance(pattern, re.Pattern):
        return pattern
    if isinstance(pattern, str):
        return re.compile(pattern)
    return None


def _session_get(session: Any, key: Any) -> Any:
    if session is None:
        return None
    return session.get(key)


def _cookie_name(cookie: Any) -> str:
    if isinstance(cookie, dict):
        return str(cookie.get("name") or "")
    return str(getattr(cookie, "name", "") or "")
