from __future__ import annotations

from typing import Any, Callable, Protocol

from requestsim.document import Document, DocumentCache, DocumentFactory, Node
from requestsim.errors import (
    CrossScopeRedirectError,
    MissingCollaboratorError,
    RoutingError,
    UnknownMethodError,
    no_redirect_error,
)
from requestsim.logger import StructuredLogger, get_logger
from requestsim.request import RequestDefaults, TestRequest
from requestsim.response import TestResponse
from requestsim.rewriter import UrlRewriter, UrlRewriterFactory
from requestsim.router import RouteResolver, RouteSet
from requestsim.session import FlashHash, TestSession
from requestsim.util import stringify_keys


class Controller(Protocol):
    controller_path: str

    def process(self, request: TestRequest, response: TestResponse) -> Any: ...


class TestHarness:
    """Drives one controller through simulated requests.

    Each verb call fills the shared ``request``, hands it to
    ``controller.process`` together with ``response`` and leaves both in
    place for inspection. Attribute lookups the harness does not define fall
    back to the controller, then to the named-route helpers.
    """

    __test__ = False

    def __init__(
        self,
        controller: Controller | None = None,
        request: TestRequest | None = None,
        response: TestResponse | None = None,
        *,
        routes: RouteResolver | None = None,
        rewriter: UrlRewriterFactory | None = None,
        document_factory: DocumentFactory | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.controller = controller
        self.request = request
        self.response = response
        self.routes = routes if routes is not None else getattr(request, "routes", None) or RouteSet()
        self.rewriter: UrlRewriterFactory = rewriter or UrlRewriter
        self.documents = DocumentCache(document_factory)
        self.helpers: dict[str, Callable[..., Any]] = {}
        self._logger = logger
        self._built_request_uri: str | None = None

    @property
    def logger(self) -> StructuredLogger:
        return self._logger if self._logger is not None else get_logger()

    def process(
        self,
        action: Any,
        params: dict[Any, Any] | None = None,
        session: dict[str, Any] | None = None,
        flash: dict[str, Any] | None = None,
    ) -> TestResponse:
        for name in ("controller", "request", "response"):
            if getattr(self, name) is None:
                raise MissingCollaboratorError(name)

        self.documents.invalidate()
        self.request.reset_parameters()
        self.request.env.setdefault("REQUEST_METHOD", "GET")
        action_name = str(action)
        self.request.action = action_name

        parameters = dict(params or {})
        parameters["controller"] = self._controller_path()
        parameters["action"] = action_name
        try:
            self.request.assign_parameters(parameters)
        except RoutingError as exc:
            self.logger.warn("harness.routing_failed", {"action": action_name, "error": str(exc)})
            raise

        if session is not None:
            self.request.session = TestSession(session)
        if flash is not None:
            self.request.session["flash"] = FlashHash(flash)
        self._build_request_uri(action_name, parameters)

        self.logger.debug(
            "harness.process",
            {
                "method": self.request.method,
                "controller": parameters["controller"],
                "action": action_name,
                "request_uri": self.request.request_uri,
            },
        )
        self.response.session = self.request.session
        self.controller.process(self.request, self.response)
        return self.response

    def get(
        self,
        action: Any,
        params: dict[Any, Any] | None = None,
        session: dict[str, Any] | None = None,
        flash: dict[str, Any] | None = None,
    ) -> TestResponse:
        return self._dispatch("GET", action, params, session, flash)

    def post(
        self,
        action: Any,
        params: dict[Any, Any] | None = None,
        session: dict[str, Any] | None = None,
        flash: dict[str, Any] | None = None,
    ) -> TestResponse:
        return self._dispatch("POST", action, params, session, flash)

    def put(
        self,
        action: Any,
        params: dict[Any, Any] | None = None,
        session: dict[str, Any] | None = None,
        flash: dict[str, Any] | None = None,
    ) -> TestResponse:
        return self._dispatch("PUT", action, params, session, flash)

    def delete(
        self,
        action: Any,
        params: dict[Any, Any] | None = None,
        session: dict[str, Any] | None = None,
        flash: dict[str, Any] | None = None,
    ) -> TestResponse:
        return self._dispatch("DELETE", action, params, session, flash)

    def head(
        self,
        action: Any,
        params: dict[Any, Any] | None = None,
        session: dict[str, Any] | None = None,
        flash: dict[str, Any] | None = None,
    ) -> TestResponse:
        return self._dispatch("HEAD", action, params, session, flash)

    def xml_http_request(
        self,
        request_method: str,
        action: Any,
        params: dict[Any, Any] | None = None,
        session: dict[str, Any] | None = None,
        flash: dict[str, Any] | None = None,
    ) -> TestResponse:
        verb = str(request_method or "").strip().lower()
        if verb not in {"get", "post", "put", "delete", "head"}:
            raise ValueError(f"unsupported request method: {request_method!r}")
        self._require_request().env["HTTP_X_REQUESTED_WITH"] = "XMLHttpRequest"
        return getattr(self, verb)(action, params, session, flash)

    xhr = xml_http_request

    def follow_redirect(self) -> TestResponse:
        target = stringify_keys(getattr(self.response, "redirected_to", None))
        if not target:
            raise no_redirect_error()
        controller = target.pop("controller", None)
        if controller and str(controller) != self._controller_path():
            raise CrossScopeRedirectError(str(controller))
        action = target.pop("action", None) or "index"
        self.logger.info("harness.follow_redirect", {"action": str(action)})
        return self.get(action, target)

    def assigns(self, key: Any = None) -> Any:
        objects = self.response.template_objects
        if key is None:
            return objects
        return objects.get(str(key))

    @property
    def session(self) -> Any:
        return self.response.session

    @property
    def flash(self) -> dict[str, Any]:
        return self.response.flash

    @property
    def cookies(self) -> dict[str, Any]:
        return self.response.cookies

    @property
    def redirect_to_url(self) -> str | None:
        return self.response.redirect_url

    @property
    def html_document(self) -> Document:
        return self.documents.get(self.response.body)

    def find_tag(self, conditions: dict[str, Any] | None = None, **kwargs: Any) -> Node | None:
        return self.html_document.find(conditions, **kwargs)

    def find_all_tag(self, conditions: dict[str, Any] | None = None, **kwargs: Any) -> list[Node]:
        return self.html_document.find_all(conditions, **kwargs)

    def register_helper(self, name: str, helper: Callable[..., Any]) -> None:
        self.helpers[str(name)] = helper

    def __getattr__(self, name: str) -> Any:
        # Only reached for names the harness itself does not define, or for a
        # property whose getter raised AttributeError.
        if name.startswith("__") or name in {"controller", "helpers", "routes"}:
            raise AttributeError(name)
        attr = getattr(type(self), name, None)
        if isinstance(attr, property):
            return attr.__get__(self, type(self))
        controller = self.__dict__.get("controller")
        if controller is not None and hasattr(controller, name):
            return getattr(controller, name)
        helper = self.__dict__.get("helpers", {}).get(name)
        if helper is not None:
            return helper
        helper = self._named_route_helper(name)
        if helper is not None:
            return helper
        raise UnknownMethodError(name)

    def _dispatch(
        self,
        method: str,
        action: Any,
        params: dict[Any, Any] | None,
        session: dict[str, Any] | None,
        flash: dict[str, Any] | None,
    ) -> TestResponse:
        self._require_request().env["REQUEST_METHOD"] = method
        return self.process(action, params, session, flash)

    def _require_request(self) -> TestRequest:
        if self.request is None:
            raise MissingCollaboratorError("request")
        return self.request

    def _controller_path(self) -> str:
        path = getattr(self.controller, "controller_path", None)
        if callable(path):
            path = path()
        return str(path or "")

    def _build_request_uri(self, action: str, params: dict[Any, Any]) -> None:
        # A URI the caller put in the env wins; one built for an earlier call is rebuilt.
        current = self.request.env.get("REQUEST_URI")
        if current and current != self._built_request_uri:
            return
        options: dict[str, Any] = {**params, "only_path": True, "action": action}
        rewrite_options = getattr(self.controller, "rewrite_options", None)
        if callable(rewrite_options):
            options = rewrite_options(options)
        url = self.rewriter(self.request, params)
        self._built_request_uri = url.rewrite(options)
        self.request.set_request_uri_env(self._built_request_uri)

    def _named_route_helper(self, name: str) -> Callable[..., str] | None:
        # Looked up on every access so routes added after construction are visible.
        named_routes = getattr(self.__dict__.get("routes"), "named_routes", None)
        if not callable(named_routes):
            return None
        for suffix, only_path in (("_path", True), ("_url", False)):
            if not name.endswith(suffix):
                continue
            route = named_routes().get(name[: -len(suffix)])
            if route is not None:
                return self._route_helper(route.defaults, only_path=only_path)
        return None

    def _route_helper(self, defaults: dict[str, Any], *, only_path: bool) -> Callable[..., str]:
        def helper(**params: Any) -> str:
            request = self._require_request()
            options = {**defaults, **params, "only_path": only_path}
            return self.rewriter(request, {}).rewrite(options)

        return helper


def create_test_harness(
    controller: Controller | None = None,
    *,
    routes: RouteResolver | None = None,
    defaults: RequestDefaults | None = None,
    session: TestSession | None = None,
    rewriter: UrlRewriterFactory | None = None,
    document_factory: DocumentFactory | None = None,
    logger: StructuredLogger | None = None,
) -> TestHarness:
    route_set = routes if routes is not None else RouteSet()
    return TestHarness(
        controller,
        TestRequest(session=session, routes=route_set, defaults=defaults),
        TestResponse(),
        routes=route_set,
        rewriter=rewriter,
        document_factory=document_factory,
        logger=logger,
    )
