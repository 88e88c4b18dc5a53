"""requestsim: drive controllers through simulated requests and inspect the responses."""

from __future__ import annotations

from requestsim.document import DocumentCache, HtmlDocument, Node
from requestsim.errors import (
    CrossScopeRedirectError,
    HarnessError,
    MissingCollaboratorError,
    RoutingError,
    TypeMismatchError,
    UnknownMethodError,
)
from requestsim.harness import Controller, TestHarness, create_test_harness
from requestsim.logger import NoOpLogger, RecordingLogger, StructuredLogger, get_logger, set_logger
from requestsim.request import RequestDefaults, TestRequest
from requestsim.response import Cookie, RenderMetadata, TestResponse
from requestsim.rewriter import UrlRewriter
from requestsim.router import Route, RouteResolver, RouteSet
from requestsim.session import FlashHash, TestSession
from requestsim.util import capture_stdout

__all__ = [
    "Controller",
    "Cookie",
    "CrossScopeRedirectError",
    "DocumentCache",
    "FlashHash",
    "HarnessError",
    "HtmlDocument",
    "MissingCollaboratorError",
    "Node",
    "NoOpLogger",
    "RecordingLogger",
    "RenderMetadata",
    "RequestDefaults",
    "Route",
    "RouteResolver",
    "RouteSet",
    "RoutingError",
    "StructuredLogger",
    "TestHarness",
    "TestRequest",
    "TestResponse",
    "TestSession",
    "TypeMismatchError",
    "UnknownMethodError",
    "UrlRewriter",
    "capture_stdout",
    "create_test_harness",
    "get_logger",
    "set_logger",
]
