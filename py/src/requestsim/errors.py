from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class HarnessError(Exception):
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class MissingCollaboratorError(HarnessError):
    def __init__(self, name: str) -> None:
        HarnessError.__init__(
            self,
            "harness.missing_collaborator",
            f"{name} is None: make sure it is set before processing a request",
        )
        self.name = str(name)


class RoutingError(HarnessError):
    def __init__(self, message: str, params: dict[str, Any] | None = None) -> None:
        HarnessError.__init__(self, "harness.routing", str(message))
        self.params = dict(params or {})


class CrossScopeRedirectError(HarnessError):
    def __init__(self, controller: str) -> None:
        HarnessError.__init__(
            self,
            "harness.cross_scope_redirect",
            f"can't follow redirects outside of current controller ({controller})",
        )
        self.controller = str(controller)


class TypeMismatchError(HarnessError):
    def __init__(self, message: str) -> None:
        HarnessError.__init__(self, "harness.type_mismatch", str(message))


class UnknownMethodError(HarnessError, AttributeError):
    def __init__(self, name: str) -> None:
        HarnessError.__init__(self, "harness.unknown_method", f"undefined method {name!r}")
        self.name = str(name)


def no_redirect_error() -> HarnessError:
    return HarnessError("harness.no_redirect", "response has no redirect target to follow")
