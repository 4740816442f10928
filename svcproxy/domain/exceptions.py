"""Exceptions raised by the proxy core.

`NotBoundError` and `ArgumentShapeError` are hard faults surfaced to the
immediate caller. `MemberNotFoundError` is also an `AttributeError`, so it
reads as an ordinary lookup miss to `getattr(proxy, name, default)` and
`hasattr`. Errors raised by the bound target itself are never wrapped.
"""

from typing import Any, Optional, Sequence


class ServiceProxyError(Exception):
    """Base class for all proxy errors."""


class NotBoundError(ServiceProxyError, RuntimeError):
    """Raised when a member is accessed before a target is bound."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Service proxy is not bound to a service. Pass a target to the constructor or call bind()."
        )


class MemberNotFoundError(ServiceProxyError, AttributeError):
    """Raised when a name resolves to no operation, field or property."""

    def __init__(self, member_name: str, target_type: Optional[str] = None):
        self.member_name = member_name
        self.target_type = target_type
        where = f" on {target_type}" if target_type else ""
        super().__init__(f"Member '{member_name}' not found{where}")


class ArgumentShapeError(ServiceProxyError, TypeError):
    """Raised when call arguments do not match an operation's parameter shape."""

    def __init__(self, operation_name: str, expected: Sequence[Any], received: Sequence[Any], reason: str = ""):
        self.operation_name = operation_name
        self.expected = tuple(expected)
        self.received = tuple(received)
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Incorrect number or type of arguments to operation '{operation_name}'{detail}"
        )
