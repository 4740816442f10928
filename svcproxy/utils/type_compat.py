"""Runtime assignability checks against declared (annotation) types.

Plain classes use ``isinstance``. The common ``typing`` constructs are
reduced to something ``isinstance`` understands; anything that cannot be
checked at runtime (unresolved forward references, non-runtime protocols)
accepts every value.
"""

import inspect
import logging
import types
from typing import Any, Literal, TypeVar, Union, get_args, get_origin

logger = logging.getLogger(__name__)

_UnionType = getattr(types, "UnionType", None)  # PEP 604 unions, 3.10+
_NoneType = type(None)


def is_unconstrained(declared: Any) -> bool:
    """True when `declared` places no restriction on values."""
    return (
        declared is Any
        or declared is object
        or declared is inspect.Parameter.empty
        or isinstance(declared, str)  # unresolved forward reference
    )


def is_assignable(value: Any, declared: Any) -> bool:
    """Checks whether `value` may be passed where `declared` is expected.

    Args:
        value: The runtime value.
        declared: A class or a typing annotation.

    Returns:
        True if the value is an instance of (or otherwise assignable to) the
        declared type.
    """
    if is_unconstrained(declared):
        return True

    if declared is None or declared is _NoneType:
        return value is None

    # NewType: check against the wrapped type
    supertype = getattr(declared, "__supertype__", None)
    if supertype is not None:
        return is_assignable(value, supertype)

    if isinstance(declared, TypeVar):
        if declared.__bound__ is not None:
            return is_assignable(value, declared.__bound__)
        if declared.__constraints__:
            return any(is_assignable(value, c) for c in declared.__constraints__)
        return True

    origin = get_origin(declared)
    if origin is Union or (_UnionType is not None and origin is _UnionType):
        return any(is_assignable(value, arg) for arg in get_args(declared))
    if origin is Literal:
        return value in get_args(declared)
    if origin is not None:
        # List[int] -> list, Callable[..., T] -> collections.abc.Callable
        declared = origin

    if not isinstance(declared, type):
        logger.debug(f"Cannot check values against annotation {declared!r}; accepting.")
        return True

    try:
        return isinstance(value, declared)
    except TypeError:
        # Protocols without @runtime_checkable refuse isinstance()
        logger.debug(f"isinstance() not supported for {declared!r}; accepting.")
        return True


def type_name(declared: Any) -> str:
    """Readable name of a declared type for messages."""
    if is_unconstrained(declared):
        return "Any"
    if isinstance(declared, type):
        return declared.__qualname__
    return repr(declared).replace("typing.", "")
