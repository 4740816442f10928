"""Argument key strategies.

`DelimitedKeyStrategy` is the default: each argument's ``str()`` joined with
``&``. It is cheap and readable but not collision-free: an argument whose text
contains the delimiter, or two distinct values with the same string form
(``1`` and ``"1"``), produce the same key and therefore share a cached result.
`CompositeKeyStrategy` and `HashedKeyStrategy` keep argument boundaries and
types apart for callers who need that guarantee.
"""

import hashlib
import logging
from typing import Any, Sequence, Tuple

from svcproxy.domain.interfaces.cache import ArgumentKeyStrategy
from svcproxy.domain.models.common import KEY_DELIMITER, ArgumentKey

logger = logging.getLogger(__name__)


class DelimitedKeyStrategy(ArgumentKeyStrategy):
    """Joins the textual form of each argument with a delimiter (no escaping)."""

    def __init__(self, delimiter: str = KEY_DELIMITER):
        self.delimiter = delimiter if delimiter is not None else ""

    def derive(self, args: Sequence[Any]) -> ArgumentKey:
        return ArgumentKey(self.delimiter.join(str(arg) for arg in args))

    def __repr__(self) -> str:
        return f"DelimitedKeyStrategy(delimiter={self.delimiter!r})"


def _freeze(value: Any) -> Any:
    """Turns common unhashable containers into hashable equivalents."""
    if isinstance(value, dict):
        return ("dict", tuple(sorted(((_freeze(k), _freeze(v)) for k, v in value.items()), key=repr)))
    if isinstance(value, (list, tuple)):
        return (type(value).__name__, tuple(_freeze(v) for v in value))
    if isinstance(value, (set, frozenset)):
        return ("set", tuple(sorted((_freeze(v) for v in value), key=repr)))
    try:
        hash(value)
    except TypeError:
        # Unhashable and not a known container; fall back to its repr
        return ("repr", repr(value))
    return value


class CompositeKeyStrategy(ArgumentKeyStrategy):
    """Structured key: a tuple of (type name, frozen value) per argument."""

    def derive(self, args: Sequence[Any]) -> Tuple[Any, ...]:
        return tuple((type(arg).__qualname__, _freeze(arg)) for arg in args)

    def __repr__(self) -> str:
        return "CompositeKeyStrategy()"


class HashedKeyStrategy(ArgumentKeyStrategy):
    """Content hash of each argument's type and repr, length-prefixed."""

    def __init__(self, algorithm: str = "sha256"):
        # Fail early on an unknown algorithm name
        hashlib.new(algorithm)
        self.algorithm = algorithm

    def derive(self, args: Sequence[Any]) -> str:
        digest = hashlib.new(self.algorithm)
        for arg in args:
            token = f"{type(arg).__module__}.{type(arg).__qualname__}:{arg!r}".encode()
            digest.update(len(token).to_bytes(8, "big"))
            digest.update(token)
        return digest.hexdigest()

    def __repr__(self) -> str:
        return f"HashedKeyStrategy(algorithm={self.algorithm!r})"


KEY_STRATEGIES = {
    "delimited": DelimitedKeyStrategy,
    "composite": CompositeKeyStrategy,
    "hashed": HashedKeyStrategy,
}


def get_key_strategy(name: str, delimiter: str = KEY_DELIMITER) -> ArgumentKeyStrategy:
    """Builds a key strategy by its configured name.

    Raises:
        ValueError: If `name` is not a known strategy.
    """
    normalized = (name or "delimited").strip().lower()
    if normalized not in KEY_STRATEGIES:
        raise ValueError(
            f"Unknown key strategy '{name}'. Expected one of: {', '.join(sorted(KEY_STRATEGIES))}"
        )
    if normalized == "delimited":
        return DelimitedKeyStrategy(delimiter)
    logger.debug(f"Using {normalized} argument key strategy")
    return KEY_STRATEGIES[normalized]()
