"""Interfaces for per-operation result caching.

Defines the contract for storing and retrieving computed results, and for
deriving the key a result is stored under from a call's argument list.
"""

import abc
from typing import Any, Sequence, Tuple

from ..models.common import CacheKey


class ResultCache(abc.ABC):
    """Abstract Base Class for one operation's result store.

    Implementations are not required to be thread-safe; CachedOperation
    serialises access to the cache it owns.
    """

    @abc.abstractmethod
    def lookup(self, key: CacheKey) -> Tuple[bool, Any]:
        """Retrieves a stored result.

        Args:
            key: The argument key to look up.

        Returns:
            A ``(found, value)`` pair. ``found`` distinguishes a stored
            ``None`` from an absent entry.
        """
        pass

    @abc.abstractmethod
    def store(self, key: CacheKey, value: Any) -> None:
        """Stores a result under the given key.

        Args:
            key: The argument key to store the result under.
            value: The result of the real invocation.
        """
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """Removes every stored result."""
        pass

    @abc.abstractmethod
    def __len__(self) -> int:
        pass

    def __contains__(self, key: CacheKey) -> bool:
        found, _ = self.lookup(key)
        return found


class ArgumentKeyStrategy(abc.ABC):
    """Derives a deterministic, hashable cache key from an argument list."""

    @abc.abstractmethod
    def derive(self, args: Sequence[Any]) -> CacheKey:
        """Builds the key for one call.

        Args:
            args: Ordered positional arguments, already validated.

        Returns:
            A hashable key. Equal argument lists must map to equal keys.
        """
        pass

    def __call__(self, args: Sequence[Any]) -> CacheKey:
        return self.derive(args)
