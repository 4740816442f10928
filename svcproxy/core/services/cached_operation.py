"""Memoizing wrapper around one operation of a bound target.

Each call is validated against the operation's declared parameter shape, keyed
by the configured key strategy and answered from the cache when possible.
Only successful results are stored; a failing call leaves its key uncomputed
so the next identical call retries the real operation.

Caching assumes the wrapped operation is safe to memoize: its only
caller-visible effect is its return value, or its other effects may be
suppressed on repeat calls. The proxy cannot verify this; it is the caller's
contract.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Sequence

from svcproxy.domain.events.proxy_events import (
    DomainEvent,
    OperationCacheHit,
    OperationCacheMiss,
    OperationFailed,
)
from svcproxy.domain.exceptions import ArgumentShapeError
from svcproxy.domain.interfaces.cache import ArgumentKeyStrategy, ResultCache
from svcproxy.domain.models.common import CacheKey, OperationName, ParameterShape
from svcproxy.domain.models.members import CacheStats, OperationDescriptor
from svcproxy.infrastructure.cache.key_strategies import DelimitedKeyStrategy
from svcproxy.infrastructure.cache.result_cache import InMemoryResultCache
from svcproxy.utils.type_compat import is_assignable, type_name

logger = logging.getLogger(__name__)

EventListener = Callable[[DomainEvent], None]


class _KeyLock:
    """Lock for one argument key plus the number of callers holding or awaiting it."""

    __slots__ = ("lock", "waiters")

    def __init__(self):
        self.lock = threading.Lock()
        self.waiters = 0


class CachedOperation:
    """Callable handle for one cached operation of the bound target."""

    def __init__(
        self,
        descriptor: OperationDescriptor,
        target_operation: Callable[..., Any],
        key_strategy: Optional[ArgumentKeyStrategy] = None,
        cache: Optional[ResultCache] = None,
        event_listener: Optional[EventListener] = None,
    ):
        """Initializes the cached operation.

        Args:
            descriptor: Name and parameter list of the operation.
            target_operation: The operation bound to the specific target
                instance (e.g. ``target.Add``), not a free function.
            key_strategy: Derives cache keys from argument lists.
            cache: Result store owned exclusively by this operation.
            event_listener: Optional receiver of hit/miss/failure events.
        """
        if not callable(target_operation):
            raise TypeError(f"Operation '{descriptor.name}' is not callable.")
        self.descriptor = descriptor
        self.target_operation = target_operation
        self.key_strategy = key_strategy or DelimitedKeyStrategy()
        self._cache = cache if cache is not None else InMemoryResultCache()
        self._event_listener = event_listener

        # _lock guards the cache, the key-lock table and the counters.
        # A key lock is held for the whole real invocation of that key and
        # stays in the table while any caller still holds or waits on it.
        self._lock = threading.Lock()
        self._key_locks: Dict[CacheKey, _KeyLock] = {}
        self._hits = 0
        self._misses = 0
        self._failures = 0

    # --- Properties ---

    @property
    def name(self) -> OperationName:
        return self.descriptor.name

    @property
    def parameter_shape(self) -> ParameterShape:
        return self.descriptor.parameter_shape

    @property
    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                failures=self._failures,
                size=len(self._cache),
            )

    # --- Invocation ---

    def __call__(self, *args: Any) -> Any:
        return self.invoke(args)

    def invoke(self, args: Sequence[Any]) -> Any:
        """Returns the cached result for `args`, computing it on first use.

        Args:
            args: Ordered positional arguments for the operation.

        Returns:
            The stored result for an equal argument key, or the result of the
            real invocation (which is then stored).

        Raises:
            ArgumentShapeError: If the arity or any argument type does not
                match the parameter shape. Nothing is looked up or invoked.
            Exception: Whatever the underlying operation raises; not cached.
        """
        args = self.validate(args)
        key = self.key_strategy.derive(args)

        found, value = self._lookup(key)
        if found:
            return value

        key_lock = self._enter_key_lock(key)
        try:
            with key_lock.lock:
                # Another caller may have computed this key while we waited
                found, value = self._lookup(key)
                if found:
                    return value
                return self._compute(key, args)
        finally:
            self._leave_key_lock(key, key_lock)

    def is_cached(self, *args: Any) -> bool:
        """True if a result is stored for these arguments (no validation)."""
        key = self.key_strategy.derive(tuple(args))
        with self._lock:
            return key in self._cache

    def validate(self, args: Optional[Sequence[Any]]) -> tuple:
        """Checks `args` against the parameter shape and returns them as a tuple."""
        shape = self.parameter_shape
        if args is None:
            raise ArgumentShapeError(self.name, shape, (), reason="no argument list")
        args = tuple(args)
        if len(args) != len(shape):
            raise ArgumentShapeError(
                self.name, shape, args,
                reason=f"expected {len(shape)} argument(s), got {len(args)}",
            )
        for index, (arg, declared) in enumerate(zip(args, shape)):
            if not is_assignable(arg, declared):
                param = self.descriptor.parameters[index].name
                raise ArgumentShapeError(
                    self.name, shape, args,
                    reason=f"argument {index} ('{param}') must be {type_name(declared)}, got {type(arg).__name__}",
                )
        return args

    # --- Internals ---

    def _lookup(self, key: CacheKey):
        with self._lock:
            found, value = self._cache.lookup(key)
            if found:
                self._hits += 1
        if found:
            logger.debug(f"Cache hit for {self.name}: key={key!r}")
            self._dispatch(OperationCacheHit(operation=self.name, key=key))
        return found, value

    def _enter_key_lock(self, key: CacheKey) -> _KeyLock:
        with self._lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = _KeyLock()
            key_lock.waiters += 1
            return key_lock

    def _leave_key_lock(self, key: CacheKey, key_lock: _KeyLock) -> None:
        with self._lock:
            key_lock.waiters -= 1
            if key_lock.waiters == 0:
                del self._key_locks[key]

    def _compute(self, key: CacheKey, args: tuple) -> Any:
        start_time = time.perf_counter()
        try:
            result = self.target_operation(*args)
        except Exception as e:
            with self._lock:
                self._failures += 1
            logger.warning(f"Operation {self.name} failed for key={key!r}: {type(e).__name__}: {e}")
            self._dispatch(OperationFailed(
                operation=self.name, key=key, error_type=type(e).__name__, error_message=str(e)
            ))
            raise
        latency_ms = (time.perf_counter() - start_time) * 1000

        with self._lock:
            self._cache.store(key, result)
            self._misses += 1
        logger.debug(f"Cache miss for {self.name}: key={key!r}, invoked in {latency_ms:.2f}ms")
        self._dispatch(OperationCacheMiss(operation=self.name, key=key, latency_ms=latency_ms))
        return result

    def _dispatch(self, event: DomainEvent) -> None:
        if self._event_listener is None:
            return
        try:
            self._event_listener(event)
        except Exception:
            logger.exception(f"Event listener failed for {type(event).__name__} of {self.name}")

    def __repr__(self) -> str:
        params = ", ".join(f"{p.name}: {type_name(p.annotation)}" for p in self.descriptor.parameters)
        return f"<CachedOperation {self.name}({params})>"
