"""Transparent memoizing proxy in front of a service client.

The proxy binds to one target, wraps each of its operations in a
CachedOperation and forwards reads/writes of its fields and properties
unchanged. Members are reachable by name (`get_member`, `set_member`,
`invoke`) or with attribute syntax::

    proxy = ServiceProxy(calculator)
    proxy.Add(2, 3)        # real call
    proxy.Add(2, 3)        # served from the cache
    proxy.Timeout = 45     # written through to calculator.Timeout

Names resolve against operations, then fields, then properties. Attributes
of the proxy itself (``bind``, ``get_member``, ...) take precedence over
target members in attribute syntax; use `get_member` to reach a target member
with one of those names.
"""

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from svcproxy.core.services.cached_operation import CachedOperation, EventListener
from svcproxy.domain.events.proxy_events import DomainEvent, MemberWriteRefused, ServiceBound
from svcproxy.domain.exceptions import MemberNotFoundError, NotBoundError
from svcproxy.domain.interfaces.cache import ArgumentKeyStrategy, ResultCache
from svcproxy.domain.interfaces.service_description import ServiceDescriber
from svcproxy.domain.models.members import (
    ASSIGNMENT_ORDER,
    RESOLUTION_ORDER,
    CacheStats,
    MemberKind,
    StateMemberDescriptor,
)
from svcproxy.infrastructure.cache.key_strategies import DelimitedKeyStrategy
from svcproxy.infrastructure.cache.result_cache import InMemoryResultCache
from svcproxy.infrastructure.introspection.reflection_describer import ReflectionDescriber
from svcproxy.utils.type_compat import is_assignable, type_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _MemberTables:
    """Immutable snapshot of one binding. Replaced wholesale on rebind."""
    target: Any
    operations: Mapping[str, CachedOperation]
    fields: Mapping[str, StateMemberDescriptor]
    properties: Mapping[str, StateMemberDescriptor]

    def table(self, kind: MemberKind) -> Mapping[str, Any]:
        if kind is MemberKind.OPERATION:
            return self.operations
        if kind is MemberKind.FIELD:
            return self.fields
        return self.properties


class ServiceProxy:
    """Memoizing, name-addressable proxy over a bound service instance."""

    def __init__(
        self,
        target: Any = None,
        *,
        key_strategy: Optional[ArgumentKeyStrategy] = None,
        cache_factory: Optional[Callable[[], ResultCache]] = None,
        describer: Optional[ServiceDescriber] = None,
        event_listener: Optional[EventListener] = None,
    ):
        """Initializes the proxy, binding immediately if a target is given.

        Args:
            target: Optional service instance to bind to.
            key_strategy: Argument key strategy shared by all operations.
            cache_factory: Creates one fresh ResultCache per operation.
            describer: Produces the member description of a target.
            event_listener: Optional receiver of proxy domain events.
        """
        _set = object.__setattr__
        _set(self, "_key_strategy", key_strategy or DelimitedKeyStrategy())
        _set(self, "_cache_factory", cache_factory or InMemoryResultCache)
        _set(self, "_describer", describer or ReflectionDescriber())
        _set(self, "_event_listener", event_listener)
        _set(self, "_lock", threading.RLock())
        _set(self, "_tables", None)

        if target is not None:
            self.bind(target)

    # --- Binding ---

    def bind(self, target: Any) -> None:
        """Binds the proxy to `target`, discarding any previous binding.

        The new member tables are built completely before they replace the old
        ones, so concurrent readers see either the old or the new binding.
        Every cached result of the previous binding is dropped. Calls already
        in flight against the old binding are not waited for.

        Raises:
            ValueError: If `target` is None.
        """
        if target is None:
            raise ValueError("Cannot bind the proxy to None.")

        description = self._describer.describe(target)
        operations: Dict[str, CachedOperation] = {}
        for descriptor in description.operations:
            operations[descriptor.name] = CachedOperation(
                descriptor,
                getattr(target, descriptor.name),
                key_strategy=self._key_strategy,
                cache=self._cache_factory(),
                event_listener=self._dispatch_event,
            )

        tables = _MemberTables(
            target=target,
            operations=MappingProxyType(operations),
            fields=MappingProxyType(description.field_map()),
            properties=MappingProxyType(description.property_map()),
        )

        with self._lock:
            rebind = self._tables is not None
            object.__setattr__(self, "_tables", tables)

        target_type = type(target).__name__
        logger.info(
            f"{'Rebound' if rebind else 'Bound'} service proxy to {target_type}: "
            f"{len(tables.operations)} operations, {len(tables.fields)} fields, "
            f"{len(tables.properties)} properties ({description.source} description)"
        )
        self._dispatch_event(ServiceBound(
            target_type=target_type,
            operation_count=len(tables.operations),
            field_count=len(tables.fields),
            property_count=len(tables.properties),
            rebind=rebind,
        ))

    @property
    def is_bound(self) -> bool:
        return self._tables is not None

    @property
    def bound_target(self) -> Any:
        tables = self._tables
        return tables.target if tables is not None else None

    def _require_tables(self) -> _MemberTables:
        tables = self._tables
        if tables is None:
            raise NotBoundError()
        return tables

    # --- Member access ---

    def get_member(self, name: str) -> Any:
        """Resolves `name` to an operation handle or a live state value.

        Returns:
            The CachedOperation for an operation (call it to invoke), or the
            current value of the field/property read from the bound target.

        Raises:
            NotBoundError: If no target is bound.
            MemberNotFoundError: If `name` matches no member, or names a
                declared field that has no value on the target.
        """
        tables = self._require_tables()
        for kind in RESOLUTION_ORDER:
            table = tables.table(kind)
            if name in table:
                if kind is MemberKind.OPERATION:
                    return table[name]
                try:
                    return getattr(tables.target, name)
                except AttributeError as e:
                    # Declared but never assigned on the target
                    raise MemberNotFoundError(name, type(tables.target).__name__) from e
        raise MemberNotFoundError(name, type(tables.target).__name__)

    def set_member(self, name: str, value: Any) -> bool:
        """Writes `value` to a field or property of the bound target.

        Assignment is best effort: an unknown name, a read-only property or a
        value that is not assignable to the member's declared type leaves the
        target untouched and returns False instead of raising. So does a write
        the target itself rejects with `AttributeError`.

        Returns:
            True if the value was written through, False if refused.

        Raises:
            NotBoundError: If no target is bound.
        """
        tables = self._require_tables()
        for kind in ASSIGNMENT_ORDER:
            member = tables.table(kind).get(name)
            if member is None:
                continue
            if not member.writable:
                return self._refuse_write(name, value, f"{kind.value} is read-only")
            if not is_assignable(value, member.declared_type):
                return self._refuse_write(
                    name, value,
                    f"{type(value).__name__} is not assignable to {type_name(member.declared_type)}",
                )
            try:
                setattr(tables.target, name, value)
            except AttributeError as e:
                return self._refuse_write(name, value, f"target rejected the write: {e}")
            logger.debug(f"Set {kind.value} {name} on {type(tables.target).__name__}")
            return True

        if name in tables.operations:
            return self._refuse_write(name, value, "operations are not assignable")
        return self._refuse_write(name, value, "member not found")

    def invoke(self, name: str, *args: Any) -> Any:
        """Invokes operation `name` through its cache.

        Raises:
            NotBoundError: If no target is bound.
            MemberNotFoundError: If `name` is not an operation.
            ArgumentShapeError: If the arguments do not fit the operation.
        """
        tables = self._require_tables()
        operation = tables.operations.get(name)
        if operation is None:
            raise MemberNotFoundError(name, type(tables.target).__name__)
        return operation.invoke(args)

    def _refuse_write(self, name: str, value: Any, reason: str) -> bool:
        logger.debug(f"Refused write to {name}: {reason}")
        self._dispatch_event(MemberWriteRefused(member=name, reason=reason, value_type=type(value).__name__))
        return False

    # --- Introspection ---

    @property
    def operation_names(self) -> List[str]:
        return list(self._require_tables().operations)

    @property
    def field_names(self) -> List[str]:
        return list(self._require_tables().fields)

    @property
    def property_names(self) -> List[str]:
        return list(self._require_tables().properties)

    def cache_stats(self) -> Dict[str, CacheStats]:
        """Per-operation hit/miss counters of the current binding."""
        return {name: op.stats for name, op in self._require_tables().operations.items()}

    def _dispatch_event(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if self._event_listener is None:
            return
        try:
            self._event_listener(event)
        except Exception:
            logger.exception(f"Event listener failed for {type(event).__name__}")

    # --- Attribute syntax ---

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get_member(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        if not self.set_member(name, value):
            raise AttributeError(
                f"Cannot assign {type(value).__name__} to member '{name}' of the bound service"
            )

    def __contains__(self, name: object) -> bool:
        tables = self._tables
        if tables is None or not isinstance(name, str):
            return False
        return any(name in tables.table(kind) for kind in RESOLUTION_ORDER)

    def __dir__(self) -> List[str]:
        names = set(super().__dir__())
        tables = self._tables
        if tables is not None:
            for kind in RESOLUTION_ORDER:
                names.update(tables.table(kind))
        return sorted(names)

    def __repr__(self) -> str:
        tables = self._tables
        if tables is None:
            return "<ServiceProxy (unbound)>"
        return (
            f"<ServiceProxy bound to {type(tables.target).__name__}: "
            f"{len(tables.operations)} operations, {len(tables.fields)} fields, "
            f"{len(tables.properties)} properties>"
        )
