"""Domain Events related to binding and cached invocations.

Delivered to an optional listener passed to the proxy; the default dispatch
only logs them at DEBUG level.
"""

from dataclasses import dataclass, field
import time
from typing import Any, Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class ServiceBound(DomainEvent):
    """Event triggered when the proxy (re)binds to a target."""
    target_type: str
    operation_count: int
    field_count: int
    property_count: int
    rebind: bool = False
    timestamp: float = field(default_factory=time.time)


@dataclass
class OperationCacheHit(DomainEvent):
    """Event triggered when a call is answered from the cache."""
    operation: str
    key: Any
    timestamp: float = field(default_factory=time.time)


@dataclass
class OperationCacheMiss(DomainEvent):
    """Event triggered after a real invocation has been stored."""
    operation: str
    key: Any
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class OperationFailed(DomainEvent):
    """Event triggered when the underlying operation raises."""
    operation: str
    key: Any
    error_type: str
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class MemberWriteRefused(DomainEvent):
    """Event triggered when set_member declines an assignment."""
    member: str
    reason: str
    value_type: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
