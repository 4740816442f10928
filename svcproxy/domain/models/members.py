"""Descriptors for the members of a bound target.

A `ServiceDescription` is the explicit contract the proxy binds against: the
operations it wraps and the state members it forwards. It can be produced by
the target itself (see `DescribedService`) or by the reflection describer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

from .common import MemberName, OperationName, ParameterShape


class MemberKind(str, Enum):
    """Kinds of addressable members, listed in resolution order."""
    OPERATION = "operation"
    FIELD = "field"
    PROPERTY = "property"


# Name lookups try these tables in this order.
RESOLUTION_ORDER: Tuple[MemberKind, ...] = (
    MemberKind.OPERATION,
    MemberKind.FIELD,
    MemberKind.PROPERTY,
)

# State members only; operations are never assignable.
ASSIGNMENT_ORDER: Tuple[MemberKind, ...] = (MemberKind.FIELD, MemberKind.PROPERTY)


@dataclass(frozen=True)
class ParameterSpec:
    """One positional parameter of an operation."""
    name: str
    annotation: Any = Any


@dataclass(frozen=True)
class OperationDescriptor:
    """A synchronous operation with a fixed ordered parameter list."""
    name: OperationName
    parameters: Tuple[ParameterSpec, ...] = ()
    return_type: Any = Any

    @property
    def parameter_shape(self) -> ParameterShape:
        return tuple(p.annotation for p in self.parameters)

    @property
    def arity(self) -> int:
        return len(self.parameters)


@dataclass(frozen=True)
class StateMemberDescriptor:
    """A readable (and usually writable) field or property of the target."""
    name: MemberName
    declared_type: Any = Any
    kind: MemberKind = MemberKind.FIELD
    writable: bool = True


@dataclass(frozen=True)
class ServiceDescription:
    """Everything the proxy needs to know about a target at bind time."""
    operations: Tuple[OperationDescriptor, ...] = ()
    fields: Tuple[StateMemberDescriptor, ...] = ()
    properties: Tuple[StateMemberDescriptor, ...] = ()
    source: str = field(default="explicit", compare=False)

    def operation_map(self) -> Dict[str, OperationDescriptor]:
        return {op.name: op for op in self.operations}

    def field_map(self) -> Dict[str, StateMemberDescriptor]:
        return {f.name: f for f in self.fields}

    def property_map(self) -> Dict[str, StateMemberDescriptor]:
        return {p.name: p for p in self.properties}


@dataclass
class CacheStats:
    """Counters for one CachedOperation."""
    hits: int = 0
    misses: int = 0
    failures: int = 0
    size: int = 0

    @property
    def calls(self) -> int:
        return self.hits + self.misses
