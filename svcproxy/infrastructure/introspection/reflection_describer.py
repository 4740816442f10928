"""Builds a ServiceDescription for a target using Python's own introspection.

Targets implementing `DescribedService` are asked for their explicit
description. Everything else is described from its class:

* operations: public, synchronous methods, minus accessor-style names
  (``get_``/``set_``/``add_``/``remove_`` prefixes) and names ending in the
  async suffix;
* properties: ``property`` objects on the class (read-only without a setter)
  and ``functools.cached_property`` members, which are never evaluated here;
* fields: public class annotations, dataclass fields and public instance
  attributes that are not callables. Fields of a frozen dataclass are
  read-only.

Parameter and member types come from ``typing.get_type_hints``; missing
annotations mean "any value".
"""

import dataclasses
import functools
import inspect
import logging
import typing
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from svcproxy.domain.interfaces.service_description import DescribedService, ServiceDescriber
from svcproxy.domain.models.common import MemberName, OperationName
from svcproxy.domain.models.members import (
    MemberKind,
    OperationDescriptor,
    ParameterSpec,
    ServiceDescription,
    StateMemberDescriptor,
)

logger = logging.getLogger(__name__)

DEFAULT_ACCESSOR_PREFIXES: Tuple[str, ...] = ("get_", "set_", "add_", "remove_")
DEFAULT_ASYNC_SUFFIX = "async"

_POSITIONAL_KINDS = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def _resolve_hints(obj: Any) -> Dict[str, Any]:
    """Returns resolved type hints, or the raw annotations if resolution fails."""
    try:
        return typing.get_type_hints(obj)
    except Exception as e:
        # Forward references to names that are not importable here
        logger.debug(f"Could not resolve type hints for {obj!r}: {e}")
        return dict(getattr(obj, "__annotations__", {}) or {})


class ReflectionDescriber(ServiceDescriber):
    """Describes arbitrary objects by class-level introspection."""

    def __init__(
        self,
        accessor_prefixes: Sequence[str] = DEFAULT_ACCESSOR_PREFIXES,
        async_suffix: str = DEFAULT_ASYNC_SUFFIX,
    ):
        self.accessor_prefixes = tuple(p.lower() for p in accessor_prefixes)
        self.async_suffix = (async_suffix or "").lower()

    # --- Name filters ---

    def is_accessor_name(self, name: str) -> bool:
        return name.lower().startswith(self.accessor_prefixes) if self.accessor_prefixes else False

    def is_async_name(self, name: str) -> bool:
        return bool(self.async_suffix) and name.lower().endswith(self.async_suffix)

    def is_excluded_operation_name(self, name: str) -> bool:
        return self.is_accessor_name(name) or self.is_async_name(name)

    # --- ServiceDescriber ---

    def describe(self, target: Any) -> ServiceDescription:
        if target is None:
            raise ValueError("Cannot describe None.")
        if isinstance(target, DescribedService):
            description = target.describe()
            logger.debug(f"Using explicit description supplied by {type(target).__name__}")
            kept = tuple(op for op in description.operations if not self.is_excluded_operation_name(op.name))
            if len(kept) != len(description.operations):
                description = dataclasses.replace(description, operations=kept)
            return description

        cls = type(target)
        operations: List[OperationDescriptor] = []
        properties: List[StateMemberDescriptor] = []
        callable_names = set()

        for name in sorted(dir(cls)):
            if name.startswith("_"):
                continue
            static = inspect.getattr_static(cls, name)
            if isinstance(static, (property, functools.cached_property)):
                properties.append(self._describe_property(name, static))
                continue
            func = self._unwrap_callable(static)
            if func is None:
                continue
            callable_names.add(name)
            if self.is_excluded_operation_name(name):
                logger.debug(f"Skipping accessor/async-style member: {name}")
                continue
            if inspect.iscoroutinefunction(func):
                logger.debug(f"Skipping coroutine operation: {name}")
                continue
            descriptor = self._describe_operation(name, getattr(target, name))
            if descriptor is not None:
                operations.append(descriptor)

        property_names = {p.name for p in properties}
        fields = self._describe_fields(target, cls, skip=callable_names | property_names)

        description = ServiceDescription(
            operations=tuple(operations),
            fields=tuple(fields),
            properties=tuple(properties),
            source="reflection",
        )
        logger.debug(
            f"Described {cls.__name__}: operations={[o.name for o in operations]}, "
            f"fields={[f.name for f in fields]}, properties={sorted(property_names)}"
        )
        return description

    # --- Helpers ---

    @staticmethod
    def _unwrap_callable(static: Any) -> Optional[Any]:
        if isinstance(static, (staticmethod, classmethod)):
            return static.__func__
        if not callable(static):
            # Non-data descriptors such as cached_property pass ismethoddescriptor
            return None
        if inspect.isfunction(static) or inspect.ismethoddescriptor(static) or inspect.isbuiltin(static):
            return static
        return None

    def _describe_operation(self, name: str, bound: Any) -> Optional[OperationDescriptor]:
        try:
            signature = inspect.signature(bound)
        except (TypeError, ValueError) as e:
            logger.debug(f"No signature available for {name}; skipping: {e}")
            return None

        required_keyword_only = [
            p.name for p in signature.parameters.values()
            if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
        ]
        if required_keyword_only:
            logger.debug(f"Skipping {name}: required keyword-only parameters {required_keyword_only}")
            return None

        hints = _resolve_hints(bound)
        parameters = tuple(
            ParameterSpec(name=p.name, annotation=hints.get(p.name, p.annotation))
            for p in signature.parameters.values()
            if p.kind in _POSITIONAL_KINDS
        )
        return OperationDescriptor(
            name=OperationName(name),
            parameters=parameters,
            return_type=hints.get("return", signature.return_annotation),
        )

    @staticmethod
    def _describe_property(name: str, prop: Any) -> StateMemberDescriptor:
        if isinstance(prop, functools.cached_property):
            # Assigning replaces the cached value on the instance
            getter, writable = prop.func, True
        else:
            getter, writable = prop.fget, prop.fset is not None
        declared = Any
        if getter is not None:
            declared = _resolve_hints(getter).get("return", Any)
        return StateMemberDescriptor(
            name=MemberName(name),
            declared_type=declared,
            kind=MemberKind.PROPERTY,
            writable=writable,
        )

    @staticmethod
    def _describe_fields(target: Any, cls: type, skip: Iterable[str]) -> List[StateMemberDescriptor]:
        skip = set(skip)
        declared: Dict[str, Any] = {}

        for name, hint in _resolve_hints(cls).items():
            if typing.get_origin(hint) is typing.ClassVar or hint is typing.ClassVar:
                continue
            declared[name] = hint

        frozen = False
        if dataclasses.is_dataclass(cls):
            frozen = cls.__dataclass_params__.frozen
            for f in dataclasses.fields(cls):
                declared.setdefault(f.name, f.type)

        instance_attrs = getattr(target, "__dict__", {}) or {}
        for name, value in instance_attrs.items():
            if name in declared or callable(value):
                continue
            declared[name] = Any

        return [
            StateMemberDescriptor(
                name=MemberName(name), declared_type=hint, kind=MemberKind.FIELD, writable=not frozen
            )
            for name, hint in sorted(declared.items())
            if not name.startswith("_") and name not in skip
        ]
