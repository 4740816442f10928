import inspect
import sys
import pytest
from typing import Any, Callable, Dict, List, Literal, NewType, Optional, Protocol, TypeVar, Union

from svcproxy.utils.type_compat import is_assignable, type_name

UserId = NewType("UserId", int)
Number = TypeVar("Number", bound=float)
Scalar = TypeVar("Scalar", int, str)


class Closeable(Protocol):
    def close(self) -> None: ...


class Base:
    pass


class Derived(Base):
    pass


@pytest.mark.parametrize(
    "value, declared, expected",
    [
        (1, int, True),
        ("1", int, False),
        (True, int, True),
        (Derived(), Base, True),
        (Base(), Derived, False),
        (None, int, False),
        (None, Optional[int], True),
        ("x", Union[int, str], True),
        (1.0, Union[int, str], False),
        ([1], List[int], True),
        ((1,), List[int], False),
        ({}, Dict[str, int], True),
        (len, Callable[..., int], True),
        (5, UserId, True),
        ("5", UserId, False),
        ("r", Literal["r", "w"], True),
        ("x", Literal["r", "w"], False),
        (1.5, Number, True),
        ("a", Number, False),
        ("a", Scalar, True),
        (1.5, Scalar, False),
        (object(), Any, True),
        (object(), object, True),
        (object(), inspect.Parameter.empty, True),
        (object(), "UnresolvedForwardRef", True),
        (None, None, True),
        (0, None, False),
        (object(), Closeable, True),
    ],
)
def test_is_assignable(value, declared, expected):
    assert is_assignable(value, declared) is expected


@pytest.mark.skipif(sys.version_info < (3, 10), reason="PEP 604 unions need Python 3.10")
def test_pep604_union():
    declared = int | None
    assert is_assignable(None, declared)
    assert is_assignable(3, declared)
    assert not is_assignable("3", declared)


def test_type_name():
    assert type_name(int) == "int"
    assert type_name(Any) == "Any"
    assert type_name(Optional[int]) == "Optional[int]"
