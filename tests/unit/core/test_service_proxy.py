import dataclasses

import pytest
from unittest.mock import MagicMock

from svcproxy.core.services.cached_operation import CachedOperation
from svcproxy.core.services.service_proxy import ServiceProxy
from svcproxy.domain.events.proxy_events import MemberWriteRefused, ServiceBound
from svcproxy.domain.exceptions import ArgumentShapeError, MemberNotFoundError, NotBoundError


# --- Binding ---

def test_unbound_proxy_rejects_every_access():
    proxy = ServiceProxy()
    assert not proxy.is_bound
    with pytest.raises(NotBoundError):
        proxy.get_member("Add")
    with pytest.raises(NotBoundError):
        proxy.set_member("Timeout", 45)
    with pytest.raises(NotBoundError):
        proxy.invoke("Add", 2, 3)
    with pytest.raises(NotBoundError):
        proxy.Add


def test_bind_via_constructor_and_method(calculator):
    assert ServiceProxy(calculator).is_bound
    proxy = ServiceProxy()
    proxy.bind(calculator)
    assert proxy.is_bound
    assert proxy.bound_target is calculator


def test_bind_none_is_rejected():
    with pytest.raises(ValueError):
        ServiceProxy().bind(None)


def test_discovered_operation_table(proxy):
    assert sorted(proxy.operation_names) == ["Add", "Concat", "Divide", "Echo", "Lookup", "Ping", "Sum"]


def test_accessor_async_and_coroutine_members_are_not_operations(proxy):
    for name in ("get_Status", "set_Status", "add_Listener", "remove_Listener", "AddAsync", "Fetch"):
        assert name not in proxy.operation_names
        with pytest.raises(MemberNotFoundError):
            proxy.get_member(name)


def test_discovered_state_members(proxy):
    assert sorted(proxy.field_names) == ["Timeout", "endpoint", "fail_next", "retries"]
    assert sorted(proxy.property_names) == ["Url", "Version"]


# --- get_member ---

def test_get_member_returns_operation_handle(proxy):
    handle = proxy.get_member("Add")
    assert isinstance(handle, CachedOperation)
    assert handle is proxy.get_member("Add")
    assert handle(2, 3) == 5


def test_get_member_reads_live_field_and_property_values(proxy, calculator):
    assert proxy.get_member("Timeout") == 30
    calculator.Timeout = 60
    assert proxy.get_member("Timeout") == 60
    assert proxy.get_member("Url") == "http://calc.example.test"
    assert proxy.get_member("Version") == "1.0"


def test_get_member_miss_is_an_attribute_error(proxy):
    with pytest.raises(MemberNotFoundError) as exc_info:
        proxy.get_member("Multiply")
    assert exc_info.value.member_name == "Multiply"
    assert isinstance(exc_info.value, AttributeError)
    assert getattr(proxy, "Multiply", "fallback") == "fallback"
    assert not hasattr(proxy, "Multiply")


# --- Add(int, int) scenario ---

def test_add_scenario(proxy, calculator):
    assert proxy.invoke("Add", 2, 3) == 5
    assert calculator._calls["Add"] == 1

    assert proxy.invoke("Add", 2, 3) == 5
    assert calculator._calls["Add"] == 1

    with pytest.raises(ArgumentShapeError):
        proxy.invoke("Add", 2, "3")
    with pytest.raises(ArgumentShapeError):
        proxy.invoke("Add", 2)
    assert calculator._calls["Add"] == 1


def test_attribute_call_syntax_is_cached(proxy, calculator):
    assert proxy.Add(4, 5) == 9
    assert proxy.Add(4, 5) == 9
    assert calculator._calls["Add"] == 1


def test_invoke_rejects_non_operations(proxy):
    with pytest.raises(MemberNotFoundError):
        proxy.invoke("Timeout")


def test_operations_have_independent_caches(proxy, calculator):
    proxy.Concat("2", "3")
    proxy.Add(2, 3)
    assert proxy.Concat("2", "3") == "23"
    assert proxy.Add(2, 3) == 5
    assert calculator._calls["Add"] == 1
    assert calculator._calls["Concat"] == 1


# --- Timeout field scenario ---

def test_timeout_scenario(proxy, calculator):
    assert proxy.set_member("Timeout", 45) is True
    assert proxy.get_member("Timeout") == 45

    assert proxy.set_member("Timeout", "fast") is False
    assert proxy.get_member("Timeout") == 45
    assert calculator.Timeout == 45


def test_set_member_writes_properties_through(proxy, calculator):
    assert proxy.set_member("Url", "http://other.example.test")
    assert calculator.Url == "http://other.example.test"


def test_set_member_refuses_read_only_property(proxy):
    assert proxy.set_member("Version", "2.0") is False
    assert proxy.get_member("Version") == "1.0"


def test_set_member_refuses_operations_and_unknown_names(proxy, calculator):
    assert proxy.set_member("Add", lambda a, b: 0) is False
    assert proxy.set_member("Nope", 1) is False
    assert not hasattr(calculator, "Nope")


def test_set_member_refuses_none_for_non_optional_field(proxy):
    assert proxy.set_member("Timeout", None) is False


def test_unannotated_field_accepts_any_value(proxy, calculator):
    assert proxy.set_member("retries", "many")
    assert calculator.retries == "many"


def test_attribute_assignment_writes_through_or_raises(proxy, calculator):
    proxy.Timeout = 45
    assert calculator.Timeout == 45
    with pytest.raises(AttributeError):
        proxy.Timeout = "fast"
    assert calculator.Timeout == 45


# --- Rebinding ---

def test_rebind_discards_cached_results(calculator):
    proxy = ServiceProxy(calculator)
    proxy.Add(2, 3)
    proxy.bind(calculator)
    proxy.Add(2, 3)
    assert calculator._calls["Add"] == 2


def test_rebind_to_another_target_routes_to_it(calculator, calculator_cls):
    proxy = ServiceProxy(calculator)
    other = calculator_cls()
    other.Timeout = 5
    proxy.bind(other)
    assert proxy.bound_target is other
    assert proxy.Timeout == 5
    proxy.Add(1, 1)
    assert other._calls["Add"] == 1
    assert calculator._calls["Add"] == 0


def test_handle_taken_before_rebind_keeps_old_cache(calculator):
    proxy = ServiceProxy(calculator)
    old_add = proxy.get_member("Add")
    old_add(1, 2)
    proxy.bind(calculator)
    assert proxy.get_member("Add") is not old_add
    assert old_add.is_cached(1, 2)
    assert not proxy.get_member("Add").is_cached(1, 2)


# --- Events, stats, dunder helpers ---

def test_bind_and_refused_write_events(calculator):
    listener = MagicMock()
    proxy = ServiceProxy(calculator, event_listener=listener)
    proxy.bind(calculator)
    proxy.set_member("Timeout", "fast")

    events = [c.args[0] for c in listener.call_args_list]
    bound = [e for e in events if isinstance(e, ServiceBound)]
    assert [e.rebind for e in bound] == [False, True]
    assert bound[0].operation_count == 7
    refused = [e for e in events if isinstance(e, MemberWriteRefused)]
    assert refused[0].member == "Timeout"
    assert refused[0].value_type == "str"


def test_cache_stats_per_operation(proxy):
    proxy.Add(1, 2)
    proxy.Add(1, 2)
    stats = proxy.cache_stats()
    assert stats["Add"].hits == 1
    assert stats["Add"].misses == 1
    assert stats["Ping"].calls == 0


def test_contains_dir_and_repr(proxy):
    assert "Add" in proxy
    assert "Timeout" in proxy
    assert "Url" in proxy
    assert "get_Status" not in proxy
    assert {"Add", "Timeout", "Url", "bind"} <= set(dir(proxy))
    assert repr(proxy) == "<ServiceProxy bound to CalculatorService: 7 operations, 4 fields, 2 properties>"
    assert repr(ServiceProxy()) == "<ServiceProxy (unbound)>"
    assert "Add" not in ServiceProxy()


# --- Writes the target rejects, unset fields, listener failures ---

@dataclasses.dataclass(frozen=True)
class FrozenSettingsService:
    Timeout: int = 30

    def Ping(self) -> str:
        return "pong"


def test_frozen_dataclass_fields_are_refused_softly():
    service = FrozenSettingsService()
    proxy = ServiceProxy(service)
    assert proxy.set_member("Timeout", 45) is False
    assert service.Timeout == 30
    with pytest.raises(AttributeError):
        proxy.Timeout = 45


class GuardedService:
    def __init__(self):
        self._region = "eu"

    @property
    def Region(self) -> str:
        return self._region

    @Region.setter
    def Region(self, value: str) -> None:
        raise AttributeError("Region is fixed after connect")


def test_property_setter_rejection_is_a_soft_refusal():
    listener = MagicMock()
    proxy = ServiceProxy(GuardedService(), event_listener=listener)
    assert proxy.set_member("Region", "us") is False
    assert proxy.Region == "eu"
    refused = listener.call_args.args[0]
    assert isinstance(refused, MemberWriteRefused)
    assert "fixed after connect" in refused.reason


class TokenService:
    Token: str

    def Ping(self) -> str:
        return "pong"


def test_declared_but_unset_field_is_member_not_found():
    proxy = ServiceProxy(TokenService())
    assert "Token" in proxy.field_names
    with pytest.raises(MemberNotFoundError) as exc_info:
        proxy.get_member("Token")
    assert exc_info.value.member_name == "Token"
    assert proxy.set_member("Token", "abc")
    assert proxy.Token == "abc"


def test_failing_listener_does_not_break_the_proxy(calculator):
    listener = MagicMock(side_effect=RuntimeError("listener broke"))
    proxy = ServiceProxy(calculator, event_listener=listener)
    assert proxy.is_bound
    assert proxy.Add(2, 3) == 5
    assert proxy.set_member("Timeout", "fast") is False
    assert listener.call_count >= 3
