import threading
from collections import Counter
from typing import Any, List, Optional

import pytest

from svcproxy.core.services.service_proxy import ServiceProxy
from svcproxy.infrastructure.config import settings as settings_module


class CalculatorService:
    """Stand-in for a generated remote service client."""

    Timeout: int = 30
    endpoint: str = "http://calc.example.test/service"

    def __init__(self):
        self.Timeout = 30
        self.retries = 2  # unannotated instance field
        self._url = "http://calc.example.test"
        self._calls: Counter = Counter()
        self._lock = threading.Lock()
        self.fail_next = 0

    def _record(self, name: str) -> None:
        with self._lock:
            self._calls[name] += 1

    # --- operations ---

    def Add(self, a: int, b: int) -> int:
        self._record("Add")
        return a + b

    def Concat(self, left: str, right: str) -> str:
        self._record("Concat")
        return left + right

    def Echo(self, value):
        self._record("Echo")
        return value

    def Lookup(self, key: str) -> Optional[str]:
        self._record("Lookup")
        return None

    def Sum(self, values: List[int]) -> int:
        self._record("Sum")
        return sum(values)

    def Divide(self, a: float, b: float) -> float:
        self._record("Divide")
        if self.fail_next:
            self.fail_next -= 1
            raise ConnectionError("remote endpoint unavailable")
        return a / b

    def Ping(self) -> str:
        self._record("Ping")
        return "pong"

    # --- members the proxy must not wrap ---

    def get_Status(self) -> str:
        return "ok"

    def set_Status(self, value: str) -> None:
        pass

    def add_Listener(self, listener: Any) -> None:
        pass

    def remove_Listener(self, listener: Any) -> None:
        pass

    def AddAsync(self, a: int, b: int) -> Any:
        return a + b

    async def Fetch(self, key: str) -> str:
        return key

    # --- properties ---

    @property
    def Url(self) -> str:
        return self._url

    @Url.setter
    def Url(self, value: str) -> None:
        self._url = value

    @property
    def Version(self) -> str:
        return "1.0"


@pytest.fixture
def calculator_cls():
    return CalculatorService


@pytest.fixture
def calculator() -> CalculatorService:
    return CalculatorService()


@pytest.fixture
def proxy(calculator: CalculatorService) -> ServiceProxy:
    return ServiceProxy(calculator)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keeps tests away from the developer's ~/.svcproxy and SVCPROXY_* variables."""
    for name in list(settings_module.os.environ):
        if name.startswith(settings_module.ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings_module, "DEFAULT_CONFIG_FILE", tmp_path / "missing.yaml")
    monkeypatch.chdir(tmp_path)
    settings_module.reset_configuration()
    settings_module.clear_test_config()
    yield
    settings_module.reset_configuration()
    settings_module.clear_test_config()
