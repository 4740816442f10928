"""Defines common Value Objects used across the proxy.

These are simple values (names, keys) given semantic names so signatures
read the way the proxy talks about them.
"""

from typing import Any, Hashable, NewType, Tuple

# === Member Naming ===
MemberName = NewType("MemberName", str)          # Any addressable member of the bound target
OperationName = NewType("OperationName", str)    # Callable member wrapped by a CachedOperation

# === Caching Context ===
ArgumentKey = NewType("ArgumentKey", str)        # Default textual key, e.g. "2&3"
CacheKey = Hashable                              # Whatever a key strategy returns (str, tuple, digest)

# === Invocation Context ===
ParameterShape = Tuple[Any, ...]                 # Ordered declared parameter types of one operation

KEY_DELIMITER = "&"
