"""svcproxy: a transparent memoizing proxy for remote service clients.

Bind a ServiceProxy to a service client and repeated calls with equal
arguments are answered from a per-operation cache, while fields and
properties are read and written straight through.
"""

from svcproxy.bootstrap import create_service_proxy
from svcproxy.core.services.cached_operation import CachedOperation
from svcproxy.core.services.service_proxy import ServiceProxy
from svcproxy.domain.exceptions import (
    ArgumentShapeError,
    MemberNotFoundError,
    NotBoundError,
    ServiceProxyError,
)
from svcproxy.domain.interfaces.service_description import DescribedService
from svcproxy.domain.models.members import (
    OperationDescriptor,
    ParameterSpec,
    ServiceDescription,
    StateMemberDescriptor,
)

__version__ = "0.1.0"

__all__ = [
    "ArgumentShapeError",
    "CachedOperation",
    "DescribedService",
    "MemberNotFoundError",
    "NotBoundError",
    "OperationDescriptor",
    "ParameterSpec",
    "ServiceDescription",
    "ServiceProxy",
    "ServiceProxyError",
    "StateMemberDescriptor",
    "create_service_proxy",
]
