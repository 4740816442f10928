"""Interfaces for describing a bound target.

A target can describe itself by implementing `DescribedService`; anything else
is described by a `ServiceDescriber` (the reflection describer by default).
"""

import abc
from typing import Any

from ..models.members import ServiceDescription


class DescribedService(abc.ABC):
    """A target that registers its own operations and state members.

    Every operation named in the returned description must be reachable as
    ``getattr(target, name)``; every state member as an attribute.
    """

    @abc.abstractmethod
    def describe(self) -> ServiceDescription:
        """Returns the explicit description of this service."""
        pass


class ServiceDescriber(abc.ABC):
    """Produces a ServiceDescription for an arbitrary target."""

    @abc.abstractmethod
    def describe(self, target: Any) -> ServiceDescription:
        """Describes `target`.

        Args:
            target: The service instance about to be bound.

        Returns:
            The operations, fields and properties the proxy should expose.
        """
        pass
