"""Composition root: builds a configured ServiceProxy.

Reads ProxySettings (YAML / .env / environment), optionally configures
logging, and wires the key strategy, cache factory and describer into a
ServiceProxy.
"""

import logging
from typing import Any, Optional

from svcproxy.core.services.cached_operation import EventListener
from svcproxy.core.services.service_proxy import ServiceProxy
from svcproxy.infrastructure.cache.key_strategies import get_key_strategy
from svcproxy.infrastructure.cache.result_cache import make_cache_factory
from svcproxy.infrastructure.config.settings import ProxySettings, load_proxy_settings
from svcproxy.infrastructure.introspection.reflection_describer import ReflectionDescriber
from svcproxy.infrastructure.monitoring.logger_setup import setup_logging

logger = logging.getLogger(__name__)


def create_service_proxy(
    target: Any = None,
    settings: Optional[ProxySettings] = None,
    event_listener: Optional[EventListener] = None,
    configure_logging: bool = False,
) -> ServiceProxy:
    """Creates a ServiceProxy wired from settings.

    Args:
        target: Optional service instance to bind immediately.
        settings: Explicit settings; loaded from configuration if None.
        event_listener: Optional receiver of proxy domain events.
        configure_logging: Also configure root logging from the settings.

    Returns:
        The (possibly bound) proxy.
    """
    settings = settings or load_proxy_settings()
    if configure_logging:
        setup_logging(log_level=settings.log_level, log_file=settings.log_file)

    cache_bound = settings.cache_max_items if settings.cache_max_items is not None else "unbounded"
    logger.info(
        f"Creating service proxy: key_strategy={settings.key_strategy}, cache={cache_bound}"
    )
    return ServiceProxy(
        target,
        key_strategy=get_key_strategy(settings.key_strategy, delimiter=settings.key_delimiter),
        cache_factory=make_cache_factory(settings.cache_max_items),
        describer=ReflectionDescriber(
            accessor_prefixes=settings.accessor_prefixes,
            async_suffix=settings.async_suffix,
        ),
        event_listener=event_listener,
    )
