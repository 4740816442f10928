"""Domain events emitted by the proxy (binding, cache hits/misses, failures)."""
