"""Result caches and argument key strategies used by CachedOperation."""
