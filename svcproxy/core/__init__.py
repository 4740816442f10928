"""Core Layer: the proxy and its cached operations."""
