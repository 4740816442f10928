"""Infrastructure Layer: concrete implementations of the domain interfaces.

Result caches, key strategies, the reflection describer, configuration
loading and logging setup.
"""
