"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that infrastructure components
and bound targets implement. The proxy core depends on these interfaces, not
on concrete implementations.
"""
