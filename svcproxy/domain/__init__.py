"""Domain Layer: value objects, interfaces (ports), events and exceptions.

Nothing in here knows how a bound target is introspected or how results are
stored; those concerns live in the infrastructure layer.
"""
