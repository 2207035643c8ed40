"""Domain layer — canonical events shared by every bounded context.

Producers build these records after a committed mutation; consumers match
on ``event_type``.  Everything here is immutable.
"""
