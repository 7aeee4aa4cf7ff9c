"""Errors raised by the lift board engine"""

from typing import Optional


class ScheduleError(Exception):
    """Base class for board and assignment errors"""

    pass


class StoreUnavailable(ScheduleError):
    """A read or write against the record store failed.

    ``source`` names the failing fetch (``repair_lifts``, ``lift_assignments``...)
    so callers can tell a store outage from a data problem. The message never
    carries driver output.
    """

    def __init__(self, source: str, message: Optional[str] = None):
        self.source = source
        self.message = message or f"Failed to load {source}"
        super().__init__(self.message)


class NotFound(ScheduleError):
    """A mutation targeted an assignment, order, lift or item that does not exist"""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class DegradedJoin(ScheduleError):
    """The worker-assignment join table is missing or lagging behind the schema"""

    pass


class InvalidReference(ScheduleError):
    """A write was rejected by a store constraint (unknown foreign key, duplicate key)"""

    def __init__(self, source: str, message: Optional[str] = None):
        self.source = source
        self.message = message or f"Rejected write to {source}"
        super().__init__(self.message)
