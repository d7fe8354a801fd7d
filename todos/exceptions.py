"""Typed failures raised by the todos engine and mapped to HTTP by the views."""


class TrackerError(Exception):
    """Base class for every failure the engine surfaces to its caller."""


class NotFound(TrackerError):
    """The requested task does not exist."""


class Forbidden(NotFound):
    """The task exists but belongs to another owner."""


class InvalidRange(TrackerError):
    """A date, year, month or window length could not be understood."""


class ValidationFailure(TrackerError):
    """Task fields violate their constraints.

    ``errors`` maps field names to lists of messages.
    """

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__("Validation failed")
