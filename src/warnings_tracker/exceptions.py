"""Exceptions raised by Warnings Tracker."""


class TrackerError(Exception):
    """Base class for errors that callers are expected to handle."""

    pass


class HistoryUnavailableError(TrackerError):
    """Raised when the build history cannot be read at all."""

    pass
