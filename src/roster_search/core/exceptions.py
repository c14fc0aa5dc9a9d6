"""
Exceptions raised by the roster search package.
"""


class RosterSearchError(Exception):
    """Base class for roster search failures."""


class DatasetLoadError(RosterSearchError):
    """The roster dataset could not be fetched, parsed or validated."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load roster dataset from {source}: {reason}")
