"""
OpenFalcon datasource exceptions.

Parse and resolution errors are raised to the caller unmodified;
nothing in this package catches them.
"""

from typing import Optional


class OpenFalconError(Exception):
    """Base class for all datasource errors."""


class DateMathError(OpenFalconError, ValueError):
    """A time boundary could not be parsed."""


class TargetResolutionError(OpenFalconError, ValueError):
    """A panel target expression could not be resolved."""


class TooManyTargetsError(TargetResolutionError):
    def __init__(self, count: int, limit: int):
        super().__init__(f"{count} targets given, at most {limit} can be assigned a series letter")
        self.count = count
        self.limit = limit


class UnknownSeriesReferenceError(TargetResolutionError):
    def __init__(self, letter: str):
        super().__init__(f"#{letter} does not refer to any target")
        self.letter = letter


class CircularSeriesReferenceError(TargetResolutionError):
    def __init__(self, chain):
        super().__init__("circular series reference: " + " -> ".join(f"#{c}" for c in chain))
        self.chain = list(chain)


class TransportError(OpenFalconError):
    """HTTP request to the backend failed."""

    def __init__(self, message: str, url: str, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status
