"""Exceptions raised by the dive log import pipeline"""

from typing import Optional


class DiveLogError(ValueError):
    """Base class for dive log errors"""


class UDDFParseError(DiveLogError):
    """Raised when a UDDF document cannot be used at all"""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class SubsurfaceCSVParseError(DiveLogError):
    """Raised when a Subsurface CSV export cannot be used at all"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DiveNotFoundError(DiveLogError):
    """Raised when a repository has no dive with the requested id"""

    def __init__(self, dive_id: int):
        super().__init__(f"Dive not found: {dive_id}")
        self.dive_id = dive_id
