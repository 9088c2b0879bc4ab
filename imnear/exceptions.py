"""
Custom exception hierarchy for imnear.

Per-file errors (storage, extraction, bad coordinates) are attached to the
offending path by the search loop; user input errors end the run.
"""


class ImNearError(Exception):
    """Base exception for all imnear errors."""
    pass


class StorageFatal(ImNearError):
    """Raised when the metadata cache cannot be created, read, decoded or written."""
    pass


class ExtractionError(ImNearError):
    """Raised when a decoder cannot read coordinates from a file."""
    pass


class InvalidCoordinate(ImNearError, ValueError):
    """Raised for latitude/longitude values outside the valid range."""
    pass


class UserInputError(ImNearError):
    """Raised when the search target or parameters are missing or invalid."""
    pass


class GeocodingError(UserInputError):
    """Raised when an address cannot be resolved to coordinates."""
    pass
