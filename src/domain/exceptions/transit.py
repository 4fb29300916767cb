class TransitDataError(Exception):
    """Base exception for problems in survey or schedule input."""


class MalformedRecordError(TransitDataError):
    """Raised when a single input record cannot be parsed."""
