from .transit import MalformedRecordError, TransitDataError

__all__ = ["MalformedRecordError", "TransitDataError"]
