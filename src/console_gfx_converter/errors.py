"""Exceptions raised by the console graphics converter."""


class ConversionError(Exception):
    """Custom exception for conversion errors."""


class ValidationError(ConversionError, ValueError):
    """Raised when input data, indexes or platform keys are malformed."""


class CapacityExceeded(ConversionError):
    """Raised when an image does not fit the limits of the target hardware."""
