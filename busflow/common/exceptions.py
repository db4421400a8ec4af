class BusflowError(Exception):
    """Base exception for all busflow errors."""
    pass

class InvalidInputError(BusflowError):
    """Raised when boundary data is malformed (non-finite coordinates, negative counts, bad timestamps)."""
    pass

class ConfigurationError(BusflowError):
    """Raised when configuration is invalid."""
    pass
