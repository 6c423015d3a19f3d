"""
Gateway error types.

Only programming and configuration errors escape the dispatch coordinator;
runtime failures are returned as DispatchFailure values.
"""


class GatewayError(Exception):
    """Base exception for gateway errors."""

    def __init__(self, message: str, provider: str = None):
        self.message = message
        self.provider = provider
        super().__init__(message)


class ProviderNotFoundError(GatewayError):
    """Raised when a provider id is not in the registry."""
    pass


class UnsupportedVendorError(GatewayError):
    """Raised when no adapter exists for a descriptor's vendor."""

    def __init__(self, message: str, provider: str = None, vendor: str = None):
        super().__init__(message, provider)
        self.vendor = vendor


class NormalizationError(GatewayError):
    """Raised when a vendor response lacks the expected fields."""
    pass
