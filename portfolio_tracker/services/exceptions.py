# portfolio_tracker/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
Global handlers in main.py map them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   └── InvalidPeriodError
    ├── NotFoundError
    │   ├── LotNotFoundError
    │   └── SettingNotFoundError
    └── MarketDataError
        ├── ProviderUnavailableError
        ├── TickerNotFoundError
        └── RateLimitError

    CircuitBreakerOpen (from circuit_breaker module)
        - Raised when circuit breaker is open and blocking requests
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    Never retried. Request bodies are validated by Pydantic first; this
    covers service-level checks (direct store calls, settings keys).

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidPeriodError(ValidationError):
    """
    Raised when a history look-back period token is not recognized.

    Valid periods are: 1M, 3M, 6M, 1Y, 2Y
    """

    def __init__(self, period: str, valid: tuple[str, ...] = ("1M", "3M", "6M", "1Y", "2Y")) -> None:
        self.period = period
        super().__init__(
            f"Invalid period: '{period}'. Valid options: {', '.join(valid)}",
            field="period"
        )


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Lot", "Setting")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class LotNotFoundError(NotFoundError):
    """Raised when a purchase lot id does not exist."""

    def __init__(self, lot_id: int) -> None:
        self.lot_id = lot_id
        super().__init__(
            f"Lot {lot_id} not found",
            resource_type="Lot",
            resource_id=lot_id,
        )


class SettingNotFoundError(NotFoundError):
    """Raised when a settings key is not one of the supported keys."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Setting '{key}' not found",
            resource_type="Setting",
            resource_id=key,
        )


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)
    - API maintenance

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """
    Raised when a ticker symbol is not found by the provider.

    This is NOT a retryable error.
    """

    def __init__(self, ticker: str, provider: str) -> None:
        message = f"Ticker '{ticker}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.ticker = ticker


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


# =============================================================================
# CIRCUIT BREAKER (re-exported for convenience)
# =============================================================================

from portfolio_tracker.services.circuit_breaker import CircuitBreakerOpen  # noqa: E402

__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    "InvalidPeriodError",
    # Not Found
    "NotFoundError",
    "LotNotFoundError",
    "SettingNotFoundError",
    # Market Data
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    # Circuit Breaker
    "CircuitBreakerOpen",
]
