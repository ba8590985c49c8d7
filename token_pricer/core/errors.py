"""Error types shared by the pricing engine, its sources and the API layer."""

from __future__ import annotations

from typing import Optional


class PriceServiceError(Exception):
    """Base error carrying a human-readable message and an optional remediation hint."""

    error_type = "price_service_error"

    def __init__(self, message: str, suggestion: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion


class ValidationError(PriceServiceError):
    """Bad address or amount. Raised before any network call and never retried."""

    error_type = "validation_error"


class NetworkError(PriceServiceError):
    """Transport failure that persisted after every retry."""

    error_type = "network_error"

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        attempts: int = 0,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, suggestion="Retry later; the upstream service may be unavailable")
        self.url = url
        self.attempts = attempts
        self.cause = cause


class PricingError(PriceServiceError):
    """Every pricing strategy was exhausted without finding a route."""

    error_type = "pricing_error"


class CatalogUnavailableError(PriceServiceError):
    """Neither the live token list nor any fallback list could be used."""

    error_type = "catalog_unavailable"
