"""Translate service-layer exceptions into API errors."""

from smartapply.core.errors import (
    APIError,
    InternalError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from smartapply.providers.errors import InvalidInputError
from smartapply.repositories import errors as store_errors


def to_api_error(error: Exception) -> APIError:
    """Map a provider or store exception to the matching APIError.

    Args:
        error: Exception raised by a service.

    Returns:
        APIError to raise from the endpoint.
    """
    if isinstance(error, InvalidInputError):
        return ValidationError(str(error))
    if isinstance(error, store_errors.NotFoundError):
        return NotFoundError(error.resource, error.resource_id)
    if isinstance(error, store_errors.RemoteUnavailableError):
        return ServiceUnavailableError(str(error))
    return InternalError()
