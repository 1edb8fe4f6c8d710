"""Centralized exception hierarchy for the plant care service.

All domain and service exceptions inherit from :class:`PlantCareError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    PlantCareError (base, maps to 500)
    ├── ValidationError          (400, bad input from caller)
    ├── NotFoundError            (404, missing entity or no access)
    ├── ConflictError            (409, already resolved / duplicate state)
    ├── ServiceError             (500, business-logic failure)
    │   ├── RepositoryError      (500, database / persistence)
    │   └── ExternalServiceError (502, AI provider / network)
    └── ConfigurationError       (500, missing / invalid config)

``NotFoundError`` is raised both for rows that do not exist and for rows the
caller may not see, so the two cases cannot be told apart from outside.
"""

from __future__ import annotations


class PlantCareError(Exception):
    """Base exception for all plant care application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client for 5xx errors).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging and 4xx response bodies.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(PlantCareError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class NotFoundError(PlantCareError):
    """Entity does not exist or the caller cannot access it (HTTP 404)."""

    http_status: int = 404


class ConflictError(PlantCareError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(PlantCareError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class ExternalServiceError(ServiceError):
    """AI provider or network dependency failure (HTTP 502)."""

    http_status: int = 502


ExternalProviderError = ExternalServiceError


class ConfigurationError(PlantCareError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
