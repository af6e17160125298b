"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
VALIDATION_ERROR = "VALIDATION_ERROR"
FORBIDDEN = "FORBIDDEN"
UNAUTHORIZED = "UNAUTHORIZED"
CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
LEDGER_INTEGRITY = "LEDGER_INTEGRITY"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    pass


class DuplicateResourceError(DomainError):
    """Raised when attempting to create or update a resource that would violate a uniqueness constraint."""

    pass


class DomainValidationError(DomainError):
    """Raised when business rules or domain validation fail (e.g. invalid dates, non-positive amounts)."""

    pass


class ForbiddenError(DomainError):
    """Raised when the current user is not allowed to perform the operation."""

    pass


class UnauthorizedError(DomainError):
    """Raised when credentials are missing or invalid."""

    pass


class ConcurrentModificationError(DomainError):
    """Raised when a charge balance changed between read and write.

    Transient: the caller should retry the whole payment allocation.
    """

    pass


class ConfigurationError(DomainError):
    """Raised when an operation cannot run because of invalid configuration. Not retried automatically."""

    pass


class InvalidCadenceError(ConfigurationError):
    """Raised when a rental's billing cadence is not Daily, Weekly or Monthly."""

    pass


class LedgerIntegrityError(DomainError):
    """Raised when incrementally maintained balances disagree with re-derived totals."""

    pass
