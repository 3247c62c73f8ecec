"""Domain-level exceptions.

All failures the core knows how to classify are subclasses of
DomainException so the CLI layer can catch them uniformly.  Inventory
service errors are split by what they tell us about a mutation that was
already sent: whether it certainly did not land, certainly was refused,
or may or may not have been applied.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ConfigurationError(DomainException):
    """Runtime settings are missing or malformed."""


# --- Bundle configuration ----------------------------------------------------


class BundleConfigError(DomainException):
    """Base class for bundle configuration lookup failures."""


class ConfigFetchError(BundleConfigError):
    """The config store could not be reached; the answer is unknown."""


class ConfigInvalid(BundleConfigError):
    """A stored bundle config exists but cannot be parsed or validated."""


# --- Inventory service -------------------------------------------------------


class InventoryServiceError(DomainException):
    """Base class for failures reported by the external inventory service."""


class InventoryKeyNotFound(InventoryServiceError):
    """The product has no tracked inventory item (or the item is unknown)."""


class ThrottledError(InventoryServiceError):
    """The service rate-limited the call.  Nothing was applied."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ServiceUnavailableError(InventoryServiceError):
    """The request never reached the service (connection refused, DNS...)."""


class AmbiguousResponseError(InventoryServiceError):
    """The request was sent but its outcome cannot be determined.

    Raised on timeouts, dropped connections and unreadable responses.  A
    non-idempotent mutation that fails this way must not be retried blindly.
    """


class PermanentServiceError(InventoryServiceError):
    """The service refused the call; retrying will not help."""
