"""Exception types shared by the store, fetcher and API layers."""


class PricingPortalError(Exception):
    """Base class for all pricing portal errors."""


class RuleStoreError(PricingPortalError):
    """A rule table could not be read or written."""


class RuleNotFoundError(RuleStoreError):
    """The requested rule (or rule table) does not exist."""


class TransientStoreError(RuleStoreError):
    """A storage failure that is worth retrying (timeouts, I/O hiccups)."""


class RuleFetchError(PricingPortalError):
    """Global rules could not be loaded, so adjusted prices cannot be trusted."""

    def __init__(self, table_name: str, cause: Exception):
        super().__init__(f"Could not load global price adjustments for '{table_name}': {cause}")
        self.table_name = table_name
        self.cause = cause


class RuleValidationError(PricingPortalError, ValueError):
    """A rule payload failed validation."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class OwnershipError(PricingPortalError):
    """A user tried to touch a rule that belongs to someone else."""
