"""
Exception handling utilities.

Defines the commission engine's exception taxonomy and the categories used
to decide how callers handle them.
"""

from sqlalchemy.exc import OperationalError


class CommissionEngineError(Exception):
    """Base class for hierarchy and commission errors."""


class PartnerNotFound(CommissionEngineError):
    """Raised when a partner id does not exist."""

    def __init__(self, partner_id: int) -> None:
        self.partner_id = partner_id
        super().__init__(f"Partner {partner_id} not found")


class SponsorNotFound(CommissionEngineError):
    """Raised when a sponsor id or sponsor code does not resolve."""

    def __init__(self, sponsor: int | str) -> None:
        self.sponsor = sponsor
        super().__init__(f"Sponsor {sponsor!r} not found")


class SponsorAlreadyAssigned(CommissionEngineError):
    """Raised on any attempt to change an existing sponsor pointer."""

    def __init__(self, partner_id: int | None, sponsor_id: int) -> None:
        self.partner_id = partner_id
        self.sponsor_id = sponsor_id
        super().__init__(
            f"Partner {partner_id} is already sponsored by {sponsor_id}"
        )


class CycleDetected(CommissionEngineError):
    """Raised when a sponsor link would make a partner its own ancestor."""

    def __init__(self, child_id: int, sponsor_id: int) -> None:
        self.child_id = child_id
        self.sponsor_id = sponsor_id
        super().__init__(
            f"Linking partner {child_id} under {sponsor_id} would create a cycle"
        )


class HierarchyTooDeep(CommissionEngineError):
    """Raised when a chain would exceed the maximum number of levels."""

    def __init__(self, partner_id: int | None, max_levels: int) -> None:
        self.partner_id = partner_id
        self.max_levels = max_levels
        where = f" at partner {partner_id}" if partner_id is not None else ""
        super().__init__(f"Hierarchy exceeds {max_levels} levels{where}")


class CircularReferenceDetected(CommissionEngineError):
    """Raised by the pointer walk when a partner id is seen twice."""

    def __init__(self, partner_id: int, repeated_id: int) -> None:
        self.partner_id = partner_id
        self.repeated_id = repeated_id
        super().__init__(
            f"Circular sponsor chain above partner {partner_id}: "
            f"{repeated_id} seen twice"
        )


class DealNotFound(CommissionEngineError):
    """Raised when a deal id does not exist."""

    def __init__(self, deal_id: int) -> None:
        self.deal_id = deal_id
        super().__init__(f"Deal {deal_id} not found")


class DealNotEligible(CommissionEngineError):
    """Raised when a deal's status does not allow commission payout."""

    def __init__(self, deal_id: int, status: str) -> None:
        self.deal_id = deal_id
        self.status = status
        super().__init__(
            f"Deal {deal_id} in status {status!r} is not eligible for commission"
        )


class DuplicateLedgerEntry(CommissionEngineError):
    """
    Raised when a concurrent payout already wrote a ledger row.

    Benign: the distributor rolls back and returns the committed rows.
    """

    def __init__(self, deal_id: int) -> None:
        self.deal_id = deal_id
        super().__init__(f"Commission for deal {deal_id} was written concurrently")


class ReconciliationDriftDetected(CommissionEngineError):
    """Raised when closure rows disagree with the sponsor pointer chain."""

    def __init__(self, partner_id: int, reason: str) -> None:
        self.partner_id = partner_id
        self.reason = reason
        super().__init__(f"Hierarchy drift for partner {partner_id}: {reason}")


# Exception categories based on handling strategy

# Benign - idempotent no-op, never surfaced to the caller
SAFE_TO_IGNORE = (
    DuplicateLedgerEntry,
)

# Safe to retry - transient database failures
RETRYABLE = (
    OperationalError,
)

# Must raise - rejected synchronously, never silently corrected
MUST_RAISE = (
    SponsorNotFound,
    SponsorAlreadyAssigned,
    CycleDetected,
    HierarchyTooDeep,
    CircularReferenceDetected,
    ReconciliationDriftDetected,
    ValueError,
)


def is_safe_to_ignore(exc: Exception) -> bool:
    """
    Check if exception can be safely ignored.

    Args:
        exc: Exception to check

    Returns:
        True if exception is safe to ignore
    """
    return isinstance(exc, SAFE_TO_IGNORE)


def is_retryable(exc: Exception) -> bool:
    """
    Check if the failed operation may be retried.

    Args:
        exc: Exception to check

    Returns:
        True if a retry can succeed
    """
    return isinstance(exc, RETRYABLE)


def must_raise(exc: Exception) -> bool:
    """
    Check if exception must be raised.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be raised
    """
    return isinstance(exc, MUST_RAISE)
