"""
Model enums.

String enums stored in plain VARCHAR columns.
"""

from enum import Enum


class ProductCategory(str, Enum):
    """Product a deal was sold for."""

    CARD_PROCESSING = "card_processing"
    FUNDING = "funding"
    INSURANCE = "insurance"
    UTILITIES = "utilities"


class DealStatus(str, Enum):
    """Deal pipeline stages."""

    SUBMITTED = "submitted"
    QUOTE_REQUEST_RECEIVED = "quote_request_received"
    QUOTE_SENT = "quote_sent"
    QUOTE_APPROVED = "quote_approved"
    SIGNUP_SUBMITTED = "signup_submitted"
    AGREEMENT_SENT = "agreement_sent"
    SIGNED_AWAITING_DOCS = "signed_awaiting_docs"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    LIVE_CONFIRM_LTR = "live_confirm_ltr"
    INVOICE_RECEIVED = "invoice_received"
    COMPLETED = "completed"
    DECLINED = "declined"


class LedgerEntryKind(str, Enum):
    """Commission ledger entry kinds."""

    DIRECT = "direct"  # level 0, paid to the submitting partner
    OVERRIDE = "override"  # level 1..N, paid to sponsors
