"""
Single source of truth for the commission schedule.

Base commission bands per product category and the default split of the
pool between the submitting partner and the sponsors above them. The split
defaults can be overridden through settings; the bands are code.
"""

from decimal import Decimal
from typing import NamedTuple

from app.models.enums import DealStatus, ProductCategory


class CommissionBand(NamedTuple):
    """Fixed base commission for deal values up to an inclusive bound."""

    upper_bound: Decimal | None  # None for the open-ended top band
    base_amount: Decimal


# Card processing: monthly card volume -> base commission
CARD_PROCESSING_BANDS: tuple[CommissionBand, ...] = (
    CommissionBand(Decimal("10000"), Decimal("200")),
    CommissionBand(Decimal("25000"), Decimal("500")),
    CommissionBand(Decimal("50000"), Decimal("800")),
    CommissionBand(Decimal("100000"), Decimal("1500")),
    CommissionBand(Decimal("250000"), Decimal("3000")),
    CommissionBand(Decimal("500000"), Decimal("5000")),
    CommissionBand(None, Decimal("8000")),
)

# Insurance: annual premium -> base commission
INSURANCE_BANDS: tuple[CommissionBand, ...] = (
    CommissionBand(Decimal("1000"), Decimal("100")),
    CommissionBand(Decimal("5000"), Decimal("200")),
    CommissionBand(None, Decimal("300")),
)

# Utilities: annual energy spend -> base commission
UTILITIES_BANDS: tuple[CommissionBand, ...] = (
    CommissionBand(Decimal("5000"), Decimal("75")),
    CommissionBand(Decimal("20000"), Decimal("150")),
    CommissionBand(None, Decimal("250")),
)

BANDED_CATEGORIES: dict[ProductCategory, tuple[CommissionBand, ...]] = {
    ProductCategory.CARD_PROCESSING: CARD_PROCESSING_BANDS,
    ProductCategory.INSURANCE: INSURANCE_BANDS,
    ProductCategory.UTILITIES: UTILITIES_BANDS,
}

# Funding: £250 per £10,000 advanced
FUNDING_UNIT = Decimal("10000")
FUNDING_RATE_PER_UNIT = Decimal("250")

# Only card processing scales with the number of trading locations
LOCATION_SCALED_CATEGORIES = frozenset({ProductCategory.CARD_PROCESSING})

# Default split: 60% direct, 20% to level 1, halving per level, two levels deep
DEFAULT_DIRECT_COMMISSION_RATE = Decimal("0.60")
DEFAULT_FIRST_OVERRIDE_RATE = Decimal("0.20")
DEFAULT_OVERRIDE_DECAY_FACTOR = Decimal("0.5")
DEFAULT_MAX_OVERRIDE_DEPTH = 2
DEFAULT_LOCATION_MULTIPLIER_STEP = Decimal("0.3")

# Deal stages at which commission may be paid out
COMMISSION_ELIGIBLE_STATUSES = frozenset({
    DealStatus.LIVE_CONFIRM_LTR,
    DealStatus.INVOICE_RECEIVED,
    DealStatus.COMPLETED,
})

MONEY_QUANT = Decimal("0.01")
