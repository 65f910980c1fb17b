"""
Commission calculator.

Maps a deal to its commission pool and the per-level payout schedule.
Pure computation: no database access.
"""

from dataclasses import dataclass, field
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Protocol

from loguru import logger

from app.config.commission_schedule import (
    BANDED_CATEGORIES,
    FUNDING_RATE_PER_UNIT,
    FUNDING_UNIT,
    LOCATION_SCALED_CATEGORIES,
    MONEY_QUANT,
    CommissionBand,
)
from app.config.settings import settings
from app.models.enums import ProductCategory


class DealLike(Protocol):
    """Attributes the calculator reads from a deal."""

    value: Decimal
    product_category: str
    locations: int


@dataclass(frozen=True)
class CommissionPool:
    """
    Commission pool of one deal and how it splits by level.

    Attributes:
        total_pool: Commission generated by the deal
        rates: Level -> share of the pool (0 = submitting partner)
        schedule: Level -> amount, rounded down to pennies
    """

    total_pool: Decimal
    rates: dict[int, Decimal] = field(default_factory=dict)
    schedule: dict[int, Decimal] = field(default_factory=dict)

    @property
    def scheduled_total(self) -> Decimal:
        """Sum of every scheduled level; never above total_pool."""
        return sum(self.schedule.values(), Decimal("0"))

    @property
    def max_level(self) -> int:
        """Deepest level with a scheduled amount."""
        return max(self.schedule, default=0)

    def amount_for_level(self, level: int) -> Decimal:
        """Amount paid at a level (zero beyond the schedule)."""
        return self.schedule.get(level, Decimal("0"))

    def rate_for_level(self, level: int) -> Decimal:
        """Share of the pool paid at a level."""
        return self.rates.get(level, Decimal("0"))


class CommissionCalculator:
    """
    Commission calculator for deals.

    Base commission comes from category bands (card processing, insurance,
    utilities) or a per-£10,000 rate (funding). The pool is split into a
    direct share for the submitter and an override share per sponsor level
    that decays geometrically and stops at max_override_depth. Shares of
    levels without an ancestor are not redistributed.
    """

    def __init__(
        self,
        direct_rate: Decimal | None = None,
        first_override_rate: Decimal | None = None,
        decay_factor: Decimal | None = None,
        max_override_depth: int | None = None,
        location_step: Decimal | None = None,
    ) -> None:
        """
        Initialize calculator; unset arguments come from settings.

        Raises:
            ValueError: Rates would pay out more than the pool
        """
        self.direct_rate = (
            settings.direct_commission_rate if direct_rate is None else direct_rate
        )
        self.first_override_rate = (
            settings.first_override_rate
            if first_override_rate is None else first_override_rate
        )
        self.decay_factor = (
            settings.override_decay_factor if decay_factor is None else decay_factor
        )
        self.max_override_depth = (
            settings.max_override_depth
            if max_override_depth is None else max_override_depth
        )
        self.location_step = (
            settings.location_multiplier_step
            if location_step is None else location_step
        )

        self.level_rates = self._build_level_rates()
        total_rate = sum(self.level_rates.values(), Decimal("0"))
        if total_rate > Decimal("1"):
            raise ValueError(
                f"Commission rates sum to {total_rate}, more than the pool"
            )

    def _build_level_rates(self) -> dict[int, Decimal]:
        """Level -> share of the pool."""
        if self.direct_rate < 0 or self.first_override_rate < 0:
            raise ValueError("Commission rates must not be negative")
        if not Decimal("0") <= self.decay_factor <= Decimal("1"):
            raise ValueError("Override decay factor must be between 0 and 1")

        rates = {0: self.direct_rate}
        rate = self.first_override_rate
        for level in range(1, self.max_override_depth + 1):
            rates[level] = rate
            rate = rate * self.decay_factor
        return rates

    def band_amount(
        self, bands: tuple[CommissionBand, ...], value: Decimal
    ) -> Decimal:
        """
        Base amount of the first band whose upper bound covers value.

        Example:
            >>> calc.band_amount(CARD_PROCESSING_BANDS, Decimal("50000"))
            Decimal("800")
        """
        for band in bands:
            if band.upper_bound is None or value <= band.upper_bound:
                return band.base_amount
        return bands[-1].base_amount

    def location_multiplier(self, locations: int) -> Decimal:
        """
        Multiplier for multi-site merchants: 1 + (locations - 1) * step.

        Example:
            >>> calc.location_multiplier(3)
            Decimal("1.6")
        """
        extra_sites = max(locations, 1) - 1
        return Decimal("1") + self.location_step * extra_sites

    def base_commission(
        self,
        category: ProductCategory | str,
        value: Decimal,
        locations: int = 1,
    ) -> Decimal:
        """
        Calculate the commission pool of a deal.

        Args:
            category: Product category
            value: Deal value (monthly volume, funding amount, premium or spend)
            locations: Trading locations (card processing only)

        Returns:
            Pool rounded to pennies (zero for non-positive values)

        Raises:
            ValueError: Unknown product category
        """
        category = ProductCategory(category)
        value = Decimal(value)

        if value <= 0:
            logger.warning(
                "Invalid deal value for commission calculation",
                extra={"category": category.value, "value": str(value)},
            )
            return Decimal("0")

        if category == ProductCategory.FUNDING:
            pool = value / FUNDING_UNIT * FUNDING_RATE_PER_UNIT
        else:
            pool = self.band_amount(BANDED_CATEGORIES[category], value)

        if category in LOCATION_SCALED_CATEGORIES:
            pool = pool * self.location_multiplier(locations)

        return pool.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)

    def split_pool(self, total_pool: Decimal) -> CommissionPool:
        """
        Split a pool into per-level amounts.

        Each level rounds down to pennies, so the schedule never exceeds
        the pool.

        Example:
            >>> calc.split_pool(Decimal("800")).schedule
            {0: Decimal("480.00"), 1: Decimal("160.00"), 2: Decimal("80.00")}
        """
        schedule = {
            level: (total_pool * rate).quantize(MONEY_QUANT, rounding=ROUND_DOWN)
            for level, rate in self.level_rates.items()
        }
        return CommissionPool(
            total_pool=total_pool,
            rates=dict(self.level_rates),
            schedule=schedule,
        )

    def compute_pool(self, deal: DealLike) -> CommissionPool:
        """
        Compute the commission pool and payout schedule of a deal.

        Args:
            deal: Deal (or any object with value, product_category, locations)

        Returns:
            CommissionPool
        """
        total_pool = self.base_commission(
            deal.product_category,
            deal.value,
            getattr(deal, "locations", 1) or 1,
        )
        return self.split_pool(total_pool)
