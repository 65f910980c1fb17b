"""
Deal model.

Represents a client deal submitted by a partner.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import DealStatus
from app.models.types import MoneyType

if TYPE_CHECKING:
    from app.models.commission_ledger_entry import CommissionLedgerEntry
    from app.models.partner import Partner


class Deal(Base):
    """Deal model - client deals submitted by partners."""

    __tablename__ = "deals"
    __table_args__ = (
        CheckConstraint('value >= 0', name='check_deal_value_non_negative'),
        CheckConstraint('locations >= 1', name='check_deal_locations_positive'),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Submitter (level-0 payee)
    submitting_partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Deal details
    business_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    product_category: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )  # card_processing, funding, insurance, utilities
    value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    locations: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1
    )  # trading locations, scales card-processing commission

    # Status
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=DealStatus.SUBMITTED.value,
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    submitting_partner: Mapped["Partner"] = relationship(
        "Partner",
        back_populates="deals",
    )
    ledger_entries: Mapped[list["CommissionLedgerEntry"]] = relationship(
        "CommissionLedgerEntry",
        back_populates="deal",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Deal(id={self.id}, category={self.product_category}, "
            f"value={self.value}, status={self.status})>"
        )
