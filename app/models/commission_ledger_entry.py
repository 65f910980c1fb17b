"""
CommissionLedgerEntry model.

One payout line of a deal's commission: direct (level 0) or override (1..N).
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType, RateType

if TYPE_CHECKING:
    from app.models.deal import Deal


class CommissionLedgerEntry(Base):
    """
    CommissionLedgerEntry entity.

    Written only by CommissionDistributor. The unique constraint on
    (deal_id, payee_partner_id, level) makes repeated or concurrent
    distribution of the same deal converge to one row per payout.

    Attributes:
        id: Primary key
        deal_id: Deal the commission comes from
        payee_partner_id: Partner receiving the amount
        level: 0 for the submitter, N for the sponsor N hops up
        amount: Amount paid
        rate: Share of the deal's commission pool
        kind: "direct" or "override"
        created_at: When the entry was written
    """

    __tablename__ = "commission_ledger"
    __table_args__ = (
        UniqueConstraint(
            "deal_id",
            "payee_partner_id",
            "level",
            name="uq_commission_ledger_deal_payee_level",
        ),
        CheckConstraint(
            'amount > 0', name='check_commission_ledger_amount_positive'
        ),
        CheckConstraint(
            'level >= 0', name='check_commission_ledger_level_non_negative'
        ),
        Index("idx_commission_ledger_payee_level", "payee_partner_id", "level"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    deal_id: Mapped[int] = mapped_column(
        ForeignKey("deals.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    payee_partner_id: Mapped[int] = mapped_column(
        ForeignKey("partners.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    level: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    # Relationships
    deal: Mapped["Deal"] = relationship(
        "Deal",
        back_populates="ledger_entries",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionLedgerEntry(deal_id={self.deal_id}, "
            f"payee={self.payee_partner_id}, level={self.level}, "
            f"amount={self.amount})>"
        )
