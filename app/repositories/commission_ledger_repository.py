"""
Commission ledger repository.

Data access layer for CommissionLedgerEntry model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission_ledger_entry import CommissionLedgerEntry
from app.repositories.base import BaseRepository


class CommissionLedgerRepository(BaseRepository[CommissionLedgerEntry]):
    """Commission ledger repository with revenue aggregations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission ledger repository."""
        super().__init__(CommissionLedgerEntry, session)

    async def get_by_deal(self, deal_id: int) -> list[CommissionLedgerEntry]:
        """
        Get all ledger entries of a deal, ordered by level.

        Args:
            deal_id: Deal ID

        Returns:
            List of entries
        """
        stmt = (
            select(CommissionLedgerEntry)
            .where(CommissionLedgerEntry.deal_id == deal_id)
            .order_by(CommissionLedgerEntry.level, CommissionLedgerEntry.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_for_payee(
        self,
        payee_partner_id: int,
        min_level: int = 0,
        max_level: int | None = None,
    ) -> Decimal:
        """
        Sum amounts paid to a partner within a level range.

        Uses SQL aggregation to avoid loading entries.

        Args:
            payee_partner_id: Partner ID
            min_level: Lowest level included
            max_level: Highest level included (None for unbounded)

        Returns:
            Total amount
        """
        stmt = select(
            func.coalesce(
                func.sum(CommissionLedgerEntry.amount), Decimal("0")
            )
        ).where(
            CommissionLedgerEntry.payee_partner_id == payee_partner_id,
            CommissionLedgerEntry.level >= min_level,
        )
        if max_level is not None:
            stmt = stmt.where(CommissionLedgerEntry.level <= max_level)

        result = await self.session.execute(stmt)
        total = result.scalar()
        return Decimal(str(total)) if total is not None else Decimal("0")
