"""
Team statistics module.

Dashboard aggregates computed from partner_hierarchy and commission_ledger
only. Nothing here is cached or stored, so the figures cannot drift from
the two tables.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.commission_ledger_repository import (
    CommissionLedgerRepository,
)
from app.repositories.hierarchy_repository import HierarchyRepository


class TeamStatisticsManager:
    """Manages team size and revenue statistics."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize statistics manager."""
        self.session = session
        self.hierarchy_repo = HierarchyRepository(session)
        self.ledger_repo = CommissionLedgerRepository(session)

    async def get_team_size(self, partner_id: int) -> int:
        """Number of partners anywhere below partner_id."""
        return await self.hierarchy_repo.count_descendants(partner_id)

    async def get_direct_revenue(self, partner_id: int) -> Decimal:
        """Commission earned on the partner's own deals (level 0)."""
        return await self.ledger_repo.sum_for_payee(
            partner_id, min_level=0, max_level=0
        )

    async def get_override_revenue(self, partner_id: int) -> Decimal:
        """Commission earned on deals submitted by the partner's team."""
        return await self.ledger_repo.sum_for_payee(partner_id, min_level=1)

    async def get_team_stats(self, partner_id: int) -> dict:
        """
        Get team statistics for a partner.

        Args:
            partner_id: Partner ID

        Returns:
            Dict with team size, per-level counts and revenue split
        """
        level_counts = await self.hierarchy_repo.get_level_counts(partner_id)
        direct_revenue = await self.get_direct_revenue(partner_id)
        override_revenue = await self.get_override_revenue(partner_id)

        return {
            "team_size": await self.get_team_size(partner_id),
            "direct_recruits": level_counts.get(1, 0),
            "level_counts": level_counts,
            "direct_revenue": direct_revenue,
            "override_revenue": override_revenue,
            "total_revenue": direct_revenue + override_revenue,
        }
