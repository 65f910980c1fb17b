"""
Partner repository.

Data access layer for Partner model.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.partner import Partner
from app.repositories.base import BaseRepository
from app.utils.partner_code import normalize_partner_code


class PartnerRepository(BaseRepository[Partner]):
    """Partner repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize partner repository."""
        super().__init__(Partner, session)

    async def get_by_code(self, partner_code: str) -> Partner | None:
        """
        Get partner by shareable partner code.

        Args:
            partner_code: Code as entered by a user (case-insensitive)

        Returns:
            Partner or None
        """
        return await self.get_by(
            partner_code=normalize_partner_code(partner_code)
        )

    async def get_sponsor_id(self, partner_id: int) -> tuple[bool, int | None]:
        """
        Read only the sponsor pointer of a partner.

        Args:
            partner_id: Partner ID

        Returns:
            Tuple of (exists, sponsor_id)
        """
        stmt = select(Partner.sponsor_id).where(Partner.id == partner_id)
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return False, None
        return True, row[0]

    async def count_codes_with_prefix(self, prefix: str) -> int:
        """
        Count partner codes starting with a prefix.

        Args:
            prefix: Two-letter code prefix

        Returns:
            Number of codes already issued for the prefix
        """
        stmt = select(func.count(Partner.id)).where(
            Partner.partner_code.like(f"{prefix}%")
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_ids_after(
        self, after_id: int, limit: int
    ) -> list[int]:
        """
        Get a batch of partner IDs in ascending order (keyset pagination).

        Args:
            after_id: Return IDs strictly greater than this
            limit: Batch size

        Returns:
            List of partner IDs
        """
        stmt = (
            select(Partner.id)
            .where(Partner.id > after_id)
            .order_by(Partner.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]
