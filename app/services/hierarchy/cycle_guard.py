"""
Cycle guard.

Read-only check run before any write that sets a sponsor pointer.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.repositories.hierarchy_repository import HierarchyRepository
from app.repositories.partner_repository import PartnerRepository


class CycleGuard:
    """Rejects sponsor links that would create a cycle."""

    def __init__(
        self, session: AsyncSession, max_levels: int | None = None
    ) -> None:
        """Initialize cycle guard."""
        self.session = session
        self.max_levels = max_levels or settings.max_hierarchy_levels
        self.partner_repo = PartnerRepository(session)
        self.hierarchy_repo = HierarchyRepository(session)

    async def can_link(self, child_id: int, proposed_sponsor_id: int) -> bool:
        """
        Check whether child_id may be placed under proposed_sponsor_id.

        Walks the sponsor's ancestor chain from the closure table, or from
        sponsor pointers when the sponsor has a pointer but no closure rows.
        A chain that does not end within max_levels hops is treated as
        corrupt and rejected.

        Args:
            child_id: Partner being linked
            proposed_sponsor_id: Partner proposed as sponsor

        Returns:
            True if the link is safe
        """
        if child_id == proposed_sponsor_id:
            logger.warning(
                "Self-sponsorship rejected",
                extra={"child_id": child_id},
            )
            return False

        chain = await self._sponsor_chain(proposed_sponsor_id)
        if chain is None:
            logger.warning(
                "Sponsor chain does not terminate, link rejected",
                extra={
                    "child_id": child_id,
                    "sponsor_id": proposed_sponsor_id,
                    "max_levels": self.max_levels,
                },
            )
            return False

        if child_id in chain:
            logger.warning(
                "Sponsor loop detected",
                extra={
                    "child_id": child_id,
                    "sponsor_id": proposed_sponsor_id,
                    "chain_ids": chain,
                },
            )
            return False

        return True

    async def _sponsor_chain(self, sponsor_id: int) -> list[int] | None:
        """
        Get the sponsor followed by all of its ancestors.

        Returns:
            Partner IDs nearest first, or None if the chain does not end
            within max_levels hops
        """
        edges = await self.hierarchy_repo.get_ancestor_edges(sponsor_id)
        if edges:
            if max(edge.level for edge in edges) > self.max_levels:
                return None
            return [sponsor_id] + [edge.ancestor_id for edge in edges]

        chain = [sponsor_id]
        seen_ids = {sponsor_id}
        _, current_id = await self.partner_repo.get_sponsor_id(sponsor_id)
        hops = 0

        while current_id is not None:
            hops += 1
            if hops > self.max_levels or current_id in seen_ids:
                return None
            seen_ids.add(current_id)
            chain.append(current_id)
            _, current_id = await self.partner_repo.get_sponsor_id(current_id)

        return chain
