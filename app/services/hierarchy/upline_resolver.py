"""
Upline resolution module.

Returns a partner's ordered ancestor chain, from the closure table (normal
path) or by walking sponsor pointers (diagnostic and repair path).
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.repositories.hierarchy_repository import HierarchyRepository
from app.repositories.partner_repository import PartnerRepository
from app.utils.exceptions import (
    CircularReferenceDetected,
    HierarchyTooDeep,
    PartnerNotFound,
    ReconciliationDriftDetected,
)


@dataclass(frozen=True)
class UplineEntry:
    """One ancestor of a partner."""

    ancestor_id: int
    level: int


class UplineResolver:
    """Resolves ancestor chains."""

    def __init__(
        self, session: AsyncSession, max_levels: int | None = None
    ) -> None:
        """Initialize upline resolver."""
        self.session = session
        self.max_levels = max_levels or settings.max_hierarchy_levels
        self.partner_repo = PartnerRepository(session)
        self.hierarchy_repo = HierarchyRepository(session)

    async def resolve_upline(
        self, partner_id: int, max_levels: int | None = None
    ) -> list[UplineEntry]:
        """
        Get ancestors from the closure table.

        Levels are 1..N with no gaps and no ancestor repeated. Rows that
        break this are never returned; the caller gets
        ReconciliationDriftDetected and the partner needs an audit.

        Args:
            partner_id: Partner ID
            max_levels: Deepest level to return (defaults to the hierarchy limit)

        Returns:
            Ancestors ordered nearest first

        Raises:
            ReconciliationDriftDetected: Closure rows are corrupt
        """
        limit = self.max_levels if max_levels is None else max_levels
        if limit <= 0:
            return []

        edges = await self.hierarchy_repo.get_ancestor_edges(
            partner_id, max_level=limit
        )

        upline: list[UplineEntry] = []
        seen_ids: set[int] = set()
        for expected_level, edge in enumerate(edges, start=1):
            if edge.level != expected_level:
                raise ReconciliationDriftDetected(
                    partner_id,
                    f"expected level {expected_level}, found level {edge.level}",
                )
            if edge.ancestor_id in seen_ids or edge.ancestor_id == partner_id:
                raise ReconciliationDriftDetected(
                    partner_id,
                    f"ancestor {edge.ancestor_id} appears more than once",
                )
            seen_ids.add(edge.ancestor_id)
            upline.append(UplineEntry(edge.ancestor_id, edge.level))

        logger.debug(
            "Upline resolved",
            extra={
                "partner_id": partner_id,
                "max_levels": limit,
                "chain_length": len(upline),
            },
        )

        return upline

    async def walk_sponsor_chain(
        self, partner_id: int, max_levels: int | None = None
    ) -> list[UplineEntry]:
        """
        Get ancestors by following sponsor pointers.

        Diagnostic/repair path only. Every visited id is remembered, so a
        corrupted chain is reported instead of looping.

        Args:
            partner_id: Partner ID
            max_levels: Maximum hops (defaults to the hierarchy limit)

        Returns:
            Ancestors ordered nearest first

        Raises:
            PartnerNotFound: Partner does not exist
            CircularReferenceDetected: A partner id repeats in the chain
            HierarchyTooDeep: Chain does not end within max_levels hops
        """
        limit = self.max_levels if max_levels is None else max_levels

        exists, current_id = await self.partner_repo.get_sponsor_id(partner_id)
        if not exists:
            raise PartnerNotFound(partner_id)

        upline: list[UplineEntry] = []
        seen_ids = {partner_id}
        level = 1

        while current_id is not None:
            if current_id in seen_ids:
                logger.warning(
                    "Circular sponsor chain detected",
                    extra={
                        "partner_id": partner_id,
                        "repeated_id": current_id,
                        "level": level,
                    },
                )
                raise CircularReferenceDetected(partner_id, current_id)
            if level > limit:
                raise HierarchyTooDeep(partner_id, limit)

            exists, next_id = await self.partner_repo.get_sponsor_id(current_id)
            if not exists:
                logger.warning(
                    "Sponsor pointer references a missing partner",
                    extra={
                        "partner_id": partner_id,
                        "missing_sponsor_id": current_id,
                        "level": level,
                    },
                )
                break

            seen_ids.add(current_id)
            upline.append(UplineEntry(current_id, level))
            current_id = next_id
            level += 1

        return upline
