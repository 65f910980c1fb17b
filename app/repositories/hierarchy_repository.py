"""
Hierarchy repository.

Data access layer for the partner_hierarchy closure table.
"""

from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.hierarchy_edge import HierarchyEdge
from app.repositories.base import BaseRepository


class HierarchyRepository(BaseRepository[HierarchyEdge]):
    """Closure table repository with ancestor/descendant queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize hierarchy repository."""
        super().__init__(HierarchyEdge, session)

    async def get_ancestor_edges(
        self, child_id: int, max_level: int | None = None
    ) -> list[HierarchyEdge]:
        """
        Get ancestor rows of a partner, nearest first.

        Args:
            child_id: Partner ID
            max_level: Optional upper bound on level (inclusive)

        Returns:
            Rows ordered by level, then id
        """
        stmt = select(HierarchyEdge).where(HierarchyEdge.child_id == child_id)
        if max_level is not None:
            stmt = stmt.where(HierarchyEdge.level <= max_level)
        stmt = stmt.order_by(HierarchyEdge.level, HierarchyEdge.id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_descendant_edges(
        self, ancestor_id: int
    ) -> list[HierarchyEdge]:
        """
        Get rows of every partner below an ancestor, nearest first.

        Args:
            ancestor_id: Partner ID at the top of the subtree

        Returns:
            Rows ordered by level, then child id
        """
        stmt = (
            select(HierarchyEdge)
            .where(HierarchyEdge.ancestor_id == ancestor_id)
            .order_by(HierarchyEdge.level, HierarchyEdge.child_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add_edges(
        self, child_id: int, ancestors: Iterable[tuple[int, int]]
    ) -> list[HierarchyEdge]:
        """
        Insert ancestor rows for one partner.

        Args:
            child_id: Partner ID
            ancestors: (ancestor_id, level) pairs

        Returns:
            Inserted rows
        """
        edges = [
            HierarchyEdge(child_id=child_id, ancestor_id=ancestor_id, level=level)
            for ancestor_id, level in ancestors
        ]
        if edges:
            self.session.add_all(edges)
            await self.session.flush()
        return edges

    async def delete_edges(self, edge_ids: list[int]) -> int:
        """
        Delete rows by ID immediately (not deferred to flush).

        Args:
            edge_ids: Row IDs

        Returns:
            Number of rows deleted
        """
        if not edge_ids:
            return 0
        stmt = (
            delete(HierarchyEdge)
            .where(HierarchyEdge.id.in_(edge_ids))
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def count_descendants(self, ancestor_id: int) -> int:
        """
        Count distinct partners below an ancestor (team size).

        Args:
            ancestor_id: Partner ID

        Returns:
            Team size
        """
        stmt = select(
            func.count(func.distinct(HierarchyEdge.child_id))
        ).where(HierarchyEdge.ancestor_id == ancestor_id)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_level_counts(self, ancestor_id: int) -> dict[int, int]:
        """
        Get team counts for all levels in a single query.

        Args:
            ancestor_id: Partner ID

        Returns:
            Dict mapping level to number of partners at that depth
        """
        stmt = (
            select(
                HierarchyEdge.level,
                func.count(HierarchyEdge.id).label("count"),
            )
            .where(HierarchyEdge.ancestor_id == ancestor_id)
            .group_by(HierarchyEdge.level)
            .order_by(HierarchyEdge.level)
        )
        result = await self.session.execute(stmt)
        return {row.level: row.count for row in result.all()}
