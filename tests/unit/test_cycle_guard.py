"""
Unit tests for the cycle guard and the sponsor pointer walk.

Repositories are mocked so corrupted pointer chains (loops, dangling
pointers, over-long chains) can be simulated without a database.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.hierarchy.cycle_guard import CycleGuard
from app.services.hierarchy.upline_resolver import UplineEntry, UplineResolver
from app.utils.exceptions import (
    CircularReferenceDetected,
    HierarchyTooDeep,
    PartnerNotFound,
    ReconciliationDriftDetected,
)


def pointer_table(pointers: dict[int, int | None]) -> AsyncMock:
    """Mock get_sponsor_id backed by a {partner_id: sponsor_id} dict."""
    async def get_sponsor_id(partner_id):
        if partner_id not in pointers:
            return False, None
        return True, pointers[partner_id]

    return AsyncMock(side_effect=get_sponsor_id)


def edge(ancestor_id: int, level: int) -> MagicMock:
    """Mock closure row."""
    row = MagicMock()
    row.ancestor_id = ancestor_id
    row.level = level
    return row


@pytest.fixture
def guard(mock_session):
    """CycleGuard with mocked repositories and a 3-level limit."""
    guard = CycleGuard(mock_session, max_levels=3)
    guard.hierarchy_repo = MagicMock()
    guard.hierarchy_repo.get_ancestor_edges = AsyncMock(return_value=[])
    guard.partner_repo = MagicMock()
    return guard


@pytest.fixture
def resolver(mock_session):
    """UplineResolver with mocked repositories and a 3-level limit."""
    resolver = UplineResolver(mock_session, max_levels=3)
    resolver.hierarchy_repo = MagicMock()
    resolver.partner_repo = MagicMock()
    return resolver


class TestCycleGuard:
    """Test link validation."""

    @pytest.mark.asyncio
    async def test_self_link_rejected(self, guard):
        """A partner cannot sponsor itself."""
        assert await guard.can_link(5, 5) is False

    @pytest.mark.asyncio
    async def test_link_under_unrelated_chain(self, guard):
        """Linking under a chain that does not contain the child is safe."""
        guard.hierarchy_repo.get_ancestor_edges = AsyncMock(
            return_value=[edge(2, 1), edge(1, 2)]
        )
        assert await guard.can_link(9, 3) is True

    @pytest.mark.asyncio
    async def test_child_in_sponsor_chain_rejected(self, guard):
        """Linking under one's own descendant is a cycle."""
        guard.hierarchy_repo.get_ancestor_edges = AsyncMock(
            return_value=[edge(2, 1), edge(1, 2)]
        )
        assert await guard.can_link(1, 3) is False

    @pytest.mark.asyncio
    async def test_pointer_fallback_without_closure_rows(self, guard):
        """Pointers are walked when the sponsor has no closure rows."""
        guard.partner_repo.get_sponsor_id = pointer_table({3: 2, 2: 1, 1: None})

        assert await guard.can_link(1, 3) is False
        assert await guard.can_link(9, 3) is True

    @pytest.mark.asyncio
    async def test_pointer_loop_rejected(self, guard):
        """A looping pointer chain never terminates and is rejected."""
        guard.partner_repo.get_sponsor_id = pointer_table({3: 2, 2: 3})

        assert await guard.can_link(9, 3) is False

    @pytest.mark.asyncio
    async def test_overlong_chain_rejected(self, guard):
        """Chains longer than max_levels are treated as corrupt."""
        guard.hierarchy_repo.get_ancestor_edges = AsyncMock(
            return_value=[edge(10 + level, level) for level in range(1, 5)]
        )
        assert await guard.can_link(9, 3) is False


class TestSponsorChainWalk:
    """Test bounded, cycle-checked pointer walk."""

    @pytest.mark.asyncio
    async def test_walk_to_root(self, resolver):
        """Walk returns ancestors nearest first with hop counts."""
        resolver.partner_repo.get_sponsor_id = pointer_table(
            {3: 2, 2: 1, 1: None}
        )

        result = await resolver.walk_sponsor_chain(3)

        assert result == [UplineEntry(2, 1), UplineEntry(1, 2)]

    @pytest.mark.asyncio
    async def test_missing_partner(self, resolver):
        """Unknown partner raises PartnerNotFound."""
        resolver.partner_repo.get_sponsor_id = pointer_table({})

        with pytest.raises(PartnerNotFound):
            await resolver.walk_sponsor_chain(42)

    @pytest.mark.asyncio
    async def test_circular_chain(self, resolver):
        """A repeated partner raises instead of looping."""
        resolver.partner_repo.get_sponsor_id = pointer_table({1: 2, 2: 3, 3: 1})

        with pytest.raises(CircularReferenceDetected) as exc_info:
            await resolver.walk_sponsor_chain(1)

        assert exc_info.value.repeated_id == 1

    @pytest.mark.asyncio
    async def test_chain_too_deep(self, resolver):
        """Walk stops at max_levels hops."""
        resolver.partner_repo.get_sponsor_id = pointer_table(
            {5: 4, 4: 3, 3: 2, 2: 1, 1: None}
        )

        with pytest.raises(HierarchyTooDeep):
            await resolver.walk_sponsor_chain(5)

    @pytest.mark.asyncio
    async def test_dangling_pointer_stops_walk(self, resolver):
        """A pointer to a missing partner ends the chain."""
        resolver.partner_repo.get_sponsor_id = pointer_table({3: 2, 2: 99})

        result = await resolver.walk_sponsor_chain(3)

        assert result == [UplineEntry(2, 1)]


class TestResolveUpline:
    """Test closure-table resolution."""

    @pytest.mark.asyncio
    async def test_contiguous_levels(self, resolver):
        """Closure rows map to entries in level order."""
        resolver.hierarchy_repo.get_ancestor_edges = AsyncMock(
            return_value=[edge(2, 1), edge(1, 2)]
        )

        result = await resolver.resolve_upline(3)

        assert result == [UplineEntry(2, 1), UplineEntry(1, 2)]

    @pytest.mark.asyncio
    async def test_zero_levels(self, resolver):
        """max_levels=0 returns nothing without querying."""
        resolver.hierarchy_repo.get_ancestor_edges = AsyncMock()

        assert await resolver.resolve_upline(3, max_levels=0) == []
        resolver.hierarchy_repo.get_ancestor_edges.assert_not_called()

    @pytest.mark.asyncio
    async def test_gap_is_drift(self, resolver):
        """Missing level raises drift."""
        resolver.hierarchy_repo.get_ancestor_edges = AsyncMock(
            return_value=[edge(2, 1), edge(1, 3)]
        )

        with pytest.raises(ReconciliationDriftDetected):
            await resolver.resolve_upline(3)

    @pytest.mark.asyncio
    async def test_repeated_ancestor_is_drift(self, resolver):
        """Same ancestor at two levels raises drift."""
        resolver.hierarchy_repo.get_ancestor_edges = AsyncMock(
            return_value=[edge(2, 1), edge(2, 2)]
        )

        with pytest.raises(ReconciliationDriftDetected):
            await resolver.resolve_upline(3)
