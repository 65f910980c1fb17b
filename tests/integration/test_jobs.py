"""Integration tests for dramatiq task bodies."""

from contextlib import asynccontextmanager
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.utils.exceptions import CycleDetected
from jobs.tasks import commission_distribution, hierarchy_reconciliation


@pytest.fixture
def local_session(db_session, monkeypatch):
    """Point the tasks' session factory at the test database."""
    @asynccontextmanager
    async def _local_session():
        yield db_session

    monkeypatch.setattr(
        commission_distribution, "create_local_session", _local_session
    )
    monkeypatch.setattr(
        hierarchy_reconciliation, "create_local_session", _local_session
    )
    return db_session


class TestCommissionDistributionTask:
    """Test distribute_deal_commission body."""

    @pytest.mark.asyncio
    async def test_distributes_deal(self, local_session, chain, make_deal):
        """Task writes the deal's ledger entries."""
        deal_id = await make_deal(chain["leaf"], value=Decimal("50000"))

        entries = await commission_distribution._distribute_async(deal_id)

        assert [entry.level for entry in entries] == [0, 1, 2]

    def test_retries_only_transient_errors(self):
        """Serialization failures are retried, rejections are not."""
        transient = OperationalError("UPDATE", {}, Exception("deadlock"))

        assert commission_distribution._retry_when(0, transient) is True
        assert commission_distribution._retry_when(0, CycleDetected(1, 2)) is False
        assert commission_distribution._retry_when(99, transient) is False


class TestHierarchyReconciliationTask:
    """Test reconcile_hierarchy body for a single partner."""

    @pytest.mark.asyncio
    async def test_single_partner_dry_run(self, local_session, chain):
        """Clean partner reports no drift."""
        result = await hierarchy_reconciliation._reconcile_partner_async(
            chain["leaf"], apply=False
        )

        assert result["drifted"] is False
        assert result["repaired"] is False

    @pytest.mark.asyncio
    async def test_single_partner_apply(
        self, local_session, partner_service, chain, add_edge
    ):
        """Missing rows are inserted when apply=True."""
        orphan_id = await partner_service.register_partner(
            "Otto", "Orphan", "otto@example.com"
        )
        await add_edge(orphan_id, chain["root"], 2)

        result = await hierarchy_reconciliation._reconcile_partner_async(
            orphan_id, apply=True
        )

        assert result["drifted"] is True
        assert result["to_delete"] == 1
        assert result["repaired"] is True
        assert (await partner_service.audit_partner(orphan_id)).is_clean
