"""
Integration tests for hierarchy reconciliation.

Tests cover:
- Same ancestor at two levels (the production defect class)
- Missing closure rows
- Stale repair plans
- Full sweep with and without apply
- Payout and signup refused while drift is present
"""

import pytest

from app.models import Partner
from app.repositories.hierarchy_repository import HierarchyRepository
from app.services.hierarchy import EdgeRef, PlannedEdge, UplineEntry
from app.utils.exceptions import ReconciliationDriftDetected


@pytest.fixture
def corrupt_leaf(db_session, chain, add_edge):
    """
    Replace Leaf's level 2 row (Root) with a second Mid row.

    Returns:
        Async callable returning the bad row's ID
    """
    async def _corrupt() -> int:
        hierarchy_repo = HierarchyRepository(db_session)
        edges = await hierarchy_repo.get_ancestor_edges(chain["leaf"])
        root_edge = next(e for e in edges if e.ancestor_id == chain["root"])
        await hierarchy_repo.delete_edges([root_edge.id])
        return await add_edge(chain["leaf"], chain["mid"], 2)

    return _corrupt


class TestAuditPartner:
    """Test drift detection."""

    @pytest.mark.asyncio
    async def test_consistent_chain_is_clean(self, partner_service, chain):
        """Rows written by the chain manager never drift."""
        for partner_id in chain.values():
            plan = await partner_service.audit_partner(partner_id)
            assert plan.is_clean

    @pytest.mark.asyncio
    async def test_duplicate_ancestor_detected(
        self, partner_service, chain, corrupt_leaf
    ):
        """Same ancestor at two levels: delete the wrong row, insert Root."""
        bad_edge_id = await corrupt_leaf()

        plan = await partner_service.audit_partner(chain["leaf"])

        assert plan.to_delete == [EdgeRef(bad_edge_id, chain["mid"], 2)]
        assert plan.to_insert == [PlannedEdge(chain["root"], 2)]

    @pytest.mark.asyncio
    async def test_audit_does_not_write(
        self, db_session, partner_service, chain, corrupt_leaf
    ):
        """Detection never mutates rows."""
        await corrupt_leaf()

        await partner_service.audit_partner(chain["leaf"])
        await partner_service.audit_partner(chain["leaf"])

        edges = await HierarchyRepository(db_session).get_ancestor_edges(
            chain["leaf"]
        )
        assert [(e.ancestor_id, e.level) for e in edges] == [
            (chain["mid"], 1),
            (chain["mid"], 2),
        ]

    @pytest.mark.asyncio
    async def test_missing_rows_detected(self, db_session, partner_service, chain):
        """Partner with a pointer but no rows gets every row inserted."""
        orphan = Partner(
            partner_code="oo001",
            first_name="Otto",
            last_name="Orphan",
            email="otto@example.com",
            sponsor_id=chain["leaf"],
        )
        db_session.add(orphan)
        await db_session.commit()

        plan = await partner_service.audit_partner(orphan.id)

        assert plan.to_delete == []
        assert plan.to_insert == [
            PlannedEdge(chain["leaf"], 1),
            PlannedEdge(chain["mid"], 2),
            PlannedEdge(chain["root"], 3),
        ]


class TestApplyRepair:
    """Test explicit repair."""

    @pytest.mark.asyncio
    async def test_repair_restores_chain(
        self, partner_service, chain, corrupt_leaf
    ):
        """Applied plan leaves one row per ancestor."""
        await corrupt_leaf()
        plan = await partner_service.audit_partner(chain["leaf"])

        await partner_service.apply_repair(plan)

        assert await partner_service.get_upline(chain["leaf"]) == [
            UplineEntry(chain["mid"], 1),
            UplineEntry(chain["root"], 2),
        ]
        assert (await partner_service.audit_partner(chain["leaf"])).is_clean

    @pytest.mark.asyncio
    async def test_stale_plan_rejected(
        self, partner_service, chain, corrupt_leaf
    ):
        """A plan that no longer matches the rows is not applied."""
        await corrupt_leaf()
        plan = await partner_service.audit_partner(chain["leaf"])
        await partner_service.apply_repair(plan)

        with pytest.raises(ReconciliationDriftDetected):
            await partner_service.apply_repair(plan)

        assert (await partner_service.audit_partner(chain["leaf"])).is_clean

    @pytest.mark.asyncio
    async def test_clean_plan_is_noop(self, partner_service, chain):
        """Applying a clean plan writes nothing."""
        plan = await partner_service.audit_partner(chain["leaf"])

        assert await partner_service.apply_repair(plan) is plan


class TestReconciliationSweep:
    """Test audit_all."""

    @pytest.mark.asyncio
    async def test_sweep_reports_without_applying(
        self, partner_service, chain, corrupt_leaf
    ):
        """Dry run reports drift and leaves it in place."""
        await corrupt_leaf()

        report = await partner_service.reconciler.audit_all(batch_size=2)

        assert report.audited == 3
        assert [plan.partner_id for plan in report.drifted] == [chain["leaf"]]
        assert report.repaired == []
        assert not (await partner_service.audit_partner(chain["leaf"])).is_clean

    @pytest.mark.asyncio
    async def test_sweep_with_apply(self, partner_service, chain, corrupt_leaf):
        """Apply sweep repairs every drifted partner."""
        await corrupt_leaf()

        report = await partner_service.reconciler.audit_all(apply=True)

        assert report.repaired == [chain["leaf"]]
        assert (await partner_service.reconciler.audit_all()).is_clean

    @pytest.mark.asyncio
    async def test_circular_pointers_reported(
        self, db_session, partner_service, chain
    ):
        """Looping pointers are reported as failures, not repaired."""
        first = Partner(
            partner_code="cc001",
            first_name="Cy",
            last_name="Cle",
            email="cy@example.com",
        )
        db_session.add(first)
        await db_session.flush()
        second = Partner(
            partner_code="cc002",
            first_name="Cy",
            last_name="Clone",
            email="cy.clone@example.com",
            sponsor_id=first.id,
        )
        db_session.add(second)
        await db_session.flush()
        first.sponsor_id = second.id
        await db_session.commit()
        loop_ids = {first.id, second.id}

        report = await partner_service.reconciler.audit_all(apply=True)

        assert set(report.failures) == loop_ids
        assert report.repaired == []


class TestDriftBlocksPayout:
    """Test distributor behaviour on corrupt rows."""

    @pytest.mark.asyncio
    async def test_distribution_refused(
        self, partner_service, chain, corrupt_leaf, make_deal
    ):
        """Corrupt upline raises and writes no ledger rows."""
        await corrupt_leaf()
        deal_id = await make_deal(chain["leaf"])

        with pytest.raises(ReconciliationDriftDetected):
            await partner_service.distribute_commission(deal_id)

        plan = await partner_service.audit_partner(chain["leaf"])
        await partner_service.apply_repair(plan)
        entries = await partner_service.distribute_commission(deal_id)
        assert len(entries) == 3


class TestDriftBlocksSignup:
    """Test signup under a sponsor whose rows disagree with its pointer."""

    @pytest.mark.asyncio
    async def test_signup_refused(self, db_session, partner_service, chain):
        """Sponsor with a pointer but no rows raises and creates nobody."""
        orphan = Partner(
            partner_code="oo001",
            first_name="Otto",
            last_name="Orphan",
            email="otto@example.com",
            sponsor_id=chain["leaf"],
        )
        db_session.add(orphan)
        await db_session.commit()

        with pytest.raises(ReconciliationDriftDetected):
            await partner_service.register_partner(
                "Nina", "New", "nina.new@example.com", sponsor_code="oo001"
            )

        recruit = await partner_service.partner_repo.get_by(
            email="nina.new@example.com"
        )
        assert recruit is None
