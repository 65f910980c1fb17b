"""
Hierarchy reconciliation module.

Audits closure rows against the sponsor pointer chain and repairs drift.
Detection and repair are separate steps: audit_partner never writes, and a
plan is only executed through an explicit apply_repair call.
"""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.repositories.hierarchy_repository import HierarchyRepository
from app.repositories.partner_repository import PartnerRepository
from app.services.base_service import BaseService, log_operation, transaction
from app.services.hierarchy.upline_resolver import UplineResolver
from app.utils.exceptions import (
    CircularReferenceDetected,
    HierarchyTooDeep,
    PartnerNotFound,
    ReconciliationDriftDetected,
)


@dataclass(frozen=True)
class EdgeRef:
    """Existing closure row scheduled for deletion."""

    edge_id: int
    ancestor_id: int
    level: int


@dataclass(frozen=True)
class PlannedEdge:
    """Closure row scheduled for insertion."""

    ancestor_id: int
    level: int


@dataclass
class RepairPlan:
    """Rows to delete and insert to make a partner's closure rows match its pointer chain."""

    partner_id: int
    to_delete: list[EdgeRef] = field(default_factory=list)
    to_insert: list[PlannedEdge] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """True when no drift was found."""
        return not self.to_delete and not self.to_insert


@dataclass
class ReconciliationReport:
    """Result of a reconciliation sweep."""

    audited: int = 0
    drifted: list[RepairPlan] = field(default_factory=list)
    repaired: list[int] = field(default_factory=list)
    failures: dict[int, str] = field(default_factory=dict)

    @property
    def is_clean(self) -> bool:
        """True when every partner was consistent."""
        return not self.drifted and not self.failures


class HierarchyReconciler(BaseService):
    """Detects and repairs drift between sponsor pointers and closure rows."""

    def __init__(
        self, session: AsyncSession, max_levels: int | None = None
    ) -> None:
        """Initialize reconciler."""
        super().__init__(session)
        self.max_levels = max_levels or settings.max_hierarchy_levels
        self.partner_repo = PartnerRepository(session)
        self.hierarchy_repo = HierarchyRepository(session)
        self.upline_resolver = UplineResolver(session, self.max_levels)

    async def audit_partner(self, partner_id: int) -> RepairPlan:
        """
        Diff a partner's closure rows against its sponsor pointer chain.

        Each expected (ancestor, level) pair keeps its first matching row.
        Every other row, including a second copy of an ancestor at another
        level, is scheduled for deletion; missing pairs are scheduled for
        insertion.

        Args:
            partner_id: Partner ID

        Returns:
            Repair plan (clean when nothing drifted)

        Raises:
            PartnerNotFound: Partner does not exist
            CircularReferenceDetected: Pointer chain loops
            HierarchyTooDeep: Pointer chain is longer than max_levels
        """
        expected = await self.upline_resolver.walk_sponsor_chain(
            partner_id, self.max_levels
        )
        expected_pairs = {(entry.ancestor_id, entry.level) for entry in expected}

        current = await self.hierarchy_repo.get_ancestor_edges(partner_id)

        kept: set[tuple[int, int]] = set()
        plan = RepairPlan(partner_id=partner_id)
        for edge in current:
            pair = (edge.ancestor_id, edge.level)
            if pair in expected_pairs and pair not in kept:
                kept.add(pair)
            else:
                plan.to_delete.append(
                    EdgeRef(edge.id, edge.ancestor_id, edge.level)
                )

        plan.to_insert = [
            PlannedEdge(entry.ancestor_id, entry.level)
            for entry in expected
            if (entry.ancestor_id, entry.level) not in kept
        ]

        if not plan.is_clean:
            self.logger.warning(
                "Hierarchy drift detected",
                extra={
                    "partner_id": partner_id,
                    "to_delete": [
                        (ref.ancestor_id, ref.level) for ref in plan.to_delete
                    ],
                    "to_insert": [
                        (edge.ancestor_id, edge.level) for edge in plan.to_insert
                    ],
                },
            )

        return plan

    @transaction
    async def apply_repair(self, plan: RepairPlan) -> RepairPlan:
        """
        Execute a reviewed repair plan atomically.

        The partner is re-audited inside the transaction; if the rows have
        changed since the plan was produced, nothing is written.

        Args:
            plan: Plan returned by audit_partner

        Returns:
            The applied plan

        Raises:
            ReconciliationDriftDetected: Plan no longer matches the data
        """
        if plan.is_clean:
            return plan

        partner = await self.partner_repo.get_for_update(plan.partner_id)
        if partner is None:
            raise PartnerNotFound(plan.partner_id)

        current_plan = await self.audit_partner(plan.partner_id)
        if current_plan != plan:
            raise ReconciliationDriftDetected(
                plan.partner_id, "repair plan is stale, audit again"
            )

        deleted = await self.hierarchy_repo.delete_edges(
            [ref.edge_id for ref in plan.to_delete]
        )
        await self.hierarchy_repo.add_edges(
            plan.partner_id,
            [(edge.ancestor_id, edge.level) for edge in plan.to_insert],
        )

        self.logger.info(
            "Hierarchy repaired",
            extra={
                "partner_id": plan.partner_id,
                "deleted": deleted,
                "inserted": len(plan.to_insert),
            },
        )

        return plan

    @log_operation
    async def audit_all(
        self, apply: bool = False, batch_size: int | None = None
    ) -> ReconciliationReport:
        """
        Audit every partner in ID order.

        Partners whose pointer chain is circular or too deep cannot be
        repaired automatically and are reported as failures.

        Args:
            apply: Apply each drift plan right after auditing it
            batch_size: Partners per batch

        Returns:
            Sweep report
        """
        batch_size = batch_size or settings.reconciliation_batch_size
        report = ReconciliationReport()
        after_id = 0

        while True:
            partner_ids = await self.partner_repo.get_ids_after(
                after_id, batch_size
            )
            if not partner_ids:
                break

            for partner_id in partner_ids:
                report.audited += 1
                try:
                    plan = await self.audit_partner(partner_id)
                except (CircularReferenceDetected, HierarchyTooDeep) as e:
                    report.failures[partner_id] = str(e)
                    continue

                if plan.is_clean:
                    continue

                report.drifted.append(plan)
                if apply:
                    try:
                        await self.apply_repair(plan)
                    except ReconciliationDriftDetected as e:
                        report.failures[partner_id] = str(e)
                        continue
                    report.repaired.append(partner_id)

            after_id = partner_ids[-1]

        self.logger.info(
            "Hierarchy reconciliation sweep finished",
            extra={
                "audited": report.audited,
                "drifted": len(report.drifted),
                "repaired": len(report.repaired),
                "failures": len(report.failures),
            },
        )

        return report
