"""
Partner service.

Entry point used by the signup flow, the deal pipeline and dashboards.
Delegates to the hierarchy and commission modules.
"""

from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission_ledger_entry import CommissionLedgerEntry
from app.repositories.partner_repository import PartnerRepository
from app.services.base_service import BaseService, transaction
from app.services.commission.calculator import CommissionCalculator
from app.services.commission.distributor import CommissionDistributor
from app.services.hierarchy import (
    HierarchyChainManager,
    HierarchyReconciler,
    RepairPlan,
    TeamStatisticsManager,
    UplineEntry,
    UplineResolver,
)
from app.utils.exceptions import PartnerNotFound, SponsorNotFound
from app.utils.partner_code import is_valid_partner_code


class PartnerService(BaseService):
    """
    Partner hierarchy and commission service.

    Each public method is one unit of work on the session it was created
    with.
    """

    def __init__(
        self,
        session: AsyncSession,
        calculator: CommissionCalculator | None = None,
        max_levels: int | None = None,
    ) -> None:
        """Initialize partner service."""
        super().__init__(session)
        self.partner_repo = PartnerRepository(session)

        self.chain_manager = HierarchyChainManager(session, max_levels)
        self.upline_resolver = UplineResolver(session, max_levels)
        self.distributor = CommissionDistributor(
            session, calculator=calculator, max_levels=max_levels
        )
        self.reconciler = HierarchyReconciler(session, max_levels)
        self.stats = TeamStatisticsManager(session)

    async def _resolve_sponsor_code(self, sponsor_code: str) -> int:
        """
        Look up the sponsor behind a partner code.

        Raises:
            SponsorNotFound: Code is malformed or unknown
        """
        if not is_valid_partner_code(sponsor_code):
            raise SponsorNotFound(sponsor_code)

        sponsor = await self.partner_repo.get_by_code(sponsor_code)
        if sponsor is None:
            raise SponsorNotFound(sponsor_code)

        return sponsor.id

    async def register_partner(
        self,
        first_name: str,
        last_name: str,
        email: str,
        sponsor_code: str | None = None,
    ) -> int:
        """
        Register a new partner, optionally under a sponsor.

        A partner code claimed by a concurrent signup between lookup and
        insert is retried once with a fresh code.

        Args:
            first_name: First name
            last_name: Last name
            email: Contact email
            sponsor_code: Sponsor's partner code

        Returns:
            New partner ID

        Raises:
            SponsorNotFound: Sponsor code does not resolve
            CycleDetected: Link would create a cycle
            HierarchyTooDeep: Partner would exceed the level limit
            ReconciliationDriftDetected: Sponsor's closure rows disagree
                with its sponsor pointer
            IntegrityError: Email is already registered
        """
        sponsor_id = None
        if sponsor_code:
            sponsor_id = await self._resolve_sponsor_code(sponsor_code)

        try:
            partner = await self.chain_manager.create_partner(
                first_name, last_name, email, sponsor_id=sponsor_id
            )
        except IntegrityError:
            # Only a partner code taken by a concurrent signup is retried
            existing = await self.partner_repo.get_by(email=email.strip().lower())
            if existing is not None:
                raise
            self.logger.warning(
                "Partner code taken by a concurrent signup, retrying",
                extra={"email": email, "sponsor_id": sponsor_id},
            )
            partner = await self.chain_manager.create_partner(
                first_name, last_name, email, sponsor_id=sponsor_id
            )
        return partner.id

    async def link_existing_partner(
        self, partner_id: int, sponsor_code: str
    ) -> int:
        """
        Place a sponsorless partner (and its team) under a sponsor.

        Returns:
            Sponsor ID

        Raises:
            SponsorNotFound: Sponsor code does not resolve
            SponsorAlreadyAssigned: Partner already has a sponsor
            CycleDetected: Sponsor is inside the partner's team
            HierarchyTooDeep: Some team member would exceed the level limit
        """
        sponsor_id = await self._resolve_sponsor_code(sponsor_code)
        await self.chain_manager.link_sponsor(partner_id, sponsor_id)
        return sponsor_id

    @transaction
    async def deactivate_partner(self, partner_id: int) -> None:
        """
        Deactivate a partner.

        The row, its sponsor pointer and its closure rows stay in place,
        so the partner keeps its position and its ledger history.
        """
        partner = await self.partner_repo.get_for_update(partner_id)
        if partner is None:
            raise PartnerNotFound(partner_id)

        partner.is_active = False
        self.logger.info(
            "Partner deactivated", extra={"partner_id": partner_id}
        )

    async def distribute_commission(
        self, deal_id: int
    ) -> list[CommissionLedgerEntry]:
        """Distribute commission for a deal (idempotent)."""
        return await self.distributor.distribute(deal_id)

    async def get_upline(
        self, partner_id: int, max_levels: int | None = None
    ) -> list[UplineEntry]:
        """Get the partner's ancestors, nearest first."""
        return await self.upline_resolver.resolve_upline(partner_id, max_levels)

    async def get_team_size(self, partner_id: int) -> int:
        """Get number of partners in the partner's team."""
        return await self.stats.get_team_size(partner_id)

    async def get_direct_revenue(self, partner_id: int) -> Decimal:
        """Get commission earned on the partner's own deals."""
        return await self.stats.get_direct_revenue(partner_id)

    async def get_override_revenue(self, partner_id: int) -> Decimal:
        """Get commission earned on the team's deals."""
        return await self.stats.get_override_revenue(partner_id)

    async def get_team_stats(self, partner_id: int) -> dict:
        """Get team size by level and revenue split."""
        return await self.stats.get_team_stats(partner_id)

    async def audit_partner(self, partner_id: int) -> RepairPlan:
        """Diff a partner's closure rows against its sponsor chain."""
        return await self.reconciler.audit_partner(partner_id)

    async def apply_repair(self, plan: RepairPlan) -> RepairPlan:
        """Apply a reviewed repair plan."""
        return await self.reconciler.apply_repair(plan)
