"""
Hierarchy chain management module.

The only writer of sponsor pointers and closure rows outside of
reconciliation. Pointer and closure rows always change in one transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.partner import Partner
from app.repositories.hierarchy_repository import HierarchyRepository
from app.repositories.partner_repository import PartnerRepository
from app.services.base_service import BaseService, transaction
from app.services.hierarchy.cycle_guard import CycleGuard
from app.services.hierarchy.upline_resolver import UplineEntry, UplineResolver
from app.utils.exceptions import (
    CycleDetected,
    HierarchyTooDeep,
    PartnerNotFound,
    ReconciliationDriftDetected,
    SponsorAlreadyAssigned,
    SponsorNotFound,
)
from app.utils.partner_code import build_partner_code, partner_code_prefix


class HierarchyChainManager(BaseService):
    """Creates partners and sponsor links together with their closure rows."""

    def __init__(
        self, session: AsyncSession, max_levels: int | None = None
    ) -> None:
        """Initialize chain manager."""
        super().__init__(session)
        self.max_levels = max_levels or settings.max_hierarchy_levels
        self.partner_repo = PartnerRepository(session)
        self.hierarchy_repo = HierarchyRepository(session)
        self.cycle_guard = CycleGuard(session, self.max_levels)
        self.upline_resolver = UplineResolver(session, self.max_levels)

    @transaction
    async def create_partner(
        self,
        first_name: str,
        last_name: str,
        email: str,
        sponsor_id: int | None = None,
    ) -> Partner:
        """
        Create a partner, optionally under a sponsor.

        The sponsor row is locked for the rest of the transaction so a
        concurrent link cannot extend the chain being checked.

        Args:
            first_name: First name
            last_name: Last name
            email: Contact email
            sponsor_id: Sponsor partner ID (None for a root partner)

        Returns:
            Created partner

        Raises:
            SponsorNotFound: Sponsor does not exist
            CycleDetected: Cycle guard rejected the link
            HierarchyTooDeep: Partner would sit deeper than max_levels
            ReconciliationDriftDetected: Sponsor's closure rows are corrupt
        """
        sponsor_chain: list[UplineEntry] = []
        if sponsor_id is not None:
            sponsor = await self.partner_repo.get_for_update(sponsor_id)
            if sponsor is None:
                raise SponsorNotFound(sponsor_id)

            sponsor_chain = await self._chain_through(sponsor)
            if len(sponsor_chain) > self.max_levels:
                raise HierarchyTooDeep(None, self.max_levels)

        partner = await self.partner_repo.create(
            partner_code=await self._next_partner_code(first_name, last_name),
            first_name=first_name,
            last_name=last_name,
            email=email.strip().lower(),
        )

        if sponsor_id is not None:
            if not await self.cycle_guard.can_link(partner.id, sponsor_id):
                raise CycleDetected(partner.id, sponsor_id)

            partner.sponsor_id = sponsor_id
            await self.hierarchy_repo.add_edges(
                partner.id,
                [(entry.ancestor_id, entry.level) for entry in sponsor_chain],
            )

        self.logger.info(
            "Partner created",
            extra={
                "partner_id": partner.id,
                "partner_code": partner.partner_code,
                "sponsor_id": sponsor_id,
                "levels_created": len(sponsor_chain),
            },
        )

        return partner

    @transaction
    async def link_sponsor(self, partner_id: int, sponsor_id: int) -> Partner:
        """
        Place an existing sponsorless partner under a sponsor.

        The partner's whole subtree moves with it: every descendant gains
        the sponsor's chain, shifted by its distance to the partner.

        Args:
            partner_id: Partner without a sponsor
            sponsor_id: New sponsor

        Returns:
            Updated partner

        Raises:
            PartnerNotFound: Partner does not exist
            SponsorAlreadyAssigned: Partner already has a sponsor
            SponsorNotFound: Sponsor does not exist
            CycleDetected: Sponsor is the partner or one of its descendants
            HierarchyTooDeep: Some descendant would exceed max_levels
            ReconciliationDriftDetected: Closure rows disagree with pointers
        """
        partner = await self.partner_repo.get_for_update(partner_id)
        if partner is None:
            raise PartnerNotFound(partner_id)
        if partner.sponsor_id is not None:
            raise SponsorAlreadyAssigned(partner_id, partner.sponsor_id)

        sponsor = await self.partner_repo.get_for_update(sponsor_id)
        if sponsor is None:
            raise SponsorNotFound(sponsor_id)

        if not await self.cycle_guard.can_link(partner_id, sponsor_id):
            raise CycleDetected(partner_id, sponsor_id)

        if await self.hierarchy_repo.get_ancestor_edges(partner_id):
            raise ReconciliationDriftDetected(
                partner_id, "partner without sponsor has ancestor rows"
            )

        sponsor_chain = await self._chain_through(sponsor)
        subtree = await self.hierarchy_repo.get_descendant_edges(partner_id)
        deepest = max((edge.level for edge in subtree), default=0)
        if len(sponsor_chain) + deepest > self.max_levels:
            raise HierarchyTooDeep(partner_id, self.max_levels)

        partner.sponsor_id = sponsor_id
        await self.hierarchy_repo.add_edges(
            partner_id,
            [(entry.ancestor_id, entry.level) for entry in sponsor_chain],
        )
        for edge in subtree:
            await self.hierarchy_repo.add_edges(
                edge.child_id,
                [
                    (entry.ancestor_id, entry.level + edge.level)
                    for entry in sponsor_chain
                ],
            )

        self.logger.info(
            "Partner linked to sponsor",
            extra={
                "partner_id": partner_id,
                "sponsor_id": sponsor_id,
                "descendants_moved": len(subtree),
                "levels_created": len(sponsor_chain) * (len(subtree) + 1),
            },
        )

        return partner

    async def _chain_through(self, sponsor: Partner) -> list[UplineEntry]:
        """
        Get the chain a new child of sponsor inherits.

        The sponsor is level 1; each of its ancestors moves one level down.
        """
        sponsor_upline = await self.upline_resolver.resolve_upline(
            sponsor.id, self.max_levels
        )

        nearest = sponsor_upline[0].ancestor_id if sponsor_upline else None
        if nearest != sponsor.sponsor_id:
            raise ReconciliationDriftDetected(
                sponsor.id,
                f"sponsor pointer is {sponsor.sponsor_id}, "
                f"level 1 ancestor row is {nearest}",
            )

        return [UplineEntry(sponsor.id, 1)] + [
            UplineEntry(entry.ancestor_id, entry.level + 1)
            for entry in sponsor_upline
        ]

    async def _next_partner_code(self, first_name: str, last_name: str) -> str:
        """Issue the next free code for the partner's initials."""
        prefix = partner_code_prefix(first_name, last_name)
        sequence = await self.partner_repo.count_codes_with_prefix(prefix) + 1
        code = build_partner_code(prefix, sequence)

        while await self.partner_repo.get_by(partner_code=code) is not None:
            sequence += 1
            code = build_partner_code(prefix, sequence)

        return code
