"""
Commission distributor.

Turns a commission-eligible deal into ledger entries for the submitting
partner and its sponsors. One deal is distributed in one transaction;
repeated or concurrent calls converge to one entry per payout.
"""

from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.commission_schedule import COMMISSION_ELIGIBLE_STATUSES
from app.config.settings import settings
from app.models.commission_ledger_entry import CommissionLedgerEntry
from app.models.enums import DealStatus, LedgerEntryKind
from app.repositories.commission_ledger_repository import (
    CommissionLedgerRepository,
)
from app.repositories.deal_repository import DealRepository
from app.services.base_service import BaseService, transaction
from app.services.commission.calculator import (
    CommissionCalculator,
    CommissionPool,
)
from app.services.hierarchy.upline_resolver import UplineResolver
from app.utils.exceptions import (
    DealNotEligible,
    DealNotFound,
    DuplicateLedgerEntry,
)


class CommissionDistributor(BaseService):
    """Writes commission ledger entries for deals."""

    def __init__(
        self,
        session: AsyncSession,
        calculator: CommissionCalculator | None = None,
        max_levels: int | None = None,
    ) -> None:
        """Initialize distributor."""
        super().__init__(session)
        self.calculator = calculator or CommissionCalculator()
        self.max_levels = max_levels or settings.max_hierarchy_levels
        self.deal_repo = DealRepository(session)
        self.ledger_repo = CommissionLedgerRepository(session)
        self.upline_resolver = UplineResolver(session, self.max_levels)

    async def distribute(self, deal_id: int) -> list[CommissionLedgerEntry]:
        """
        Distribute commission for a deal.

        Safe to retry: a deal that already has ledger entries is returned
        as is, even if its upline has changed since. A concurrent writer
        that wins the race makes this call roll back and return the
        entries that writer committed.

        Args:
            deal_id: Deal ID

        Returns:
            All ledger entries of the deal, ordered by level

        Raises:
            DealNotFound: Deal does not exist
            DealNotEligible: Deal status does not allow payout
            ReconciliationDriftDetected: Submitter's closure rows are corrupt
        """
        try:
            return await self._distribute(deal_id)
        except DuplicateLedgerEntry:
            self.logger.info(
                "Commission already written by a concurrent call",
                extra={"deal_id": deal_id},
            )
            return await self.ledger_repo.get_by_deal(deal_id)

    @transaction
    async def _distribute(self, deal_id: int) -> list[CommissionLedgerEntry]:
        """Compute and write the ledger entries of an unpaid deal."""
        deal = await self.deal_repo.get_for_update(deal_id)
        if deal is None:
            raise DealNotFound(deal_id)

        status = DealStatus(deal.status)
        if status not in COMMISSION_ELIGIBLE_STATUSES:
            raise DealNotEligible(deal_id, status.value)

        # A deal is paid in one transaction, so any row means it is complete
        existing = await self.ledger_repo.get_by_deal(deal_id)
        if existing:
            self.logger.info(
                "Commission already distributed",
                extra={"deal_id": deal_id, "entries_existing": len(existing)},
            )
            return existing

        pool = self.calculator.compute_pool(deal)
        upline = await self.upline_resolver.resolve_upline(
            deal.submitting_partner_id, min(pool.max_level, self.max_levels)
        )

        payees = [(deal.submitting_partner_id, 0)] + [
            (entry.ancestor_id, entry.level) for entry in upline
        ]
        new_entries = self._build_entries(deal_id, pool, payees)

        paid_total = sum((entry.amount for entry in new_entries), Decimal("0"))
        if paid_total > pool.total_pool:
            raise ValueError(
                f"Ledger total {paid_total} for deal {deal_id} "
                f"exceeds commission pool {pool.total_pool}"
            )

        if new_entries:
            self.session.add_all(new_entries)
            try:
                await self.session.flush()
            except IntegrityError as e:
                raise DuplicateLedgerEntry(deal_id) from e

        self.logger.info(
            "Commission distributed",
            extra={
                "deal_id": deal_id,
                "submitting_partner_id": deal.submitting_partner_id,
                "total_pool": str(pool.total_pool),
                "entries_written": len(new_entries),
                "upline_length": len(upline),
            },
        )

        return await self.ledger_repo.get_by_deal(deal_id)

    def _build_entries(
        self,
        deal_id: int,
        pool: CommissionPool,
        payees: list[tuple[int, int]],
    ) -> list[CommissionLedgerEntry]:
        """
        Build one entry per paid level.

        Levels without an ancestor are left unpaid; their share is not
        passed to anyone else.
        """
        entries: list[CommissionLedgerEntry] = []

        for payee_id, level in payees:
            amount = pool.amount_for_level(level)
            if amount <= 0:
                continue

            entries.append(
                CommissionLedgerEntry(
                    deal_id=deal_id,
                    payee_partner_id=payee_id,
                    level=level,
                    amount=amount,
                    rate=pool.rate_for_level(level),
                    kind=(
                        LedgerEntryKind.DIRECT.value
                        if level == 0
                        else LedgerEntryKind.OVERRIDE.value
                    ),
                )
            )

        return entries
