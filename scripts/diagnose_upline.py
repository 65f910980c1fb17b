#!/usr/bin/env python3
"""Compare a partner's sponsor pointer chain with its closure rows."""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.config.database import async_engine, async_session_maker
from app.repositories.hierarchy_repository import HierarchyRepository
from app.repositories.partner_repository import PartnerRepository
from app.services.hierarchy.reconciliation import HierarchyReconciler
from app.services.hierarchy.upline_resolver import UplineResolver
from app.utils.exceptions import CommissionEngineError

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def diagnose(partner_ref: str) -> int:
    async with async_session_maker() as session:
        partner_repo = PartnerRepository(session)
        if partner_ref.isdigit():
            partner = await partner_repo.get_by_id(int(partner_ref))
        else:
            partner = await partner_repo.get_by_code(partner_ref)

        if partner is None:
            logger.error(f"Partner {partner_ref!r} not found")
            return 1

        logger.info(
            f"Partner {partner.id} ({partner.partner_code}, {partner.full_name}), "
            f"sponsor_id={partner.sponsor_id}"
        )

        logger.info("Sponsor pointer chain:")
        try:
            chain = await UplineResolver(session).walk_sponsor_chain(partner.id)
        except CommissionEngineError as e:
            logger.error(f"  Pointer walk failed: {e}")
            return 1

        if not chain:
            logger.info("  (root partner, no sponsor)")
        for entry in chain:
            sponsor = await partner_repo.get_by_id(entry.ancestor_id)
            logger.info(
                f"  Level {entry.level}: {entry.ancestor_id} "
                f"({sponsor.partner_code}, {sponsor.full_name})"
            )

        logger.info("Closure rows:")
        edges = await HierarchyRepository(session).get_ancestor_edges(partner.id)
        if not edges:
            logger.info("  (none)")
        for edge in edges:
            logger.info(
                f"  Row {edge.id}: level {edge.level} -> ancestor {edge.ancestor_id}"
            )

        plan = await HierarchyReconciler(session).audit_partner(partner.id)
        if plan.is_clean:
            logger.success("Closure rows match the sponsor chain.")
            return 0

        logger.warning("Drift detected. Repair plan:")
        for ref in plan.to_delete:
            logger.warning(
                f"  DELETE row {ref.edge_id} (ancestor {ref.ancestor_id}, "
                f"level {ref.level})"
            )
        for edge in plan.to_insert:
            logger.warning(
                f"  INSERT ancestor {edge.ancestor_id} at level {edge.level}"
            )
        logger.warning("Run scripts/reconcile_hierarchy.py --apply to repair.")
        return 2


async def main(partner_ref: str) -> int:
    try:
        return await diagnose(partner_ref)
    finally:
        await async_engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("partner", help="Partner ID or partner code")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.partner)))
