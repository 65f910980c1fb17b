#!/usr/bin/env python3
"""Audit closure rows of every partner; repair drift with --apply."""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from app.config.database import async_engine, async_session_maker
from app.services.hierarchy.reconciliation import HierarchyReconciler

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def reconcile(apply: bool, batch_size: int | None) -> int:
    try:
        async with async_session_maker() as session:
            report = await HierarchyReconciler(session).audit_all(
                apply=apply, batch_size=batch_size
            )
    finally:
        await async_engine.dispose()

    logger.info(f"Audited {report.audited} partners")

    for plan in report.drifted:
        logger.warning(
            f"  Partner {plan.partner_id}: delete "
            f"{[(ref.ancestor_id, ref.level) for ref in plan.to_delete]}, insert "
            f"{[(edge.ancestor_id, edge.level) for edge in plan.to_insert]}"
        )
    for partner_id, reason in report.failures.items():
        logger.error(f"  Partner {partner_id}: {reason}")

    if report.is_clean:
        logger.success("No drift found.")
        return 0

    if apply:
        logger.info(f"Repaired {len(report.repaired)} partners")
    else:
        logger.warning(f"{len(report.drifted)} partners drifted. Re-run with --apply.")
    return 0 if apply and not report.failures else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--apply", action="store_true", help="Write repair plans"
    )
    parser.add_argument(
        "--batch-size", type=int, default=None, help="Partners per batch"
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(reconcile(args.apply, args.batch_size)))
