"""
Hierarchy reconciliation task.

Audits closure rows against sponsor pointers. Runs as a scheduled sweep
over all partners, or against a single partner reported as anomalous.
Repairs are only written when apply=True.
"""

import dramatiq
from loguru import logger

from app.config.operational_constants import DRAMATIQ_TIME_LIMIT_LONG
from app.services.hierarchy.reconciliation import HierarchyReconciler
from app.utils.redis_utils import get_redis_client
from jobs.async_runner import create_local_session, run_async

# Seconds; matches the actor time limit
SWEEP_LOCK_TIMEOUT = DRAMATIQ_TIME_LIMIT_LONG // 1000


@dramatiq.actor(max_retries=0, time_limit=DRAMATIQ_TIME_LIMIT_LONG)
def reconcile_hierarchy(
    partner_id: int | None = None, apply: bool = False
) -> dict:
    """
    Audit (and optionally repair) hierarchy closure rows.

    Args:
        partner_id: Single partner to audit (None for all partners)
        apply: Write repair plans

    Returns:
        Summary dict
    """
    logger.info(
        f"Starting hierarchy reconciliation"
        f"{f' for partner {partner_id}' if partner_id else ''}"
        f"{' (apply)' if apply else ''}..."
    )

    if partner_id is not None:
        result = run_async(_reconcile_partner_async(partner_id, apply))
    else:
        result = run_async(_reconcile_all_async(apply))

    logger.info(f"Hierarchy reconciliation complete: {result}")
    return result


async def _reconcile_partner_async(partner_id: int, apply: bool) -> dict:
    """Audit one partner."""
    async with create_local_session() as session:
        reconciler = HierarchyReconciler(session)
        plan = await reconciler.audit_partner(partner_id)
        if apply and not plan.is_clean:
            await reconciler.apply_repair(plan)

        return {
            "partner_id": partner_id,
            "drifted": not plan.is_clean,
            "to_delete": len(plan.to_delete),
            "to_insert": len(plan.to_insert),
            "repaired": apply and not plan.is_clean,
        }


async def _reconcile_all_async(apply: bool) -> dict:
    """Sweep all partners under a Redis lock so sweeps never overlap."""
    redis_client = get_redis_client()
    lock = redis_client.lock(
        "hierarchy_reconciliation", timeout=SWEEP_LOCK_TIMEOUT
    )

    try:
        if not await lock.acquire(blocking=False):
            logger.warning("Hierarchy reconciliation already running, skipping")
            return {"skipped": True}

        try:
            async with create_local_session() as session:
                report = await HierarchyReconciler(session).audit_all(
                    apply=apply
                )
        finally:
            await lock.release()
    finally:
        await redis_client.aclose()

    return {
        "audited": report.audited,
        "drifted": len(report.drifted),
        "repaired": len(report.repaired),
        "failures": report.failures,
    }
