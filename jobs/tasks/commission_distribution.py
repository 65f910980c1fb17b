"""
Commission distribution task.

Distributes commission for a deal that reached a commission-eligible
status. Safe to retry: distribution is idempotent per deal.
"""

import dramatiq
from loguru import logger

from app.config.operational_constants import (
    DRAMATIQ_TIME_LIMIT_MEDIUM,
    PAYOUT_MAX_RETRIES,
)
from app.services.partner_service import PartnerService
from app.utils.exceptions import DealNotEligible, DealNotFound, is_retryable
from jobs.async_runner import create_local_session, run_async


def _retry_when(retries_so_far: int, exception: Exception) -> bool:
    """Retry only transient database failures."""
    return retries_so_far < PAYOUT_MAX_RETRIES and is_retryable(exception)


@dramatiq.actor(
    max_retries=PAYOUT_MAX_RETRIES,
    time_limit=DRAMATIQ_TIME_LIMIT_MEDIUM,
    retry_when=_retry_when,
)
def distribute_deal_commission(deal_id: int) -> None:
    """
    Distribute commission for a deal.

    Args:
        deal_id: Deal ID
    """
    logger.info(f"Starting commission distribution for deal {deal_id}...")

    try:
        entries = run_async(_distribute_async(deal_id))
    except (DealNotFound, DealNotEligible) as e:
        logger.warning(f"Commission distribution skipped: {e}")
        return

    logger.info(
        f"Commission distribution complete for deal {deal_id}: "
        f"{len(entries)} ledger entries"
    )


async def _distribute_async(deal_id: int) -> list:
    """Async implementation of commission distribution."""
    async with create_local_session() as session:
        service = PartnerService(session)
        return await service.distribute_commission(deal_id)
