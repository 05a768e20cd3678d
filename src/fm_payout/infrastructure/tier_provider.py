"""Tier rates derived from a writer's completed-order count.

Reads only. The count is whatever the orders table says right now; a quote
taken at assignment is stored on the order, so a later tier change never
alters an order that was already priced.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_payout.domain.models import TierRates
from src.fm_payout.domain.tiers import tier_for

logger = logging.getLogger(__name__)

_COMPLETED_COUNT_SQL = text("""
    SELECT COUNT(*)
    FROM orders
    WHERE writer_id = :writer_id AND status = 'completed'
""")


class CompletedOrdersTierRateProvider:
    async def get_tier_rates(self, writer_id: str, db: AsyncSession) -> TierRates:
        completed = (
            await db.execute(_COMPLETED_COUNT_SQL, {"writer_id": writer_id})
        ).scalar_one()
        tier = tier_for(int(completed))
        logger.debug(
            "Tier lookup: writer=%s completed=%d tier=%s", writer_id, completed, tier.name
        )
        return tier.rates
