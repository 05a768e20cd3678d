"""TierRateProvider Protocol — the engine's read-only view of writer progression."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fm_payout.domain.models import TierRates


class TierRateProviderProtocol(Protocol):
    async def get_tier_rates(self, writer_id: str, db: AsyncSession) -> TierRates: ...
