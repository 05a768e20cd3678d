"""Writer progression tiers.

Tier is a monotonically increasing function of a writer's completed-order
count. The engine only reads the resulting rates; advancing a writer happens
outside of it.
"""

from src.fm_payout.domain.models import Tier, TierRates

TIERS: tuple[Tier, ...] = (
    Tier(1, "Starter", 0, TierRates(ordinary=150, technical=170)),
    Tier(2, "Rising", 3, TierRates(ordinary=160, technical=180)),
    Tier(3, "Established", 8, TierRates(ordinary=170, technical=190)),
    Tier(4, "Expert", 23, TierRates(ordinary=180, technical=200)),
    Tier(5, "Master", 50, TierRates(ordinary=200, technical=220)),
)


def tier_for(completed_orders: int) -> Tier:
    """Highest tier whose threshold the writer has reached."""
    current = TIERS[0]
    for tier in TIERS:
        if completed_orders >= tier.completed_orders_required:
            current = tier
    return current
