import logging
from datetime import date
from decimal import Decimal

from shards.domain.values import ZERO

logger = logging.getLogger(__name__)


class NullSocialShardSource:
    """Social shard source used until the YAP points feed is connected.

    Any object with an async ``compute_social_shards(wallet, day)`` can take
    its place in DailyAccrualService.
    """

    async def compute_social_shards(self, wallet_address: str, day: date) -> Decimal:
        logger.debug(f'Social shards for {wallet_address} on {day}: no YAP feed configured')
        return ZERO
