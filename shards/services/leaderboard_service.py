"""Season leaderboard: ranked pages by category, plus one wallet's own standing."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from shards.domain.errors import SeasonNotFound
from shards.domain.shard import ShardBalance
from shards.domain.values import ZERO, round_half_up
from shards.repositories import SeasonRepository, ShardBalanceRepository
from shards.services.history_service import Pagination

LEADERBOARD_CATEGORIES = ('total', 'staking', 'social', 'developer', 'referral')


@dataclass
class LeaderboardEntry:
    rank: int
    wallet_address: str
    total_shards: Decimal
    staking_shards: Decimal
    social_shards: Decimal
    developer_shards: Decimal
    referral_shards: Decimal
    last_calculated_at: datetime
    percentile: Decimal | None = None

    @classmethod
    def from_balance(cls, rank: int, balance: ShardBalance, percentile=None) -> 'LeaderboardEntry':
        return cls(
            rank=rank,
            wallet_address=balance.wallet_address,
            total_shards=balance.total_shards,
            staking_shards=balance.staking_shards,
            social_shards=balance.social_shards,
            developer_shards=balance.developer_shards,
            referral_shards=balance.referral_shards,
            last_calculated_at=balance.last_calculated_at,
            percentile=percentile,
        )


@dataclass
class Leaderboard:
    season_id: int
    category: str
    total_participants: int
    entries: list[LeaderboardEntry]
    pagination: Pagination
    user_entry: LeaderboardEntry | None = None


def percentile_for(rank: int, participants: int) -> Decimal:
    """Share of participants at or below ``rank``; the leader sits at 100."""
    if participants <= 0:
        return ZERO
    return round_half_up(Decimal(participants - rank + 1) / participants * 100)


class LeaderboardService:

    def __init__(self, balance_repo, season_repo):
        self.balance_repo = balance_repo
        self.season_repo = season_repo

    @classmethod
    def for_session(cls, db: AsyncSession) -> 'LeaderboardService':
        return cls(ShardBalanceRepository(db), SeasonRepository(db))

    async def get_leaderboard(
        self,
        season_id: int,
        category: str = 'total',
        limit: int = 100,
        page: int = 1,
        wallet_address: str | None = None,
    ) -> Leaderboard:
        if category not in LEADERBOARD_CATEGORIES:
            raise ValueError(f'Unknown leaderboard category: {category}')
        if not await self.season_repo.find_by_id(season_id):
            raise SeasonNotFound(f'Season {season_id} not found')

        offset = (max(page, 1) - 1) * limit
        balances = await self.balance_repo.find_top_by_season(season_id, limit, offset, category)
        participants = await self.balance_repo.count_by_season(season_id)

        user_entry = None
        if wallet_address:
            balance = await self.balance_repo.find_by_wallet_and_season(wallet_address, season_id)
            if balance:
                rank = await self.balance_repo.get_wallet_rank(wallet_address, season_id, category)
                user_entry = LeaderboardEntry.from_balance(
                    rank, balance, percentile_for(rank, participants),
                )

        return Leaderboard(
            season_id=season_id,
            category=category,
            total_participants=participants,
            entries=[
                LeaderboardEntry.from_balance(offset + i + 1, balance)
                for i, balance in enumerate(balances)
            ],
            pagination=Pagination(limit=limit, offset=offset, total=participants),
            user_entry=user_entry,
        )
