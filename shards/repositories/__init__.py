from shards.repositories.season_repository import SeasonRepository
from shards.repositories.balance_repository import ShardBalanceRepository
from shards.repositories.history_repository import HistorySummary, ShardEarningHistoryRepository
from shards.repositories.referral_repository import ReferralRepository
from shards.repositories.contribution_repository import (
    DeveloperContributionRepository, VaultPositionRepository,
)

__all__ = [
    'SeasonRepository',
    'ShardBalanceRepository',
    'HistorySummary',
    'ShardEarningHistoryRepository',
    'ReferralRepository',
    'DeveloperContributionRepository',
    'VaultPositionRepository',
]
