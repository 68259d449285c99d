from shards.models.season import SeasonRow
from shards.models.shard import ShardBalanceRow, ShardEarningHistoryRow
from shards.models.referral import ReferralRow
from shards.models.contribution import VaultPositionRow, DeveloperContributionRow

__all__ = [
    'SeasonRow',
    'ShardBalanceRow',
    'ShardEarningHistoryRow',
    'ReferralRow',
    'VaultPositionRow',
    'DeveloperContributionRow',
]
