from shards.domain.season import Season, SeasonConfig, SeasonStatus
from shards.domain.shard import ShardBalance, ShardCategory, ShardEarningHistory, VaultBreakdown
from shards.domain.referral import Referral, ReferralStatus
from shards.domain.contribution import DeveloperActionType, DeveloperContribution, VaultPosition

__all__ = [
    'Season',
    'SeasonConfig',
    'SeasonStatus',
    'ShardBalance',
    'ShardCategory',
    'ShardEarningHistory',
    'VaultBreakdown',
    'Referral',
    'ReferralStatus',
    'DeveloperActionType',
    'DeveloperContribution',
    'VaultPosition',
]
