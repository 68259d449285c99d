from shards.schemas.shard import (
    AccrueRequest,
    BatchResultResponse,
    DailyAveragesResponse,
    DailyShardResponse,
    EarningHistoryResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    UserLeaderboardEntry,
    ProcessRequest,
    ShardBalanceResponse,
    StreaksResponse,
    HistoryEntryResponse,
)
from shards.schemas.referral import ReferralCreate, ReferralResponse, ReferralOverviewResponse
from shards.schemas.season import SeasonCreate, SeasonResponse, SeasonStatsResponse

__all__ = [
    'AccrueRequest',
    'BatchResultResponse',
    'DailyAveragesResponse',
    'DailyShardResponse',
    'EarningHistoryResponse',
    'LeaderboardEntry',
    'LeaderboardResponse',
    'UserLeaderboardEntry',
    'ProcessRequest',
    'ShardBalanceResponse',
    'StreaksResponse',
    'HistoryEntryResponse',
    'ReferralCreate',
    'ReferralResponse',
    'ReferralOverviewResponse',
    'SeasonCreate',
    'SeasonResponse',
    'SeasonStatsResponse',
]
