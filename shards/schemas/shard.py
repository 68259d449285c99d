from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel


class VaultBreakdownResponse(BaseModel):
    """One vault's share of a day's staking shards."""
    vault_id: str
    asset: str
    chain: str
    shards_earned: Decimal
    usd_value: Decimal
    balance: Decimal

    class Config:
        from_attributes = True


class FraudCheckResponse(BaseModel):
    is_suspicious: bool
    score: Decimal
    reasons: list[str]
    recommendations: list[str]

    class Config:
        from_attributes = True


class DailyShardResponse(BaseModel):
    """Result of a daily accrual (fresh or replayed)."""
    wallet_address: str
    season_id: int
    date: date
    staking_shards: Decimal
    social_shards: Decimal
    developer_shards: Decimal
    referral_shards: Decimal
    total_shards: Decimal
    vault_breakdown: list[VaultBreakdownResponse]
    referee_multiplier: Decimal
    fraud_check: FraudCheckResponse | None = None
    replayed: bool = False

    class Config:
        from_attributes = True


class ShardBalanceResponse(BaseModel):
    wallet_address: str
    season_id: int
    staking_shards: Decimal
    social_shards: Decimal
    developer_shards: Decimal
    referral_shards: Decimal
    total_shards: Decimal
    last_calculated_at: datetime

    class Config:
        from_attributes = True


class PaginationResponse(BaseModel):
    limit: int
    offset: int
    total: int
    has_more: bool

    class Config:
        from_attributes = True


class LeaderboardEntry(BaseModel):
    rank: int
    wallet_address: str
    total_shards: Decimal
    staking_shards: Decimal
    social_shards: Decimal
    developer_shards: Decimal
    referral_shards: Decimal
    last_calculated_at: datetime

    class Config:
        from_attributes = True


class UserLeaderboardEntry(LeaderboardEntry):
    """The requesting wallet's own row, wherever it ranks."""
    percentile: Decimal


class LeaderboardResponse(BaseModel):
    season_id: int
    category: str
    total_participants: int
    entries: list[LeaderboardEntry]
    pagination: PaginationResponse
    user_entry: UserLeaderboardEntry | None = None

    class Config:
        from_attributes = True


class HistoryEntryResponse(BaseModel):
    date: date
    staking_shards: Decimal
    social_shards: Decimal
    developer_shards: Decimal
    referral_shards: Decimal
    daily_total: Decimal
    vault_breakdown: list[VaultBreakdownResponse]
    metadata: dict

    class Config:
        from_attributes = True


class HistorySummaryResponse(BaseModel):
    total_days: int
    total_shards: Decimal
    avg_daily_shards: Decimal
    breakdown: dict[str, Decimal]

    class Config:
        from_attributes = True


class EarningHistoryResponse(BaseModel):
    wallet_address: str
    season_id: int | None
    start: date | None
    end: date | None
    summary: HistorySummaryResponse
    history: list[HistoryEntryResponse]
    pagination: PaginationResponse

    class Config:
        from_attributes = True


class TrendResponse(BaseModel):
    direction: str
    percentage: Decimal

    class Config:
        from_attributes = True


class DailyAveragesResponse(BaseModel):
    wallet_address: str
    season_id: int
    period: int
    daily: Decimal
    staking: Decimal
    social: Decimal
    developer: Decimal
    referral: Decimal
    trend: TrendResponse

    class Config:
        from_attributes = True


class StreaksResponse(BaseModel):
    current_streak: int
    longest_streak: int
    total_active_days: int
    last_active_date: date | None

    class Config:
        from_attributes = True


class AccrueRequest(BaseModel):
    """Run the daily accrual for a single wallet."""
    wallet_address: str
    season_id: int
    day: date


class ProcessRequest(BaseModel):
    """Run the daily batch; defaults to the active season and yesterday."""
    season_id: int | None = None
    day: date | None = None


class BatchResultResponse(BaseModel):
    season_id: int
    date: date
    wallets: int
    processed: int
    failed: int
    suspicious: int
    failed_wallets: list[str]

    class Config:
        from_attributes = True
