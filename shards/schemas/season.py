from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from shards.domain.season import SeasonStatus


class SeasonCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    chain: str = Field(..., min_length=1, max_length=20)
    start_date: datetime
    end_date: datetime | None = None
    vault_rates: dict[str, Decimal] = Field(default_factory=dict)
    social_conversion_rate: Decimal | None = None


class SeasonConfigResponse(BaseModel):
    vault_rates: dict[str, Decimal]
    social_conversion_rate: Decimal
    vault_locked: bool
    withdrawal_enabled: bool
    redeem_period_days: int | None

    class Config:
        from_attributes = True


class SeasonResponse(BaseModel):
    id: int
    name: str
    chain: str
    start_date: datetime
    end_date: datetime | None
    status: SeasonStatus
    config: SeasonConfigResponse
    total_participants: int
    total_shards_issued: Decimal

    class Config:
        from_attributes = True


class SeasonStatsResponse(BaseModel):
    id: int
    name: str
    chain: str
    status: SeasonStatus
    start_date: datetime
    end_date: datetime | None
    total_participants: int
    total_shards_issued: Decimal
    days_remaining: int | None
    progress: Decimal

    class Config:
        from_attributes = True
