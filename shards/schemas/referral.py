from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel

from shards.domain.referral import ReferralStatus


class ReferralCreate(BaseModel):
    referrer_address: str
    referee_address: str
    season_id: int


class ReferralResponse(BaseModel):
    id: str
    referrer_address: str
    referee_address: str
    season_id: int
    status: ReferralStatus
    activation_date: datetime | None
    referee_multiplier_expires: datetime | None
    total_shards_earned: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class ReferralDetailResponse(BaseModel):
    referee_address: str
    status: ReferralStatus
    activation_date: datetime | None
    shards_contributed: Decimal
    is_within_bonus_period: bool
    referee_balance: Decimal | None

    class Config:
        from_attributes = True


class ReferralOverviewResponse(BaseModel):
    """Both sides of a wallet's referrals for one season."""
    wallet_address: str
    season_id: int
    referrals_made: int
    total_referral_shards: Decimal
    referred_by: str | None
    referee_bonus_active: bool
    referee_bonus_expires: datetime | None
    active_referrals: int
    referrals: list[ReferralDetailResponse]
