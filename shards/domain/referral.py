"""Referral lifecycle: pending → active → expired.

  - activate(referee_shards) only from pending, and only at ≥ 100 shards
  - activation opens a 30-day window for the referee multiplier
  - expire() is reachable from any state and idempotent
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

from shards.domain.errors import (
    NegativeShardAmount, ReferralAlreadyActivated, ReferralThresholdNotMet, SelfReferral,
)
from shards.domain.values import ZERO, normalize_address, to_decimal, utcnow

REFERRER_BONUS_RATE = Decimal('0.2')             # 20% of referee's daily shards
MAX_REFERRER_BONUS_PER_REFERRAL = Decimal('500')
REFEREE_MULTIPLIER = Decimal('1.2')
REFEREE_BONUS_DURATION_DAYS = 30
ACTIVATION_THRESHOLD = Decimal('100')
MAX_REFERRALS_PER_SEASON = 10


class ReferralStatus(str, Enum):
    PENDING = 'pending'
    ACTIVE = 'active'
    EXPIRED = 'expired'


@dataclass(frozen=True)
class Referral:
    id: str
    referrer_address: str
    referee_address: str
    season_id: int
    status: ReferralStatus = ReferralStatus.PENDING
    activation_date: datetime | None = None
    referee_multiplier_expires: datetime | None = None
    total_shards_earned: Decimal = ZERO
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, referrer_address: str, referee_address: str, season_id: int) -> 'Referral':
        referrer = normalize_address(referrer_address)
        referee = normalize_address(referee_address)
        if referrer == referee:
            raise SelfReferral('Cannot refer yourself')
        return cls(
            id=str(uuid.uuid4()),
            referrer_address=referrer,
            referee_address=referee,
            season_id=season_id,
        )

    def is_pending(self) -> bool:
        return self.status == ReferralStatus.PENDING

    def is_active(self) -> bool:
        return self.status == ReferralStatus.ACTIVE

    def is_expired(self) -> bool:
        return self.status == ReferralStatus.EXPIRED

    def activate(self, referee_shards, now: datetime | None = None) -> 'Referral':
        if self.status != ReferralStatus.PENDING:
            raise ReferralAlreadyActivated(f'Referral is already {self.status.value}')
        if to_decimal(referee_shards) < ACTIVATION_THRESHOLD:
            raise ReferralThresholdNotMet(
                f'Referee must earn at least {ACTIVATION_THRESHOLD} shards to activate referral'
            )
        activated_at = now or utcnow()
        return replace(
            self,
            status=ReferralStatus.ACTIVE,
            activation_date=activated_at,
            referee_multiplier_expires=activated_at + timedelta(days=REFEREE_BONUS_DURATION_DAYS),
            updated_at=utcnow(),
        )

    def expire(self) -> 'Referral':
        if self.status == ReferralStatus.EXPIRED:
            return self
        return replace(self, status=ReferralStatus.EXPIRED, updated_at=utcnow())

    def is_within_bonus_period(self, now: datetime | None = None) -> bool:
        if self.status != ReferralStatus.ACTIVE or self.referee_multiplier_expires is None:
            return False
        return (now or utcnow()) < self.referee_multiplier_expires

    def add_earned_shards(self, amount) -> 'Referral':
        amount = to_decimal(amount)
        if amount < 0:
            raise NegativeShardAmount('Cannot add negative shards')
        return replace(
            self,
            total_shards_earned=self.total_shards_earned + amount,
            updated_at=utcnow(),
        )

    def get_referrer_bonus_rate(self) -> Decimal:
        return REFERRER_BONUS_RATE if self.is_active() else ZERO

    def get_referee_multiplier(self, now: datetime | None = None) -> Decimal:
        return REFEREE_MULTIPLIER if self.is_within_bonus_period(now) else Decimal('1')
