"""Shard arithmetic. Pure functions, no I/O.

Staking:   (usd_value / 1000) × rate × lock_multiplier(weeks)
Lock:      1× below 4 weeks, 2× above 48 weeks, linear in between
Social:    yap_points / conversion_rate
Referral:  referrer gets 20% of the referee's day (max 500 per referral);
           referee gets 1.2× on staking/social/developer for 30 days.
           The referee multiplier never applies to the referral bonus.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from shards.domain.contribution import DeveloperActionType
from shards.domain.referral import MAX_REFERRER_BONUS_PER_REFERRAL, REFERRER_BONUS_RATE, Referral
from shards.domain.season import DEFAULT_SOCIAL_CONVERSION_RATE
from shards.domain.values import ZERO, round_half_up, to_decimal

ONE = Decimal('1')

# Lock curve bounds (weeks)
MIN_LOCK_WEEKS = 4
MAX_LOCK_WEEKS = 48
DEFAULT_LOCK_WEEKS = 4

# Fixed rewards per developer action when no custom amount is supplied
DEVELOPER_REWARDS = {
    DeveloperActionType.SMART_CONTRACT_DEPLOY: Decimal('100'),
    DeveloperActionType.VERIFIED_CONTRACT: Decimal('200'),
    DeveloperActionType.GITHUB_CONTRIBUTION: Decimal('50'),
    DeveloperActionType.BUG_REPORT: Decimal('150'),
    DeveloperActionType.DOCUMENTATION: Decimal('75'),
    DeveloperActionType.TOOL_DEVELOPMENT: Decimal('300'),
    DeveloperActionType.COMMUNITY_SUPPORT: Decimal('25'),
    DeveloperActionType.DEPLOY_CONTRACT: Decimal('500'),
    DeveloperActionType.DEPLOY_DAPP: Decimal('500'),
    DeveloperActionType.CONTRIBUTE_CODE: Decimal('100'),
    DeveloperActionType.FIX_BUG: Decimal('200'),
    DeveloperActionType.COMPLETE_BOUNTY: Decimal('300'),
    DeveloperActionType.CREATE_DOCUMENTATION: Decimal('50'),
    DeveloperActionType.OTHER: ZERO,
}

# Anti-abuse ceilings per category for a single day
MAX_REASONABLE_AMOUNTS = {
    'staking': Decimal('100000'),  # $400k at 250 shards/$1k
    'social': Decimal('10000'),
    'developer': Decimal('5000'),
    'referral': Decimal('500'),
}


@dataclass(frozen=True)
class ReferralBonus:
    referrer_bonus: Decimal = ZERO
    referee_multiplier: Decimal = ONE


@dataclass(frozen=True)
class DailyTotals:
    staking_shards: Decimal
    social_shards: Decimal
    developer_shards: Decimal
    referral_shards: Decimal

    @property
    def total_shards(self) -> Decimal:
        return (
            self.staking_shards + self.social_shards
            + self.developer_shards + self.referral_shards
        )

    def rounded(self) -> 'DailyTotals':
        """Round each category; the total stays the sum of the rounded parts."""
        return DailyTotals(
            staking_shards=round_shards(self.staking_shards),
            social_shards=round_shards(self.social_shards),
            developer_shards=round_shards(self.developer_shards),
            referral_shards=round_shards(self.referral_shards),
        )


def lock_multiplier(lock_weeks) -> Decimal:
    """1 + (weeks - 4) / 44, clamped to [1, 2]."""
    weeks = to_decimal(lock_weeks)
    if weeks < MIN_LOCK_WEEKS:
        return ONE
    if weeks > MAX_LOCK_WEEKS:
        return Decimal('2')
    return ONE + (weeks - MIN_LOCK_WEEKS) / (MAX_LOCK_WEEKS - MIN_LOCK_WEEKS)


def staking_shards(usd_value, rate, lock_weeks=DEFAULT_LOCK_WEEKS) -> Decimal:
    usd_value = to_decimal(usd_value)
    if usd_value <= 0:
        return ZERO
    base = usd_value / 1000 * to_decimal(rate)
    return base * lock_multiplier(lock_weeks)


def social_shards(yap_points, conversion_rate=DEFAULT_SOCIAL_CONVERSION_RATE) -> Decimal:
    yap_points = to_decimal(yap_points)
    if yap_points <= 0:
        return ZERO
    rate = to_decimal(conversion_rate) or DEFAULT_SOCIAL_CONVERSION_RATE
    return yap_points / rate


def developer_shards(action_type: DeveloperActionType | str, custom_amount=None) -> Decimal:
    if custom_amount is not None:
        custom_amount = to_decimal(custom_amount)
        if custom_amount >= 0:
            return custom_amount
    try:
        action = DeveloperActionType(action_type)
    except ValueError:
        return ZERO
    return DEVELOPER_REWARDS.get(action, ZERO)


def referral_bonus(
    referee_shards, referral: Referral, now: datetime | None = None,
) -> ReferralBonus:
    if not referral.is_active():
        return ReferralBonus()

    bonus = min(to_decimal(referee_shards) * REFERRER_BONUS_RATE, MAX_REFERRER_BONUS_PER_REFERRAL)
    return ReferralBonus(
        referrer_bonus=bonus,
        referee_multiplier=referral.get_referee_multiplier(now),
    )


def total_daily(
    staking=ZERO,
    social=ZERO,
    developer=ZERO,
    referral_bonus=ZERO,
    referee_multiplier=ONE,
) -> DailyTotals:
    multiplier = to_decimal(referee_multiplier) or ONE
    return DailyTotals(
        staking_shards=to_decimal(staking) * multiplier,
        social_shards=to_decimal(social) * multiplier,
        developer_shards=to_decimal(developer) * multiplier,
        # Not multiplied
        referral_shards=to_decimal(referral_bonus),
    )


def round_shards(amount) -> Decimal:
    return round_half_up(amount)


def validate_shard_amount(amount, category: str) -> bool:
    """False for negative amounts or amounts above the category ceiling."""
    amount = to_decimal(amount)
    if amount < 0:
        return False
    ceiling = MAX_REASONABLE_AMOUNTS.get(category)
    if ceiling is not None and amount > ceiling:
        return False
    return True
