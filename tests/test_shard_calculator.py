from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from shards.domain import Referral, Season, SeasonConfig
from shards.domain.season import DEFAULT_VAULT_RATE
from shards.services.season_context import SeasonContext
from shards.services.shard_calculator import (
    DailyTotals,
    developer_shards,
    lock_multiplier,
    referral_bonus,
    round_shards,
    social_shards,
    staking_shards,
    total_daily,
    validate_shard_amount,
)

REFERRER = '0x' + '1' * 40
REFEREE = '0x' + '2' * 40
ACTIVATED = datetime(2025, 3, 1)


def make_context(rates: dict) -> SeasonContext:
    season = Season.create('S1', 'base', datetime(2025, 1, 1), SeasonConfig.from_dict({'vault_rates': rates}))
    return SeasonContext(season.activate())


def active_referral() -> Referral:
    return Referral.create(REFERRER, REFEREE, 1).activate(Decimal('100'), now=ACTIVATED)


# ── Staking ───────────────────────────────────────────────────────────────────

def test_usdc_position_earns_rate_per_thousand():
    context = make_context({'usdc': 1})
    assert staking_shards(1000, context.get_rate('USDC')) == Decimal('1')


def test_eth_position_uses_its_own_rate():
    context = make_context({'eth': 2})
    assert staking_shards(1000, context.get_rate('ETH')) == Decimal('2')


def test_unknown_asset_falls_back_to_default_rate():
    context = make_context({'usdc': 1})
    rate = context.get_rate('DOGE')
    assert rate == DEFAULT_VAULT_RATE
    assert staking_shards(1000, rate) == Decimal('100')


def test_zero_rate_falls_back_to_default_rate():
    context = make_context({'usdc': 0})
    assert context.get_rate('usdc') == DEFAULT_VAULT_RATE


@pytest.mark.parametrize('usd_value', [-1000, 0])
def test_non_positive_usd_value_earns_nothing(usd_value):
    assert staking_shards(usd_value, 100) == Decimal('0')


def test_staking_applies_lock_multiplier():
    assert staking_shards(1000, 100, lock_weeks=48) == Decimal('200')


# ── Lock multiplier ───────────────────────────────────────────────────────────

def test_lock_multiplier_bounds():
    assert lock_multiplier(4) == 1
    assert lock_multiplier(48) == 2
    assert lock_multiplier(1) == 1
    assert lock_multiplier(100) == 2


def test_lock_multiplier_is_linear_between_bounds():
    assert lock_multiplier(26) == Decimal('1.5')


def test_lock_multiplier_never_decreases():
    values = [lock_multiplier(weeks) for weeks in range(4, 49)]
    assert values == sorted(values)


# ── Social / developer ────────────────────────────────────────────────────────

def test_social_shards_divide_by_conversion_rate():
    assert social_shards(250, 100) == Decimal('2.5')
    assert social_shards(0, 100) == Decimal('0')
    assert social_shards(300, 0) == Decimal('3')


def test_developer_shards_use_fixed_rewards():
    assert developer_shards('BUG_REPORT') == Decimal('150')
    assert developer_shards('DEPLOY_DAPP') == Decimal('500')
    assert developer_shards('OTHER') == Decimal('0')


def test_developer_shards_prefer_non_negative_custom_amount():
    assert developer_shards('BUG_REPORT', custom_amount=42) == Decimal('42')
    assert developer_shards('BUG_REPORT', custom_amount=-5) == Decimal('150')


def test_unknown_developer_action_earns_nothing():
    assert developer_shards('WROTE_A_TWEET') == Decimal('0')


# ── Referral bonus ────────────────────────────────────────────────────────────

def test_referral_bonus_is_twenty_percent_of_referee_day():
    bonus = referral_bonus(1000, active_referral(), now=ACTIVATED + timedelta(days=5))
    assert bonus.referrer_bonus == Decimal('200')
    assert bonus.referee_multiplier == Decimal('1.2')


def test_referrer_bonus_is_capped_per_referral():
    bonus = referral_bonus(Decimal('1000000'), active_referral(), now=ACTIVATED)
    assert bonus.referrer_bonus == Decimal('500')


def test_pending_referral_gives_no_bonus():
    bonus = referral_bonus(1000, Referral.create(REFERRER, REFEREE, 1))
    assert bonus.referrer_bonus == 0
    assert bonus.referee_multiplier == 1


def test_multiplier_ends_with_bonus_window():
    bonus = referral_bonus(1000, active_referral(), now=ACTIVATED + timedelta(days=31))
    assert bonus.referrer_bonus == Decimal('200')
    assert bonus.referee_multiplier == 1


# ── Totals ────────────────────────────────────────────────────────────────────

def test_referee_multiplier_scales_earned_categories():
    totals = total_daily(staking=1, social=10, developer=100, referee_multiplier=Decimal('1.2'))
    assert totals.staking_shards == Decimal('1.2')
    assert totals.social_shards == Decimal('12')
    assert totals.developer_shards == Decimal('120')


def test_referee_multiplier_never_touches_referral_bonus():
    totals = total_daily(staking=1000, referral_bonus=100, referee_multiplier=Decimal('1.2'))
    assert totals.referral_shards == Decimal('100')
    assert totals.total_shards == Decimal('1300')


def test_rounded_total_is_sum_of_rounded_categories():
    totals = DailyTotals(
        staking_shards=Decimal('1.005'),
        social_shards=Decimal('2.004'),
        developer_shards=Decimal('0'),
        referral_shards=Decimal('0.333'),
    ).rounded()
    assert totals.staking_shards == Decimal('1.01')
    assert totals.social_shards == Decimal('2.00')
    assert totals.referral_shards == Decimal('0.33')
    assert totals.total_shards == Decimal('3.34')


def test_round_shards_rounds_half_up():
    assert round_shards(Decimal('0.125')) == Decimal('0.13')
    assert round_shards(Decimal('2.5')) == Decimal('2.50')


# ── Ceilings ──────────────────────────────────────────────────────────────────

@pytest.mark.parametrize('amount,category,expected', [
    (0, 'staking', True),
    (100000, 'staking', True),
    (100001, 'staking', False),
    (10001, 'social', False),
    (5000, 'developer', True),
    (501, 'referral', False),
    (-1, 'social', False),
    (10 ** 9, 'unknown', True),
])
def test_validate_shard_amount(amount, category, expected):
    assert validate_shard_amount(amount, category) is expected
