from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from shards.domain import (
    DeveloperContribution,
    Referral,
    ReferralStatus,
    Season,
    SeasonConfig,
    SeasonStatus,
    ShardBalance,
    ShardEarningHistory,
    VaultBreakdown,
)
from shards.domain.errors import (
    InvalidSeasonTransition,
    NegativeShardAmount,
    ReferralAlreadyActivated,
    ReferralThresholdNotMet,
    SelfReferral,
    ShardsError,
)

REFERRER = '0xAbC' + '1' * 37
REFEREE = '0x' + '2' * 40


# ── ShardBalance ──────────────────────────────────────────────────────────────

def test_balance_normalizes_wallet_address():
    balance = ShardBalance.create(REFERRER, 1)
    assert balance.wallet_address == REFERRER.lower()


def test_balance_total_tracks_categories():
    balance = ShardBalance.create(REFEREE, 1, staking_shards=10, social_shards='2.5')
    balance = balance.add_shards('developer', 100).add_shards('referral', Decimal('0.5'))
    assert balance.total_shards == Decimal('113.0')
    assert balance.total_shards == (
        balance.staking_shards + balance.social_shards
        + balance.developer_shards + balance.referral_shards
    )


def test_add_shards_returns_new_value():
    original = ShardBalance.create(REFEREE, 1)
    updated = original.add_shards('staking', 5)
    assert original.staking_shards == 0
    assert updated.staking_shards == 5
    assert updated.id == original.id


def test_recalculate_total_only_refreshes_timestamps():
    balance = ShardBalance.create(REFEREE, 1, staking_shards=7)
    refreshed = balance.recalculate_total()
    assert refreshed.total_shards == balance.total_shards
    assert refreshed.last_calculated_at >= balance.last_calculated_at


def test_add_negative_shards_is_rejected():
    with pytest.raises(NegativeShardAmount):
        ShardBalance.create(REFEREE, 1).add_shards('social', -1)


def test_add_shards_rejects_unknown_category():
    with pytest.raises(ValueError):
        ShardBalance.create(REFEREE, 1).add_shards('mining', 1)


# ── ShardEarningHistory ───────────────────────────────────────────────────────

def test_history_daily_total_is_category_sum():
    history = ShardEarningHistory.create(
        REFEREE, 1, datetime(2025, 3, 10, 23, 59),
        staking_shards='1.10', social_shards='2.20', developer_shards=3, referral_shards='0.05',
        vault_breakdown=[
            VaultBreakdown('0xvault1', 'USDC', 'base', Decimal('1.00'), Decimal('1000')),
            VaultBreakdown('0xvault2', 'ETH', 'base', Decimal('0.10'), Decimal('50')),
        ],
    )
    assert history.date == date(2025, 3, 10)
    assert history.daily_total == Decimal('6.35')
    assert history.has_earnings()
    assert history.total_vault_shards() == Decimal('1.10')
    assert history.total_usd_value() == Decimal('1050')
    assert history.vault_breakdown_for('ETH').vault_id == '0xvault2'
    assert history.vault_breakdown_for('BTC') is None
    assert history.category_breakdown() == {
        'staking': Decimal('1.10'),
        'social': Decimal('2.20'),
        'developer': Decimal('3'),
        'referral': Decimal('0.05'),
    }


def test_vault_breakdown_serializes_decimals_as_strings():
    vault = VaultBreakdown('0xvault', 'USDC', 'base', Decimal('1.25'), Decimal('1250'), Decimal('1250'))
    data = vault.to_dict()
    assert data['shards_earned'] == '1.25'
    assert VaultBreakdown.from_dict(data) == vault


# ── Referral ──────────────────────────────────────────────────────────────────

def test_self_referral_is_rejected_case_insensitively():
    with pytest.raises(SelfReferral):
        Referral.create(REFERRER, REFERRER.lower(), 1)


def test_referral_activation_threshold():
    referral = Referral.create(REFERRER, REFEREE, 1)
    with pytest.raises(ReferralThresholdNotMet):
        referral.activate(Decimal('99.99'))

    now = datetime(2025, 3, 1)
    active = referral.activate(Decimal('100'), now=now)
    assert active.status == ReferralStatus.ACTIVE
    assert active.activation_date == now
    assert active.referee_multiplier_expires == now + timedelta(days=30)


def test_referral_cannot_activate_twice():
    active = Referral.create(REFERRER, REFEREE, 1).activate(150)
    with pytest.raises(ReferralAlreadyActivated):
        active.activate(150)


def test_referral_expire_is_idempotent():
    expired = Referral.create(REFERRER, REFEREE, 1).expire()
    assert expired.is_expired()
    assert expired.expire() is expired


def test_referee_multiplier_window():
    now = datetime(2025, 3, 1)
    active = Referral.create(REFERRER, REFEREE, 1).activate(100, now=now)
    assert active.get_referee_multiplier(now + timedelta(days=29)) == Decimal('1.2')
    assert active.get_referee_multiplier(now + timedelta(days=30)) == Decimal('1')
    assert active.get_referrer_bonus_rate() == Decimal('0.2')
    assert active.expire().get_referrer_bonus_rate() == 0


def test_referral_earned_shards_accumulate():
    referral = Referral.create(REFERRER, REFEREE, 1).add_earned_shards(10).add_earned_shards('2.5')
    assert referral.total_shards_earned == Decimal('12.5')
    with pytest.raises(NegativeShardAmount):
        referral.add_earned_shards(-1)


# ── Season ────────────────────────────────────────────────────────────────────

def test_season_lifecycle():
    season = Season.create('S1', 'base', datetime(2025, 1, 1), SeasonConfig())
    assert season.is_upcoming()

    active = season.activate()
    assert active.is_active()
    with pytest.raises(InvalidSeasonTransition):
        active.activate()

    completed = active.complete(end_date=datetime(2025, 6, 1))
    assert completed.status == SeasonStatus.COMPLETED
    assert completed.end_date == datetime(2025, 6, 1)
    with pytest.raises(InvalidSeasonTransition):
        completed.complete()


def test_season_stats_update():
    season = Season.create('S1', 'base', datetime(2025, 1, 1), SeasonConfig()).update_stats(12, '3400.5')
    assert season.total_participants == 12
    assert season.total_shards_issued == Decimal('3400.5')


def test_upcoming_season_cannot_complete():
    with pytest.raises(InvalidSeasonTransition):
        Season.create('S1', 'base', datetime(2025, 1, 1), SeasonConfig()).complete()


def test_season_config_round_trip_keeps_defaults():
    config = SeasonConfig.from_dict({'vault_rates': {'ILV': 80}})
    assert config.vault_rates == {'ILV': Decimal('80')}
    assert config.social_conversion_rate == Decimal('100')
    assert config.vault_locked is True
    assert SeasonConfig.from_dict(config.to_dict()) == config


# ── DeveloperContribution ─────────────────────────────────────────────────────

def test_contribution_counts_only_when_verified_and_distributed():
    contribution = DeveloperContribution.create(REFEREE, 1, 'FIX_BUG', 200)
    assert not contribution.counts_toward_shards()

    verified = contribution.verify('reviewer')
    assert not verified.counts_toward_shards()
    assert verified.mark_distributed().counts_toward_shards()


def test_contribution_distribution_requires_verification():
    with pytest.raises(ShardsError):
        DeveloperContribution.create(REFEREE, 1, 'FIX_BUG', 200).mark_distributed()


def test_contribution_rejects_negative_amount():
    with pytest.raises(NegativeShardAmount):
        DeveloperContribution.create(REFEREE, 1, 'FIX_BUG', -1)
