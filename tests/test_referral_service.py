from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from shards.domain import ReferralStatus, ShardBalance
from shards.domain.errors import (
    RefereeAlreadyEarning,
    RefereeAlreadyReferred,
    ReferralAlreadyActivated,
    ReferralLimitReached,
    ReferralNotFound,
    ReferralThresholdNotMet,
    SelfReferral,
)
from shards.repositories import ReferralRepository, ShardBalanceRepository
from shards.services.referral_service import ReferralService

from factories import ALICE, BOB, CAROL

ACTIVATED = datetime(2025, 3, 1)


def wallet(n: int) -> str:
    return '0x' + f'{n:040x}'


async def give_balance(db, address, season_id, staking):
    await ShardBalanceRepository(db).create(ShardBalance.create(address, season_id, staking_shards=staking))


async def test_create_referral(db_session, season):
    service = ReferralService.for_session(db_session)
    referral = await service.create_referral(BOB.upper().replace('0X', '0x'), ALICE, season.id)
    assert referral.referrer_address == BOB
    assert referral.referee_address == ALICE
    assert referral.status == ReferralStatus.PENDING


async def test_self_referral_is_rejected(db_session, season):
    with pytest.raises(SelfReferral):
        await ReferralService.for_session(db_session).create_referral(ALICE, ALICE, season.id)


async def test_referee_can_only_be_referred_once_per_season(db_session, season):
    service = ReferralService.for_session(db_session)
    await service.create_referral(BOB, ALICE, season.id)
    with pytest.raises(RefereeAlreadyReferred):
        await service.create_referral(CAROL, ALICE, season.id)


async def test_referrer_limit(db_session, season):
    service = ReferralService.for_session(db_session)
    for n in range(1, 11):
        await service.create_referral(BOB, wallet(n), season.id)
    with pytest.raises(ReferralLimitReached):
        await service.create_referral(BOB, wallet(11), season.id)


async def test_earning_wallet_cannot_be_referred(db_session, season):
    await give_balance(db_session, ALICE, season.id, 5)
    with pytest.raises(RefereeAlreadyEarning):
        await ReferralService.for_session(db_session).create_referral(BOB, ALICE, season.id)


async def test_activation_requires_threshold(db_session, season):
    service = ReferralService.for_session(db_session)
    referral = await service.create_referral(BOB, ALICE, season.id)

    # No balance at all
    with pytest.raises(ReferralThresholdNotMet):
        await service.activate_referral(referral.id)

    await give_balance(db_session, ALICE, season.id, 100)
    activated = await service.activate_referral(referral.id, now=ACTIVATED)
    assert activated.status == ReferralStatus.ACTIVE
    assert activated.referee_multiplier_expires == ACTIVATED + timedelta(days=30)

    with pytest.raises(ReferralAlreadyActivated):
        await service.activate_referral(referral.id)


async def test_activate_unknown_referral(db_session):
    with pytest.raises(ReferralNotFound):
        await ReferralService.for_session(db_session).activate_referral('missing')


async def test_activate_pending_skips_referees_below_threshold(db_session, season):
    service = ReferralService.for_session(db_session)
    await service.create_referral(BOB, ALICE, season.id)
    await service.create_referral(BOB, CAROL, season.id)
    await give_balance(db_session, ALICE, season.id, 250)
    await give_balance(db_session, CAROL, season.id, 20)

    assert await service.activate_pending(season.id) == 1

    repo = ReferralRepository(db_session)
    assert (await repo.find_by_referee_and_season(ALICE, season.id)).is_active()
    assert (await repo.find_by_referee_and_season(CAROL, season.id)).is_pending()


async def test_expire_outdated_bonuses(db_session, season):
    service = ReferralService.for_session(db_session)
    first = await service.create_referral(BOB, ALICE, season.id)
    second = await service.create_referral(BOB, CAROL, season.id)
    await give_balance(db_session, ALICE, season.id, 100)
    await give_balance(db_session, CAROL, season.id, 100)
    await service.activate_referral(first.id, now=ACTIVATED)
    await service.activate_referral(second.id, now=ACTIVATED + timedelta(days=20))

    expired = await service.expire_outdated_bonuses(season.id, now=ACTIVATED + timedelta(days=35))
    assert expired == 1

    repo = ReferralRepository(db_session)
    assert (await repo.find_by_id(first.id)).is_expired()
    assert (await repo.find_by_id(second.id)).is_active()


async def test_referral_info_and_stats(db_session, season):
    service = ReferralService.for_session(db_session)
    referral = await service.create_referral(BOB, ALICE, season.id)
    await service.create_referral(BOB, CAROL, season.id)
    await give_balance(db_session, ALICE, season.id, 300)
    activated = await service.activate_referral(referral.id, now=ACTIVATED)
    await ReferralRepository(db_session).update(activated.add_earned_shards(Decimal('12.5')))

    now = ACTIVATED + timedelta(days=3)
    bob = await service.get_referral_info(BOB, season.id, now=now)
    assert bob.referrals_made == 2
    assert bob.total_referral_shards == Decimal('12.5')
    assert bob.referred_by is None

    alice = await service.get_referral_info(ALICE, season.id, now=now)
    assert alice.referred_by == BOB
    assert alice.referee_bonus_active
    assert alice.referee_bonus_expires == ACTIVATED + timedelta(days=30)

    stats = await service.get_referral_stats(BOB, season.id, now=now)
    assert stats.total_referrals == 2
    assert stats.active_referrals == 1
    by_referee = {d.referee_address: d for d in stats.referrals}
    assert by_referee[ALICE].status == 'active'
    assert by_referee[ALICE].referee_balance == Decimal('300')
    assert by_referee[ALICE].is_within_bonus_period
    assert by_referee[CAROL].referee_balance is None


async def test_validate_referral_code(db_session, season):
    service = ReferralService.for_session(db_session)

    check = await service.validate_referral_code('not-a-wallet', season.id)
    assert not check.is_valid
    assert check.reason == 'Invalid wallet address format'

    check = await service.validate_referral_code(BOB, season.id)
    assert not check.is_valid

    await give_balance(db_session, BOB, season.id, 1)
    check = await service.validate_referral_code(BOB.upper().replace('0X', '0x'), season.id)
    assert check.is_valid
    assert check.referrer_address == BOB
