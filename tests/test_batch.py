from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from shards.config import Settings
from shards.domain.errors import SeasonNotFound
from shards.domain.values import utc_today
from shards.domain import ShardBalance
from shards.repositories import (
    ReferralRepository, SeasonRepository, ShardBalanceRepository, ShardEarningHistoryRepository,
)
from shards.worker.shard_worker import DailyShardBatch, ShardWorker

from factories import ALICE, BOB, CAROL, DAY, add_contribution, add_position, add_referral, add_season

SEQUENTIAL = Settings(batch_size=1)


class FailingSocialSource:
    """Raises for one wallet, zero for everyone else."""

    def __init__(self, failing_wallet):
        self.failing_wallet = failing_wallet

    async def compute_social_shards(self, wallet_address, day):
        if wallet_address == self.failing_wallet:
            raise RuntimeError('social feed unavailable')
        return Decimal('0')


async def history_count(session_factory, wallet) -> int:
    async with session_factory() as session:
        _, total = await ShardEarningHistoryRepository(session).find_by_wallet(wallet)
    return total


async def test_batch_covers_stakers_and_contributors(session_factory, season):
    await add_position(session_factory, ALICE, 'USDC', 1000, season.id)
    await add_position(session_factory, BOB, 'ETH', 1000, season.id)
    await add_contribution(session_factory, CAROL, season.id, 150, created_at=datetime(2025, 3, 10, 8))

    result = await DailyShardBatch(session_factory, SEQUENTIAL).run(season.id, DAY)

    assert result.wallets == 3
    assert result.processed == 3
    assert result.failed == 0
    async with session_factory() as session:
        balances = ShardBalanceRepository(session)
        assert (await balances.find_by_wallet_and_season(ALICE, season.id)).total_shards == Decimal('1.00')
        assert (await balances.find_by_wallet_and_season(BOB, season.id)).total_shards == Decimal('2.00')
        assert (await balances.find_by_wallet_and_season(CAROL, season.id)).total_shards == Decimal('150.00')

        refreshed = await SeasonRepository(session).find_by_id(season.id)
    assert refreshed.total_participants == 3
    assert refreshed.total_shards_issued == Decimal('153.00')


async def test_failing_wallet_does_not_stop_the_batch(session_factory, season):
    await add_position(session_factory, ALICE, 'USDC', 1000, season.id)
    await add_position(session_factory, BOB, 'USDC', 1000, season.id)
    await add_position(session_factory, CAROL, 'USDC', 1000, season.id)

    batch = DailyShardBatch(session_factory, SEQUENTIAL, social_source=FailingSocialSource(BOB))
    result = await batch.run(season.id, DAY)

    assert result.processed == 2
    assert result.failed == 1
    assert result.failed_wallets == [BOB]
    assert await history_count(session_factory, ALICE) == 1
    assert await history_count(session_factory, BOB) == 0
    assert await history_count(session_factory, CAROL) == 1


async def test_rerun_replays_without_duplicates(session_factory, season):
    await add_position(session_factory, ALICE, 'ETH', 5000, season.id)
    batch = DailyShardBatch(session_factory, SEQUENTIAL)

    await batch.run(season.id, DAY)
    again = await batch.run(season.id, DAY)

    assert again.processed == 1
    assert await history_count(session_factory, ALICE) == 1
    async with session_factory() as session:
        balance = await ShardBalanceRepository(session).find_by_wallet_and_season(ALICE, season.id)
    assert balance.staking_shards == Decimal('10.00')


async def test_suspicious_wallets_are_counted(session_factory, season):
    await add_position(session_factory, ALICE, 'ILV', 1_000_000, season.id)
    await add_position(session_factory, BOB, 'USDC', 1000, season.id)

    result = await DailyShardBatch(session_factory, SEQUENTIAL).run(season.id, DAY)
    assert result.processed == 2
    assert result.suspicious == 1


async def test_batch_defaults_to_active_season_and_yesterday(session_factory, season):
    await add_position(session_factory, ALICE, 'USDC', 1000, season.id)

    result = await DailyShardBatch(session_factory, SEQUENTIAL).run()
    assert result.season_id == season.id
    assert result.date == utc_today() - timedelta(days=1)
    assert result.to_dict()['processed'] == 1


async def test_batch_without_season_aborts(session_factory):
    with pytest.raises(SeasonNotFound):
        await DailyShardBatch(session_factory, SEQUENTIAL).run()


async def test_batch_for_inactive_season_fails_every_wallet(session_factory):
    upcoming = await add_season(session_factory, active=False)
    await add_position(session_factory, ALICE, 'USDC', 1000, upcoming.id)

    result = await DailyShardBatch(session_factory, SEQUENTIAL).run(upcoming.id, DAY)
    assert result.failed == 1
    assert result.processed == 0


# ── Worker ────────────────────────────────────────────────────────────────────

def test_worker_schedules_daily_jobs():
    worker = ShardWorker(settings=Settings(daily_processing_hour=3, referral_maintenance_hour=2))
    worker.schedule()
    jobs = {job.id: job for job in worker.scheduler.get_jobs()}
    assert set(jobs) == {'daily_shards', 'referral_maintenance'}
    assert str(jobs['daily_shards'].trigger.fields[5]) == '3'


async def test_referral_maintenance_activates_and_expires(session_factory, season):
    await add_referral(session_factory, BOB, ALICE, season.id)
    stale = await add_referral(session_factory, BOB, CAROL, season.id, activated_at=datetime(2025, 1, 1))
    async with session_factory() as session:
        await ShardBalanceRepository(session).create(ShardBalance.create(ALICE, season.id, staking_shards=120))
        await session.commit()

    result = await ShardWorker(session_factory, SEQUENTIAL).run_once('referrals')
    assert result == {'season_id': season.id, 'activated': 1, 'expired': 1}

    async with session_factory() as session:
        referrals = ReferralRepository(session)
        assert (await referrals.find_by_referee_and_season(ALICE, season.id)).is_active()
        assert (await referrals.find_by_id(stale.id)).is_expired()


async def test_unknown_job_type(session_factory):
    with pytest.raises(ValueError):
        await ShardWorker(session_factory, SEQUENTIAL).run_once('payouts')
