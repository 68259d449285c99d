"""
Shard Worker

Background service for the daily shard cycle:
- Daily: accrue yesterday's shards for every wallet active in the season
- Daily: referral upkeep (activate pending referrals, expire finished bonuses)

Uses APScheduler for job scheduling.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import async_sessionmaker

from shards.config import Settings, settings as default_settings
from shards.db.database import async_session as default_session_factory
from shards.domain.errors import SeasonNotFound
from shards.domain.values import normalize_address, utc_today
from shards.repositories import (
    DeveloperContributionRepository,
    SeasonRepository,
    ShardBalanceRepository,
    VaultPositionRepository,
)
from shards.services.accrual_service import DailyAccrualService
from shards.services.referral_service import ReferralService

logger = logging.getLogger('shard_worker')


@dataclass
class BatchResult:
    season_id: int
    date: date
    wallets: int = 0
    processed: int = 0
    failed: int = 0
    suspicious: int = 0
    failed_wallets: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'season_id': self.season_id,
            'date': self.date.isoformat(),
            'wallets': self.wallets,
            'processed': self.processed,
            'failed': self.failed,
            'suspicious': self.suspicious,
            'failed_wallets': list(self.failed_wallets),
        }


class DailyShardBatch:
    """Runs the daily accrual over every wallet with activity in a season.

    Wallets are processed in groups of ``batch_size``: concurrently within a
    group, groups one after another. Each wallet gets its own session, so one
    failure never touches another wallet's writes.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker = default_session_factory,
        settings: Settings = default_settings,
        social_source=None,
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.social_source = social_source

    async def run(self, season_id: int | None = None, day: date | None = None) -> BatchResult:
        day = day or utc_today() - timedelta(days=1)

        async with self.session_factory() as session:
            seasons = SeasonRepository(session)
            season = await (seasons.find_by_id(season_id) if season_id else seasons.find_active())
            if not season:
                raise SeasonNotFound(f'No season to process (requested: {season_id})')
            wallets = await self._collect_wallets(session, season.id, day)

        result = BatchResult(season_id=season.id, date=day, wallets=len(wallets))
        logger.info(f'Processing daily shards for {len(wallets)} wallets (season {season.id}, {day})')

        size = max(1, self.settings.batch_size)
        for start in range(0, len(wallets), size):
            group = wallets[start:start + size]
            outcomes = await asyncio.gather(
                *(self._process_wallet(wallet, season.id, day) for wallet in group)
            )
            for wallet, outcome in zip(group, outcomes):
                if outcome is None:
                    result.failed += 1
                    result.failed_wallets.append(wallet)
                    continue
                result.processed += 1
                if outcome.fraud_check and outcome.fraud_check.is_suspicious:
                    result.suspicious += 1

        await self._refresh_season_stats(season.id)

        logger.info(
            f'Daily shards done for season {season.id} on {day}: '
            f'{result.processed} processed, {result.failed} failed, {result.suspicious} suspicious'
        )
        return result

    async def _collect_wallets(self, session, season_id: int, day: date) -> list[str]:
        staked = await VaultPositionRepository(session).find_wallets_by_season(season_id)
        contributed = await DeveloperContributionRepository(session).find_wallets_by_date(day)
        return sorted({normalize_address(w) for w in [*staked, *contributed]})

    async def _refresh_season_stats(self, season_id: int):
        """Recount participants and shards issued from the balances table."""
        async with self.session_factory() as session:
            async with session.begin():
                seasons = SeasonRepository(session)
                balances = ShardBalanceRepository(session)
                season = await seasons.find_by_id(season_id)
                await seasons.update(season.update_stats(
                    await balances.count_by_season(season_id),
                    await balances.get_total_shards_by_season(season_id),
                ))

    async def _process_wallet(self, wallet: str, season_id: int, day: date):
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    service = DailyAccrualService.for_session(
                        session, self.settings, self.social_source,
                    )
                    return await service.calculate(wallet, season_id, day)
        except Exception as e:
            logger.error(f'Failed to process daily shards for wallet {wallet}: {e}', exc_info=True)
            return None


class ShardWorker:
    """Background worker for the daily shard jobs."""

    def __init__(
        self,
        session_factory: async_sessionmaker = default_session_factory,
        settings: Settings = default_settings,
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.batch = DailyShardBatch(session_factory, settings)
        self.scheduler = AsyncIOScheduler()

    def schedule(self):
        # Referral upkeep runs before the accrual so fresh activations count
        self.scheduler.add_job(
            self._run_referral_maintenance,
            CronTrigger(hour=self.settings.referral_maintenance_hour, minute=0),
            id='referral_maintenance',
            name='Referral Activation & Expiry',
            replace_existing=True,
        )
        self.scheduler.add_job(
            self._run_daily_shards,
            CronTrigger(hour=self.settings.daily_processing_hour, minute=0),
            id='daily_shards',
            name='Daily Shard Accrual',
            replace_existing=True,
        )

    async def start(self):
        """Start the worker and scheduler."""
        logger.info('Starting Shard Worker...')
        self.schedule()
        self.scheduler.start()
        logger.info('Scheduler started. Jobs:')
        for job in self.scheduler.get_jobs():
            logger.info(f'  - {job.name}: next run at {job.next_run_time}')

        # Keep running
        try:
            while True:
                await asyncio.sleep(60)
        except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
            logger.info('Shutting down...')
            self.scheduler.shutdown()

    async def _run_daily_shards(self) -> dict:
        logger.info('Running daily shard accrual...')
        try:
            result = await self.batch.run()
            return result.to_dict()
        except Exception as e:
            logger.error(f'Daily shard accrual failed: {e}', exc_info=True)
            raise

    async def _run_referral_maintenance(self) -> dict:
        logger.info('Running referral maintenance...')
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    season = await SeasonRepository(session).find_active()
                    if not season:
                        logger.info('No active season, skipping referral maintenance')
                        return {'activated': 0, 'expired': 0}

                    service = ReferralService.for_session(session)
                    activated = await service.activate_pending(season.id)
                    expired = await service.expire_outdated_bonuses(season.id)

            result = {'season_id': season.id, 'activated': activated, 'expired': expired}
            logger.info(f'Referral maintenance result: {result}')
            return result
        except Exception as e:
            logger.error(f'Referral maintenance failed: {e}', exc_info=True)
            raise

    async def run_once(self, job_type: str = 'shards'):
        """Run a single job immediately."""
        if job_type == 'shards':
            return await self._run_daily_shards()
        elif job_type == 'referrals':
            return await self._run_referral_maintenance()
        else:
            raise ValueError(f'Unknown job type: {job_type}')


async def main():
    """Entry point for the worker."""
    logging.basicConfig(
        level=default_settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    worker = ShardWorker()
    await worker.start()


if __name__ == '__main__':
    asyncio.run(main())
