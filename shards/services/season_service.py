import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from shards.domain.errors import InvalidSeasonDates, InvalidSeasonTransition, SeasonNotFound
from shards.domain.season import DEFAULT_SOCIAL_CONVERSION_RATE, Season, SeasonConfig, SeasonStatus
from shards.domain.values import round_half_up, to_decimal, to_naive_utc, utcnow
from shards.repositories import SeasonRepository

logger = logging.getLogger(__name__)

DEFAULT_REDEEM_PERIOD_DAYS = 14

# Allowed status moves through update_season
ALLOWED_TRANSITIONS = {
    SeasonStatus.UPCOMING: {SeasonStatus.ACTIVE},
    SeasonStatus.ACTIVE: {SeasonStatus.COMPLETED},
    SeasonStatus.COMPLETED: set(),
}


@dataclass
class SeasonStats:
    id: int
    name: str
    chain: str
    status: str
    start_date: datetime
    end_date: datetime | None
    total_participants: int
    total_shards_issued: Decimal
    days_remaining: int | None
    progress: Decimal


def _overlaps(start_a, end_a, start_b, end_b) -> bool:
    # Open-ended seasons run forever
    return (end_b is None or start_a < end_b) and (end_a is None or start_b < end_a)


class SeasonService:

    def __init__(self, season_repo):
        self.season_repo = season_repo

    @classmethod
    def for_session(cls, db: AsyncSession) -> 'SeasonService':
        return cls(SeasonRepository(db))

    async def get_season(self, season_id: int) -> Season:
        season = await self.season_repo.find_by_id(season_id)
        if not season:
            raise SeasonNotFound(f'Season {season_id} not found')
        return season

    async def get_active_season(self) -> Season | None:
        return await self.season_repo.find_active()

    async def get_current_season(self, chain: str) -> Season | None:
        seasons = await self.season_repo.find_active_by_chain(chain)
        return seasons[0] if seasons else None

    async def create_season(
        self,
        name: str,
        chain: str,
        start_date: datetime,
        vault_rates: dict,
        end_date: datetime | None = None,
        social_conversion_rate=None,
        now: datetime | None = None,
    ) -> Season:
        start_date, end_date = to_naive_utc(start_date), to_naive_utc(end_date)
        if end_date and end_date <= start_date:
            raise InvalidSeasonDates('End date must be after start date')

        for active in await self.season_repo.find_active_by_chain(chain):
            if _overlaps(start_date, end_date, active.start_date, active.end_date):
                raise InvalidSeasonDates(
                    f'Season dates overlap with existing season "{active.name}" on {chain}'
                )

        now = to_naive_utc(now) or utcnow()
        status = SeasonStatus.UPCOMING
        if start_date <= now:
            status = SeasonStatus.ACTIVE if not end_date or end_date > now else SeasonStatus.COMPLETED

        config = SeasonConfig(
            vault_rates={asset: to_decimal(rate) for asset, rate in vault_rates.items()},
            social_conversion_rate=to_decimal(social_conversion_rate) or DEFAULT_SOCIAL_CONVERSION_RATE,
            redeem_period_days=DEFAULT_REDEEM_PERIOD_DAYS,
        )
        season = Season.create(name, chain, start_date, config).update(end_date=end_date, status=status)
        created = await self.season_repo.create(season)
        logger.info(f'Created season "{name}" on {chain} with status {status.value}')
        return created

    async def update_season(
        self,
        season_id: int,
        name: str | None = None,
        end_date: datetime | None = None,
        status: SeasonStatus | str | None = None,
        config: dict | None = None,
    ) -> Season:
        season = await self.get_season(season_id)

        end_date = to_naive_utc(end_date)
        if end_date and end_date <= season.start_date:
            raise InvalidSeasonDates('End date must be after start date')

        if status is not None:
            status = SeasonStatus(status)
            if status not in ALLOWED_TRANSITIONS[season.status]:
                raise InvalidSeasonTransition(
                    f'Cannot move season {season_id} from {season.status.value} to {status.value}'
                )

        new_config = None
        if config is not None:
            new_config = SeasonConfig.from_dict({**season.config.to_dict(), **config})

        updated = await self.season_repo.update(
            season.update(name=name, end_date=end_date, status=status, config=new_config)
        )
        logger.info(f'Updated season {season_id}')
        return updated

    async def activate_season(self, season_id: int, now: datetime | None = None) -> Season:
        season = await self.get_season(season_id)
        if season.start_date > (to_naive_utc(now) or utcnow()):
            raise InvalidSeasonTransition('Cannot activate season before start date')

        activated = await self.season_repo.update(season.activate())
        logger.info(f'Activated season {season_id} ({season.name})')
        return activated

    async def complete_season(self, season_id: int) -> Season:
        season = await self.get_season(season_id)
        completed = await self.season_repo.update(season.complete())
        logger.info(f'Completed season {season_id} ({season.name})')
        return completed

    async def get_season_stats(self, season_id: int, now: datetime | None = None) -> SeasonStats:
        season = await self.get_season(season_id)
        now = to_naive_utc(now) or utcnow()

        days_remaining = None
        progress = Decimal('0')
        if season.end_date:
            if season.end_date > now:
                remaining = season.end_date - now
                days_remaining = remaining.days + (1 if remaining.seconds or remaining.microseconds else 0)
            duration = (season.end_date - season.start_date).total_seconds()
            elapsed = min((now - season.start_date).total_seconds(), duration)
            progress = to_decimal(elapsed / duration * 100)
        elif season.is_active():
            progress = Decimal(min((now - season.start_date).days, 100))

        return SeasonStats(
            id=season.id,
            name=season.name,
            chain=season.chain,
            status=season.status.value,
            start_date=season.start_date,
            end_date=season.end_date,
            total_participants=season.total_participants,
            total_shards_issued=season.total_shards_issued,
            days_remaining=days_remaining,
            progress=round_half_up(progress),
        )
