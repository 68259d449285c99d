"""Read side over the daily ledger: history pages, averages and trend, top days, streaks."""
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from shards.domain.errors import SeasonNotFound
from shards.domain.shard import ShardEarningHistory
from shards.domain.values import ZERO, normalize_address, round_half_up, utc_today
from shards.repositories import HistorySummary, SeasonRepository, ShardEarningHistoryRepository

# A trend moves only beyond ±5%
TREND_THRESHOLD = Decimal('5')

TOP_DAYS_WINDOW = 1000
STREAK_WINDOW = 365


@dataclass
class Pagination:
    limit: int
    offset: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


@dataclass
class EarningHistoryPage:
    wallet_address: str
    season_id: int | None
    start: date | None
    end: date | None
    summary: HistorySummary
    history: list[ShardEarningHistory]
    pagination: Pagination


@dataclass
class Trend:
    direction: str = 'stable'
    percentage: Decimal = ZERO


@dataclass
class DailyAverages:
    wallet_address: str
    season_id: int
    period: int
    daily: Decimal
    staking: Decimal
    social: Decimal
    developer: Decimal
    referral: Decimal
    trend: Trend


@dataclass
class Streaks:
    current_streak: int = 0
    longest_streak: int = 0
    total_active_days: int = 0
    last_active_date: date | None = None


def compute_trend(current: Decimal, previous: Decimal) -> Trend:
    """Percent change of ``current`` over ``previous``; no trend without a baseline."""
    if previous <= 0:
        return Trend()
    change = (current - previous) / previous * 100
    percentage = round_half_up(change)
    if change > TREND_THRESHOLD:
        return Trend('up', percentage)
    if change < -TREND_THRESHOLD:
        return Trend('down', percentage)
    return Trend('stable', percentage)


def compute_streaks(dates: list[date], today: date | None = None) -> Streaks:
    """Runs of consecutive calendar days.

    The current streak counts only when the latest active day is today or
    yesterday.
    """
    if not dates:
        return Streaks()

    days = sorted(set(dates))
    longest = run = 1
    for previous, current in zip(days, days[1:]):
        if (current - previous).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    longest = max(longest, run)

    last = days[-1]
    since_last = ((today or utc_today()) - last).days
    return Streaks(
        current_streak=run if 0 <= since_last <= 1 else 0,
        longest_streak=longest,
        total_active_days=len(days),
        last_active_date=last,
    )


class EarningHistoryService:

    def __init__(self, history_repo, season_repo):
        self.history_repo = history_repo
        self.season_repo = season_repo

    @classmethod
    def for_session(cls, db: AsyncSession) -> 'EarningHistoryService':
        return cls(ShardEarningHistoryRepository(db), SeasonRepository(db))

    async def get_history(
        self,
        wallet_address: str,
        season_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 30,
        offset: int = 0,
    ) -> EarningHistoryPage:
        wallet = normalize_address(wallet_address)
        if season_id is not None and not await self.season_repo.find_by_id(season_id):
            raise SeasonNotFound(f'Season {season_id} not found')

        rows, total = await self.history_repo.find_by_wallet(
            wallet, season_id, start_date, end_date, limit, offset,
        )
        summary = await self.history_repo.get_summary_by_wallet(
            wallet, season_id, start_date, end_date,
        )
        return EarningHistoryPage(
            wallet_address=wallet,
            season_id=season_id,
            start=rows[-1].date if rows else None,
            end=rows[0].date if rows else None,
            summary=summary,
            history=rows,
            pagination=Pagination(limit=limit, offset=offset, total=total),
        )

    async def get_daily_averages(
        self, wallet_address: str, season_id: int, days: int = 30, today: date | None = None,
    ) -> DailyAverages:
        wallet = normalize_address(wallet_address)
        today = today or utc_today()

        current = await self.history_repo.get_average_daily_shards(wallet, season_id, days, today)
        previous = await self.history_repo.get_average_daily_shards(wallet, season_id, days * 2, today)

        summary = await self.history_repo.get_summary_by_wallet(
            wallet, season_id, today - timedelta(days=days), today,
        )
        active_days = summary.total_days or 1
        breakdown = {
            category: round_half_up(amount / active_days)
            for category, amount in summary.breakdown.items()
        }
        return DailyAverages(
            wallet_address=wallet,
            season_id=season_id,
            period=days,
            daily=round_half_up(current),
            staking=breakdown['staking'],
            social=breakdown['social'],
            developer=breakdown['developer'],
            referral=breakdown['referral'],
            trend=compute_trend(current, previous),
        )

    async def get_top_earning_days(
        self, wallet_address: str, season_id: int, limit: int = 10,
    ) -> list[ShardEarningHistory]:
        rows, _ = await self.history_repo.find_by_wallet(
            normalize_address(wallet_address), season_id, limit=TOP_DAYS_WINDOW,
        )
        return sorted(rows, key=lambda h: h.daily_total, reverse=True)[:limit]

    async def get_earning_streaks(
        self, wallet_address: str, season_id: int, today: date | None = None,
    ) -> Streaks:
        rows, _ = await self.history_repo.find_by_wallet(
            normalize_address(wallet_address), season_id, limit=STREAK_WINDOW,
        )
        return compute_streaks([h.date for h in rows], today)
