from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from shards.domain.shard import ShardEarningHistory, VaultBreakdown
from shards.domain.values import ZERO, normalize_address, to_day, to_decimal, utc_today
from shards.models.shard import ShardEarningHistoryRow


@dataclass
class HistorySummary:
    """Aggregate over a wallet's ledger rows."""
    total_days: int = 0
    total_shards: Decimal = ZERO
    avg_daily_shards: Decimal = ZERO
    breakdown: dict[str, Decimal] = field(default_factory=lambda: {
        'staking': ZERO, 'social': ZERO, 'developer': ZERO, 'referral': ZERO,
    })


class ShardEarningHistoryRepository:
    """shard_earning_history ⇄ ShardEarningHistory. Rows are insert-only."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_wallet_and_date(
        self, wallet_address: str, day: date, season_id: int,
    ) -> ShardEarningHistory | None:
        result = await self.db.execute(
            select(ShardEarningHistoryRow)
            .where(ShardEarningHistoryRow.wallet_address == normalize_address(wallet_address))
            .where(ShardEarningHistoryRow.date == to_day(day))
            .where(ShardEarningHistoryRow.season_id == season_id)
        )
        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def create(self, history: ShardEarningHistory) -> ShardEarningHistory:
        row = ShardEarningHistoryRow(
            id=history.id,
            wallet_address=history.wallet_address,
            season_id=history.season_id,
            date=history.date,
            staking_shards=history.staking_shards,
            social_shards=history.social_shards,
            developer_shards=history.developer_shards,
            referral_shards=history.referral_shards,
            daily_total=history.daily_total,
            vault_breakdown=[v.to_dict() for v in history.vault_breakdown],
            metadata_=history.metadata,
            created_at=history.created_at,
        )
        self.db.add(row)
        await self.db.flush()
        return _to_record(row)

    async def find_by_wallet(
        self,
        wallet_address: str,
        season_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 30,
        offset: int = 0,
    ) -> tuple[list[ShardEarningHistory], int]:
        """Rows newest first, plus the total count matching the filters."""
        filters = [ShardEarningHistoryRow.wallet_address == normalize_address(wallet_address)]
        if season_id is not None:
            filters.append(ShardEarningHistoryRow.season_id == season_id)
        if start_date:
            filters.append(ShardEarningHistoryRow.date >= to_day(start_date))
        if end_date:
            filters.append(ShardEarningHistoryRow.date <= to_day(end_date))

        result = await self.db.execute(
            select(ShardEarningHistoryRow)
            .where(*filters)
            .order_by(desc(ShardEarningHistoryRow.date))
            .limit(limit)
            .offset(offset)
        )
        rows = [_to_record(row) for row in result.scalars().all()]

        total = await self.db.scalar(
            select(func.count())
            .select_from(ShardEarningHistoryRow)
            .where(*filters)
        )
        return rows, total or 0

    async def get_average_daily_shards(
        self,
        wallet_address: str,
        season_id: int,
        days: int,
        today: date | None = None,
    ) -> Decimal:
        """Mean daily_total over rows dated within the last ``days`` days."""
        start = (today or utc_today()) - timedelta(days=days)
        average = await self.db.scalar(
            select(func.avg(ShardEarningHistoryRow.daily_total))
            .where(ShardEarningHistoryRow.wallet_address == normalize_address(wallet_address))
            .where(ShardEarningHistoryRow.season_id == season_id)
            .where(ShardEarningHistoryRow.date >= start)
        )
        return to_decimal(average)

    async def get_summary_by_wallet(
        self,
        wallet_address: str,
        season_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> HistorySummary:
        query = (
            select(
                func.count(ShardEarningHistoryRow.id),
                func.sum(ShardEarningHistoryRow.daily_total),
                func.avg(ShardEarningHistoryRow.daily_total),
                func.sum(ShardEarningHistoryRow.staking_shards),
                func.sum(ShardEarningHistoryRow.social_shards),
                func.sum(ShardEarningHistoryRow.developer_shards),
                func.sum(ShardEarningHistoryRow.referral_shards),
            )
            .where(ShardEarningHistoryRow.wallet_address == normalize_address(wallet_address))
        )
        if season_id is not None:
            query = query.where(ShardEarningHistoryRow.season_id == season_id)
        if start_date:
            query = query.where(ShardEarningHistoryRow.date >= to_day(start_date))
        if end_date:
            query = query.where(ShardEarningHistoryRow.date <= to_day(end_date))

        result = await self.db.execute(query)
        days, total, avg, staking, social, developer, referral = result.one()
        return HistorySummary(
            total_days=days or 0,
            total_shards=to_decimal(total),
            avg_daily_shards=to_decimal(avg),
            breakdown={
                'staking': to_decimal(staking),
                'social': to_decimal(social),
                'developer': to_decimal(developer),
                'referral': to_decimal(referral),
            },
        )


def _to_record(row: ShardEarningHistoryRow) -> ShardEarningHistory:
    return ShardEarningHistory(
        id=row.id,
        wallet_address=row.wallet_address,
        season_id=row.season_id,
        date=row.date,
        staking_shards=to_decimal(row.staking_shards),
        social_shards=to_decimal(row.social_shards),
        developer_shards=to_decimal(row.developer_shards),
        referral_shards=to_decimal(row.referral_shards),
        vault_breakdown=tuple(VaultBreakdown.from_dict(v) for v in (row.vault_breakdown or [])),
        metadata=dict(row.metadata_ or {}),
        created_at=row.created_at,
    )
