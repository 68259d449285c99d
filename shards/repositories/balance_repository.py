from sqlalchemy import select, desc, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from shards.domain.shard import ShardBalance
from shards.domain.values import normalize_address, to_decimal
from shards.models.shard import ShardBalanceRow


class ShardBalanceRepository:
    """shard_balances ⇄ ShardBalance. Writes replace the row with the new value."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_wallet_and_season(
        self, wallet_address: str, season_id: int,
    ) -> ShardBalance | None:
        result = await self.db.execute(
            select(ShardBalanceRow)
            .where(ShardBalanceRow.wallet_address == normalize_address(wallet_address))
            .where(ShardBalanceRow.season_id == season_id)
        )
        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def create(self, balance: ShardBalance) -> ShardBalance:
        row = ShardBalanceRow(id=balance.id, created_at=balance.created_at)
        _apply(row, balance)
        self.db.add(row)
        await self.db.flush()
        return _to_record(row)

    async def update(self, balance: ShardBalance) -> ShardBalance:
        row = await self.db.get(ShardBalanceRow, balance.id)
        if not row:
            raise ValueError(f'Shard balance {balance.id} not found')
        _apply(row, balance)
        await self.db.flush()
        return _to_record(row)

    async def find_top_by_season(
        self, season_id: int, limit: int = 100, offset: int = 0, category: str = 'total',
    ) -> list[ShardBalance]:
        """Leaderboard page: balances ordered by one category, highest first.

        Ties break on wallet address so ranks are stable across pages.
        """
        column = _ranking_column(category)
        result = await self.db.execute(
            select(ShardBalanceRow)
            .where(ShardBalanceRow.season_id == season_id)
            .order_by(desc(column), ShardBalanceRow.wallet_address)
            .offset(offset)
            .limit(limit)
        )
        return [_to_record(row) for row in result.scalars().all()]

    async def get_wallet_rank(
        self, wallet_address: str, season_id: int, category: str = 'total',
    ) -> int | None:
        """1-based position of the wallet in the same ordering as find_top_by_season."""
        column = _ranking_column(category)
        wallet = normalize_address(wallet_address)
        value = await self.db.scalar(
            select(column)
            .where(ShardBalanceRow.wallet_address == wallet)
            .where(ShardBalanceRow.season_id == season_id)
        )
        if value is None:
            return None
        ahead = await self.db.scalar(
            select(func.count())
            .select_from(ShardBalanceRow)
            .where(ShardBalanceRow.season_id == season_id)
            .where(or_(
                column > value,
                and_(column == value, ShardBalanceRow.wallet_address < wallet),
            ))
        )
        return (ahead or 0) + 1

    async def count_by_season(self, season_id: int) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(ShardBalanceRow)
            .where(ShardBalanceRow.season_id == season_id)
        )
        return result.scalar() or 0

    async def get_total_shards_by_season(self, season_id: int):
        total = await self.db.scalar(
            select(func.sum(ShardBalanceRow.total_shards))
            .where(ShardBalanceRow.season_id == season_id)
        )
        return to_decimal(total)


RANKING_COLUMNS = {
    'total': ShardBalanceRow.total_shards,
    'staking': ShardBalanceRow.staking_shards,
    'social': ShardBalanceRow.social_shards,
    'developer': ShardBalanceRow.developer_shards,
    'referral': ShardBalanceRow.referral_shards,
}


def _ranking_column(category: str):
    try:
        return RANKING_COLUMNS[category]
    except KeyError:
        raise ValueError(f'Unknown leaderboard category: {category}') from None


def _apply(row: ShardBalanceRow, balance: ShardBalance) -> None:
    row.wallet_address = balance.wallet_address
    row.season_id = balance.season_id
    row.staking_shards = balance.staking_shards
    row.social_shards = balance.social_shards
    row.developer_shards = balance.developer_shards
    row.referral_shards = balance.referral_shards
    row.total_shards = balance.total_shards
    row.last_calculated_at = balance.last_calculated_at
    row.updated_at = balance.updated_at


def _to_record(row: ShardBalanceRow) -> ShardBalance:
    return ShardBalance(
        id=row.id,
        wallet_address=row.wallet_address,
        season_id=row.season_id,
        staking_shards=to_decimal(row.staking_shards),
        social_shards=to_decimal(row.social_shards),
        developer_shards=to_decimal(row.developer_shards),
        referral_shards=to_decimal(row.referral_shards),
        last_calculated_at=row.last_calculated_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
