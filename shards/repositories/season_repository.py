from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from shards.domain.season import Season, SeasonConfig, SeasonStatus
from shards.domain.values import to_decimal
from shards.models.season import SeasonRow


class SeasonRepository:
    """Seasons table ⇄ Season records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, season_id: int) -> Season | None:
        row = await self.db.get(SeasonRow, season_id)
        return _to_record(row) if row else None

    async def find_active(self) -> Season | None:
        """Most recently started active season, if any."""
        result = await self.db.execute(
            select(SeasonRow)
            .where(SeasonRow.status == SeasonStatus.ACTIVE.value)
            .order_by(desc(SeasonRow.start_date))
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def find_active_by_chain(self, chain: str) -> list[Season]:
        result = await self.db.execute(
            select(SeasonRow)
            .where(SeasonRow.chain == chain)
            .where(SeasonRow.status == SeasonStatus.ACTIVE.value)
        )
        return [_to_record(row) for row in result.scalars().all()]

    async def create(self, season: Season) -> Season:
        row = SeasonRow(id=season.id) if season.id is not None else SeasonRow()
        _apply(row, season)
        row.created_at = season.created_at
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return _to_record(row)

    async def update(self, season: Season) -> Season:
        row = await self.db.get(SeasonRow, season.id)
        if not row:
            raise ValueError(f'Season {season.id} not found')
        _apply(row, season)
        await self.db.flush()
        return _to_record(row)


def _apply(row: SeasonRow, season: Season) -> None:
    row.name = season.name
    row.chain = season.chain
    row.start_date = season.start_date
    row.end_date = season.end_date
    row.status = season.status.value
    row.config = season.config.to_dict()
    row.total_participants = season.total_participants
    row.total_shards_issued = season.total_shards_issued
    row.updated_at = season.updated_at


def _to_record(row: SeasonRow) -> Season:
    return Season(
        id=row.id,
        name=row.name,
        chain=row.chain,
        start_date=row.start_date,
        end_date=row.end_date,
        status=SeasonStatus(row.status),
        config=SeasonConfig.from_dict(row.config),
        total_participants=row.total_participants or 0,
        total_shards_issued=to_decimal(row.total_shards_issued),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
