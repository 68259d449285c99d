from datetime import date, datetime, time, timedelta
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from shards.domain.contribution import DeveloperActionType, DeveloperContribution, VaultPosition
from shards.domain.values import normalize_address, to_day, to_decimal
from shards.models.contribution import DeveloperContributionRow, VaultPositionRow


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(to_day(day), time.min)
    return start, start + timedelta(days=1)


class VaultPositionRepository:
    """vault_positions ⇄ VaultPosition. Rows are written by the vault sync."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_wallet_and_season(
        self, wallet_address: str, season_id: int,
    ) -> list[VaultPosition]:
        """Latest snapshot of each vault the wallet holds in the season."""
        result = await self.db.execute(
            select(VaultPositionRow)
            .where(VaultPositionRow.wallet_address == normalize_address(wallet_address))
            .where(VaultPositionRow.season_id == season_id)
            .order_by(desc(VaultPositionRow.snapshot_date), desc(VaultPositionRow.block_number))
        )
        latest: dict[tuple[str, str], VaultPosition] = {}
        for row in result.scalars().all():
            key = (row.chain, row.vault_address)
            if key not in latest:
                latest[key] = _position_to_record(row)
        return list(latest.values())

    async def find_wallets_by_season(self, season_id: int) -> list[str]:
        result = await self.db.execute(
            select(VaultPositionRow.wallet_address)
            .where(VaultPositionRow.season_id == season_id)
            .distinct()
        )
        return list(result.scalars().all())

    async def create(self, position: VaultPosition) -> VaultPosition:
        row = VaultPositionRow(
            id=position.id,
            wallet_address=position.wallet_address,
            vault_address=position.vault_address,
            asset_symbol=position.asset_symbol,
            chain=position.chain,
            season_id=position.season_id,
            balance=position.balance,
            usd_value=position.usd_value,
            snapshot_date=position.snapshot_date,
            block_number=position.block_number,
        )
        self.db.add(row)
        await self.db.flush()
        return position


class DeveloperContributionRepository:
    """developer_contributions ⇄ DeveloperContribution."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_wallet_and_date(
        self, wallet_address: str, day: date,
    ) -> list[DeveloperContribution]:
        """Contributions recorded on the given UTC day."""
        start, end = _day_bounds(day)
        result = await self.db.execute(
            select(DeveloperContributionRow)
            .where(DeveloperContributionRow.wallet_address == normalize_address(wallet_address))
            .where(DeveloperContributionRow.created_at >= start)
            .where(DeveloperContributionRow.created_at < end)
            .order_by(desc(DeveloperContributionRow.created_at))
        )
        return [_contribution_to_record(row) for row in result.scalars().all()]

    async def find_wallets_by_date(self, day: date) -> list[str]:
        start, end = _day_bounds(day)
        result = await self.db.execute(
            select(DeveloperContributionRow.wallet_address)
            .where(DeveloperContributionRow.created_at >= start)
            .where(DeveloperContributionRow.created_at < end)
            .distinct()
        )
        return list(result.scalars().all())

    async def create(self, contribution: DeveloperContribution) -> DeveloperContribution:
        row = DeveloperContributionRow(id=contribution.id, created_at=contribution.created_at)
        _apply_contribution(row, contribution)
        self.db.add(row)
        await self.db.flush()
        return _contribution_to_record(row)


def _position_to_record(row: VaultPositionRow) -> VaultPosition:
    return VaultPosition(
        id=row.id,
        wallet_address=row.wallet_address,
        vault_address=row.vault_address,
        asset_symbol=row.asset_symbol,
        chain=row.chain,
        season_id=row.season_id,
        balance=to_decimal(row.balance),
        usd_value=to_decimal(row.usd_value),
        snapshot_date=row.snapshot_date,
        block_number=row.block_number or 0,
    )


def _apply_contribution(row: DeveloperContributionRow, contribution: DeveloperContribution) -> None:
    row.wallet_address = contribution.wallet_address
    row.season_id = contribution.season_id
    row.action_type = contribution.action_type.value
    row.action_details = contribution.action_details
    row.shards_earned = contribution.shards_earned
    row.verified = contribution.verified
    row.verified_at = contribution.verified_at
    row.verified_by = contribution.verified_by
    row.distributed_at = contribution.distributed_at
    row.updated_at = contribution.updated_at


def _contribution_to_record(row: DeveloperContributionRow) -> DeveloperContribution:
    return DeveloperContribution(
        id=row.id,
        wallet_address=row.wallet_address,
        season_id=row.season_id,
        action_type=DeveloperActionType(row.action_type),
        shards_earned=to_decimal(row.shards_earned),
        verified=bool(row.verified),
        verified_at=row.verified_at,
        verified_by=row.verified_by,
        distributed_at=row.distributed_at,
        action_details=dict(row.action_details or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
