from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from shards.domain.referral import Referral, ReferralStatus
from shards.domain.values import normalize_address, to_decimal
from shards.models.referral import ReferralRow


class ReferralRepository:
    """referrals ⇄ Referral."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, referral_id: str) -> Referral | None:
        row = await self.db.get(ReferralRow, referral_id)
        return _to_record(row) if row else None

    async def find_by_referee_and_season(
        self, referee_address: str, season_id: int,
    ) -> Referral | None:
        result = await self.db.execute(
            select(ReferralRow)
            .where(ReferralRow.referee_address == normalize_address(referee_address))
            .where(ReferralRow.season_id == season_id)
            .order_by(ReferralRow.created_at)
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def find_by_referrer_and_season(
        self, referrer_address: str, season_id: int,
    ) -> list[Referral]:
        result = await self.db.execute(
            select(ReferralRow)
            .where(ReferralRow.referrer_address == normalize_address(referrer_address))
            .where(ReferralRow.season_id == season_id)
            .order_by(ReferralRow.created_at)
        )
        return [_to_record(row) for row in result.scalars().all()]

    async def find_active_by_referrer(
        self, referrer_address: str, season_id: int,
    ) -> list[Referral]:
        result = await self.db.execute(
            select(ReferralRow)
            .where(ReferralRow.referrer_address == normalize_address(referrer_address))
            .where(ReferralRow.season_id == season_id)
            .where(ReferralRow.status == ReferralStatus.ACTIVE.value)
            .order_by(ReferralRow.created_at)
        )
        return [_to_record(row) for row in result.scalars().all()]

    async def find_by_status(self, season_id: int, status: ReferralStatus) -> list[Referral]:
        result = await self.db.execute(
            select(ReferralRow)
            .where(ReferralRow.season_id == season_id)
            .where(ReferralRow.status == status.value)
            .order_by(ReferralRow.created_at)
        )
        return [_to_record(row) for row in result.scalars().all()]

    async def count_by_referrer_and_season(self, referrer_address: str, season_id: int) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(ReferralRow)
            .where(ReferralRow.referrer_address == normalize_address(referrer_address))
            .where(ReferralRow.season_id == season_id)
        )
        return result.scalar() or 0

    async def get_total_shards_by_referrer(self, referrer_address: str, season_id: int):
        total = await self.db.scalar(
            select(func.sum(ReferralRow.total_shards_earned))
            .where(ReferralRow.referrer_address == normalize_address(referrer_address))
            .where(ReferralRow.season_id == season_id)
        )
        return to_decimal(total)

    async def create(self, referral: Referral) -> Referral:
        row = ReferralRow(id=referral.id, created_at=referral.created_at)
        _apply(row, referral)
        self.db.add(row)
        await self.db.flush()
        return _to_record(row)

    async def update(self, referral: Referral) -> Referral:
        row = await self.db.get(ReferralRow, referral.id)
        if not row:
            raise ValueError(f'Referral {referral.id} not found')
        _apply(row, referral)
        await self.db.flush()
        return _to_record(row)


def _apply(row: ReferralRow, referral: Referral) -> None:
    row.referrer_address = referral.referrer_address
    row.referee_address = referral.referee_address
    row.season_id = referral.season_id
    row.status = referral.status.value
    row.activation_date = referral.activation_date
    row.referee_multiplier_expires = referral.referee_multiplier_expires
    row.total_shards_earned = referral.total_shards_earned
    row.updated_at = referral.updated_at


def _to_record(row: ReferralRow) -> Referral:
    return Referral(
        id=row.id,
        referrer_address=row.referrer_address,
        referee_address=row.referee_address,
        season_id=row.season_id,
        status=ReferralStatus(row.status),
        activation_date=row.activation_date,
        referee_multiplier_expires=row.referee_multiplier_expires,
        total_shards_earned=to_decimal(row.total_shards_earned),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
