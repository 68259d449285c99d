"""Referral endpoints."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from shards.db.database import get_db
from shards.domain.errors import ShardsError
from shards.repositories import SeasonRepository
from shards.routes.errors import http_error
from shards.schemas.referral import (
    ReferralCreate, ReferralDetailResponse, ReferralOverviewResponse, ReferralResponse,
)
from shards.services.referral_service import ReferralService

router = APIRouter()


@router.post('', response_model=ReferralResponse, status_code=201)
async def create_referral(
    data: ReferralCreate,
    db: AsyncSession = Depends(get_db),
):
    service = ReferralService.for_session(db)
    try:
        referral = await service.create_referral(
            data.referrer_address, data.referee_address, data.season_id,
        )
    except ShardsError as e:
        raise http_error(e)
    return ReferralResponse.model_validate(referral)


@router.post('/{referral_id}/activate', response_model=ReferralResponse)
async def activate_referral(
    referral_id: str,
    db: AsyncSession = Depends(get_db),
):
    service = ReferralService.for_session(db)
    try:
        referral = await service.activate_referral(referral_id)
    except ShardsError as e:
        raise http_error(e)
    return ReferralResponse.model_validate(referral)


@router.get('/{wallet_address}', response_model=ReferralOverviewResponse)
async def get_referrals(
    wallet_address: str,
    season_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Who referred this wallet, and whom it referred."""
    if season_id is None:
        season = await SeasonRepository(db).find_active()
        if not season:
            raise HTTPException(status_code=404, detail='No active season')
        season_id = season.id

    service = ReferralService.for_session(db)
    info = await service.get_referral_info(wallet_address, season_id)
    stats = await service.get_referral_stats(wallet_address, season_id)
    return ReferralOverviewResponse(
        wallet_address=wallet_address.strip().lower(),
        season_id=season_id,
        referrals_made=info.referrals_made,
        total_referral_shards=info.total_referral_shards,
        referred_by=info.referred_by,
        referee_bonus_active=info.referee_bonus_active,
        referee_bonus_expires=info.referee_bonus_expires,
        active_referrals=stats.active_referrals,
        referrals=[ReferralDetailResponse.model_validate(r) for r in stats.referrals],
    )
