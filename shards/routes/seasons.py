"""Season endpoints."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from shards.db.database import get_db
from shards.domain.errors import ShardsError
from shards.routes.errors import http_error
from shards.schemas.season import SeasonCreate, SeasonResponse, SeasonStatsResponse
from shards.services.season_service import SeasonService

router = APIRouter()


@router.get('/active', response_model=SeasonResponse)
async def get_active_season(chain: str | None = None, db: AsyncSession = Depends(get_db)):
    """Current active season, optionally for one chain."""
    service = SeasonService.for_session(db)
    if chain:
        season = await service.get_current_season(chain)
    else:
        season = await service.get_active_season()
    if not season:
        raise HTTPException(status_code=404, detail='No active season')
    return SeasonResponse.model_validate(season)


@router.get('/{season_id}', response_model=SeasonResponse)
async def get_season(season_id: int, db: AsyncSession = Depends(get_db)):
    try:
        season = await SeasonService.for_session(db).get_season(season_id)
    except ShardsError as e:
        raise http_error(e)
    return SeasonResponse.model_validate(season)


@router.get('/{season_id}/stats', response_model=SeasonStatsResponse)
async def get_season_stats(season_id: int, db: AsyncSession = Depends(get_db)):
    """Participants, shards issued and progress through the season."""
    try:
        stats = await SeasonService.for_session(db).get_season_stats(season_id)
    except ShardsError as e:
        raise http_error(e)
    return SeasonStatsResponse.model_validate(stats)


@router.post('', response_model=SeasonResponse, status_code=201)
async def create_season(data: SeasonCreate, db: AsyncSession = Depends(get_db)):
    service = SeasonService.for_session(db)
    try:
        season = await service.create_season(
            name=data.name,
            chain=data.chain,
            start_date=data.start_date,
            vault_rates=data.vault_rates,
            end_date=data.end_date,
            social_conversion_rate=data.social_conversion_rate,
        )
    except ShardsError as e:
        raise http_error(e)
    return SeasonResponse.model_validate(season)


@router.post('/{season_id}/activate', response_model=SeasonResponse)
async def activate_season(season_id: int, db: AsyncSession = Depends(get_db)):
    try:
        season = await SeasonService.for_session(db).activate_season(season_id)
    except ShardsError as e:
        raise http_error(e)
    return SeasonResponse.model_validate(season)


@router.post('/{season_id}/complete', response_model=SeasonResponse)
async def complete_season(season_id: int, db: AsyncSession = Depends(get_db)):
    try:
        season = await SeasonService.for_session(db).complete_season(season_id)
    except ShardsError as e:
        raise http_error(e)
    return SeasonResponse.model_validate(season)
