"""Shard balances, ledger history and accrual triggers."""
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shards.db.database import get_db, get_session_factory
from shards.domain.errors import ShardsError
from shards.repositories import SeasonRepository, ShardBalanceRepository
from shards.routes.errors import http_error
from shards.schemas.shard import (
    AccrueRequest,
    BatchResultResponse,
    DailyAveragesResponse,
    DailyShardResponse,
    EarningHistoryResponse,
    HistoryEntryResponse,
    LeaderboardResponse,
    ProcessRequest,
    ShardBalanceResponse,
    StreaksResponse,
)
from shards.services.accrual_service import DailyAccrualService
from shards.services.history_service import EarningHistoryService
from shards.services.leaderboard_service import LeaderboardService
from shards.worker.shard_worker import DailyShardBatch

router = APIRouter()


async def _season_id_or_active(db: AsyncSession, season_id: int | None) -> int:
    if season_id is not None:
        return season_id
    season = await SeasonRepository(db).find_active()
    if not season:
        raise HTTPException(status_code=404, detail='No active season')
    return season.id


@router.get('/leaderboard', response_model=LeaderboardResponse)
async def get_leaderboard(
    season_id: int | None = None,
    category: Literal['total', 'staking', 'social', 'developer', 'referral'] = 'total',
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=100, ge=1, le=1000),
    wallet_address: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Ranked balances of a season, optionally with the caller's own position."""
    season_id = await _season_id_or_active(db, season_id)
    try:
        board = await LeaderboardService.for_session(db).get_leaderboard(
            season_id, category, limit, page, wallet_address,
        )
    except ShardsError as e:
        raise http_error(e)
    return LeaderboardResponse.model_validate(board)


@router.post('/accrue', response_model=DailyShardResponse)
async def accrue_daily_shards(
    data: AccrueRequest,
    db: AsyncSession = Depends(get_db),
):
    """Run the daily accrual for one wallet. Repeated calls replay the stored day."""
    service = DailyAccrualService.for_session(db)
    try:
        result = await service.calculate(data.wallet_address, data.season_id, data.day)
    except ShardsError as e:
        raise http_error(e)
    return DailyShardResponse.model_validate(result)


@router.post('/process', response_model=BatchResultResponse)
async def process_daily_shards(
    data: ProcessRequest,
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Trigger the daily batch.

    In production this is a cron job. For dev/testing we expose it as an endpoint.
    """
    batch = DailyShardBatch(session_factory)
    try:
        result = await batch.run(data.season_id, data.day)
    except ShardsError as e:
        raise http_error(e)
    return BatchResultResponse.model_validate(result)


@router.get('/{wallet_address}', response_model=ShardBalanceResponse)
async def get_balance(
    wallet_address: str,
    season_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    season_id = await _season_id_or_active(db, season_id)
    balance = await ShardBalanceRepository(db).find_by_wallet_and_season(wallet_address, season_id)
    if not balance:
        raise HTTPException(status_code=404, detail='No shard balance for this wallet')
    return ShardBalanceResponse.model_validate(balance)


@router.get('/{wallet_address}/history', response_model=EarningHistoryResponse)
async def get_history(
    wallet_address: str,
    season_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(default=30, ge=1, le=365),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    service = EarningHistoryService.for_session(db)
    try:
        page = await service.get_history(
            wallet_address, season_id, start_date, end_date, limit, offset,
        )
    except ShardsError as e:
        raise http_error(e)
    return EarningHistoryResponse.model_validate(page)


@router.get('/{wallet_address}/averages', response_model=DailyAveragesResponse)
async def get_daily_averages(
    wallet_address: str,
    season_id: int | None = None,
    days: int = Query(default=30, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    season_id = await _season_id_or_active(db, season_id)
    averages = await EarningHistoryService.for_session(db).get_daily_averages(
        wallet_address, season_id, days,
    )
    return DailyAveragesResponse.model_validate(averages)


@router.get('/{wallet_address}/top-days', response_model=list[HistoryEntryResponse])
async def get_top_days(
    wallet_address: str,
    season_id: int | None = None,
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    season_id = await _season_id_or_active(db, season_id)
    days = await EarningHistoryService.for_session(db).get_top_earning_days(
        wallet_address, season_id, limit,
    )
    return [HistoryEntryResponse.model_validate(day) for day in days]


@router.get('/{wallet_address}/streaks', response_model=StreaksResponse)
async def get_streaks(
    wallet_address: str,
    season_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    season_id = await _season_id_or_active(db, season_id)
    streaks = await EarningHistoryService.for_session(db).get_earning_streaks(
        wallet_address, season_id,
    )
    return StreaksResponse.model_validate(streaks)
