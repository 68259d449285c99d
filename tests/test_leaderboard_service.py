from decimal import Decimal

import pytest

from shards.domain.errors import SeasonNotFound
from shards.services.leaderboard_service import LeaderboardService, percentile_for

from factories import ALICE, BOB, CAROL, add_balance

DAVE = '0x' + '0d' * 20


@pytest.fixture
async def balances(session_factory, season):
    # totals: BOB 210, ALICE 100, CAROL 70
    await add_balance(session_factory, ALICE, season.id, staking=100)
    await add_balance(session_factory, BOB, season.id, staking=10, developer=200)
    await add_balance(session_factory, CAROL, season.id, staking=20, social=50)


async def test_ranked_by_total(db_session, season, balances):
    board = await LeaderboardService.for_session(db_session).get_leaderboard(season.id)
    assert [e.wallet_address for e in board.entries] == [BOB, ALICE, CAROL]
    assert [e.rank for e in board.entries] == [1, 2, 3]
    assert board.total_participants == 3
    assert board.category == 'total'
    assert board.user_entry is None
    assert not board.pagination.has_more


async def test_ranked_by_category(db_session, season, balances):
    service = LeaderboardService.for_session(db_session)
    board = await service.get_leaderboard(season.id, category='staking')
    assert [e.wallet_address for e in board.entries] == [ALICE, CAROL, BOB]

    board = await service.get_leaderboard(season.id, category='social')
    assert board.entries[0].wallet_address == CAROL


async def test_second_page_continues_ranks(db_session, season, balances):
    board = await LeaderboardService.for_session(db_session).get_leaderboard(
        season.id, limit=1, page=2,
    )
    assert len(board.entries) == 1
    assert board.entries[0].rank == 2
    assert board.entries[0].wallet_address == ALICE
    assert board.pagination.offset == 1
    assert board.pagination.has_more


async def test_user_entry_with_percentile(db_session, season, balances):
    service = LeaderboardService.for_session(db_session)
    board = await service.get_leaderboard(season.id, limit=1, wallet_address=CAROL.upper().replace('0X', '0x'))
    assert board.user_entry.wallet_address == CAROL
    assert board.user_entry.rank == 3
    assert board.user_entry.percentile == Decimal('33.33')

    board = await service.get_leaderboard(season.id, category='staking', wallet_address=CAROL)
    assert board.user_entry.rank == 2
    assert board.user_entry.percentile == Decimal('66.67')


async def test_user_entry_absent_for_wallet_without_balance(db_session, season, balances):
    board = await LeaderboardService.for_session(db_session).get_leaderboard(
        season.id, wallet_address=DAVE,
    )
    assert board.user_entry is None


async def test_ties_rank_the_same_way_as_pages(db_session, session_factory, season, balances):
    await add_balance(session_factory, DAVE, season.id, staking=100)
    service = LeaderboardService.for_session(db_session)
    board = await service.get_leaderboard(season.id, wallet_address=ALICE)
    ranks = {e.wallet_address: e.rank for e in board.entries}
    assert ranks[DAVE] < ranks[ALICE]
    assert board.user_entry.rank == ranks[ALICE]


async def test_unknown_season(db_session):
    with pytest.raises(SeasonNotFound):
        await LeaderboardService.for_session(db_session).get_leaderboard(404)


async def test_unknown_category(db_session, season):
    with pytest.raises(ValueError):
        await LeaderboardService.for_session(db_session).get_leaderboard(season.id, category='mining')


@pytest.mark.parametrize('rank,participants,expected', [
    (1, 4, '100.00'),
    (4, 4, '25.00'),
    (1, 0, '0'),
])
def test_percentile(rank, participants, expected):
    assert percentile_for(rank, participants) == Decimal(expected)
