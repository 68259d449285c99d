"""Seed script: wipe shard data and create season 1 with a few staked wallets.

Usage:
    python seed.py
"""
import asyncio
from datetime import timedelta

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from shards.db.database import engine, async_session, init_db
from shards.domain import DeveloperContribution, Referral, Season, SeasonConfig, VaultPosition
from shards.domain.season import SEASON_1_VAULT_RATES
from shards.domain.values import utcnow, utc_today
from shards.repositories import (
    DeveloperContributionRepository,
    ReferralRepository,
    SeasonRepository,
    VaultPositionRepository,
)

# Test wallets and their vault positions (asset, usd value)
TEST_WALLETS = [
    {
        'name': 'Alice',
        'wallet': '0x' + 'a1' * 20,
        'positions': [('ILV', 12_000), ('ETH', 5_000)],
    },
    {
        'name': 'Bob',
        'wallet': '0x' + 'b0' * 20,
        'positions': [('USDC', 20_000)],
    },
    {
        'name': 'Eve',
        'wallet': '0x' + 'e5' * 20,
        'positions': [('ILV/ETH', 3_000)],
    },
]

VAULT_ADDRESSES = {
    'ILV': '0x' + '11' * 20,
    'ILV/ETH': '0x' + '12' * 20,
    'ETH': '0x' + '13' * 20,
    'USDC': '0x' + '14' * 20,
}


async def wipe_all(db: AsyncSession):
    """Truncate all shard tables."""
    tables = [
        'shard_earning_history',
        'shard_balances',
        'referrals',
        'developer_contributions',
        'vault_positions',
        'seasons',
    ]
    for table in tables:
        await db.execute(text(f'TRUNCATE TABLE {table} RESTART IDENTITY CASCADE'))
    await db.commit()
    print('✓ All tables wiped')


async def create_season(db: AsyncSession) -> Season:
    config = SeasonConfig.from_dict({
        'vault_rates': SEASON_1_VAULT_RATES,
        'redeem_period_days': 14,
    })
    season = Season.create('Season 1', 'base', utcnow() - timedelta(days=30), config).activate()
    season = await SeasonRepository(db).create(season)
    await db.commit()
    print(f'  ✓ {season.name} on {season.chain}, id={season.id}')
    return season


async def create_positions(db: AsyncSession, season: Season):
    repo = VaultPositionRepository(db)
    snapshot = utc_today() - timedelta(days=1)
    for w in TEST_WALLETS:
        for asset, usd_value in w['positions']:
            await repo.create(VaultPosition.create(
                w['wallet'], VAULT_ADDRESSES[asset], asset, 'base',
                balance=usd_value, usd_value=usd_value,
                snapshot_date=snapshot, season_id=season.id,
            ))
        print(f'  ✓ {w["name"]} ({w["wallet"][:10]}…): {len(w["positions"])} positions')
    await db.commit()


async def create_extras(db: AsyncSession, season: Season):
    alice, bob, eve = (w['wallet'] for w in TEST_WALLETS)

    await ReferralRepository(db).create(Referral.create(alice, eve, season.id))
    print('  ✓ Alice referred Eve (pending)')

    contribution = DeveloperContribution.create(
        bob, season.id, 'BUG_REPORT', 150, {'issue': 'seed'},
    ).verify('seed').mark_distributed()
    await DeveloperContributionRepository(db).create(contribution)
    print('  ✓ Bob: verified bug report (150 shards)')
    await db.commit()


async def main():
    print()
    print('=' * 50)
    print('  Shards Seed Script')
    print('=' * 50)
    print()

    await init_db()
    async with async_session() as db:
        print('[1/4] Wiping all data...')
        await wipe_all(db)

        print('[2/4] Creating season...')
        season = await create_season(db)

        print('[3/4] Creating vault positions...')
        await create_positions(db, season)

        print('[4/4] Creating referral and contribution...')
        await create_extras(db, season)

    await engine.dispose()

    print()
    print('Done! Run the daily batch with POST /api/shards/process.')
    print()


if __name__ == '__main__':
    asyncio.run(main())
