"""create shard tables

Revision ID: a1c4e7f20b31
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c4e7f20b31'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'seasons',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('chain', sa.String(20), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(10), server_default='upcoming', nullable=False),
        sa.Column('config', sa.JSON(), nullable=False),
        sa.Column('total_participants', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_shards_issued', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_seasons_status', 'seasons', ['status'])

    op.create_table(
        'shard_balances',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('wallet_address', sa.String(42), nullable=False),
        sa.Column('season_id', sa.Integer(), nullable=False),
        sa.Column('staking_shards', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('social_shards', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('developer_shards', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('referral_shards', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('total_shards', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('last_calculated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('wallet_address', 'season_id', name='uq_shard_balances_wallet_season'),
    )
    op.create_index('ix_shard_balances_season_total', 'shard_balances', ['season_id', 'total_shards'])

    op.create_table(
        'shard_earning_history',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('wallet_address', sa.String(42), nullable=False),
        sa.Column('season_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('staking_shards', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('social_shards', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('developer_shards', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('referral_shards', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('daily_total', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('vault_breakdown', sa.JSON(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            'wallet_address', 'season_id', 'date',
            name='uq_shard_earning_history_wallet_season_date',
        ),
    )
    op.create_index('ix_shard_earning_history_season_date', 'shard_earning_history', ['season_id', 'date'])

    op.create_table(
        'referrals',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('referrer_address', sa.String(42), nullable=False),
        sa.Column('referee_address', sa.String(42), nullable=False),
        sa.Column('season_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(10), server_default='pending', nullable=False),
        sa.Column('activation_date', sa.DateTime(), nullable=True),
        sa.Column('referee_multiplier_expires', sa.DateTime(), nullable=True),
        sa.Column('total_shards_earned', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            'referrer_address', 'referee_address', 'season_id',
            name='uq_referrals_pair_season',
        ),
    )
    op.create_index('ix_referrals_referrer_season', 'referrals', ['referrer_address', 'season_id'])
    op.create_index('ix_referrals_referee_season', 'referrals', ['referee_address', 'season_id'])

    op.create_table(
        'vault_positions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('wallet_address', sa.String(42), nullable=False),
        sa.Column('vault_address', sa.String(42), nullable=False),
        sa.Column('asset_symbol', sa.String(20), nullable=False),
        sa.Column('chain', sa.String(20), nullable=False),
        sa.Column('season_id', sa.Integer(), nullable=False),
        sa.Column('balance', sa.Numeric(38, 18), server_default='0', nullable=False),
        sa.Column('usd_value', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('snapshot_date', sa.Date(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_vault_positions_wallet_season', 'vault_positions', ['wallet_address', 'season_id'])

    op.create_table(
        'developer_contributions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('wallet_address', sa.String(42), nullable=False),
        sa.Column('season_id', sa.Integer(), nullable=False),
        sa.Column('action_type', sa.String(30), nullable=False),
        sa.Column('action_details', sa.JSON(), nullable=False),
        sa.Column('shards_earned', sa.Numeric(20, 2), server_default='0', nullable=False),
        sa.Column('verified', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('verified_by', sa.String(100), nullable=True),
        sa.Column('distributed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        'ix_developer_contributions_wallet_created',
        'developer_contributions', ['wallet_address', 'created_at'],
    )


def downgrade() -> None:
    op.drop_index('ix_developer_contributions_wallet_created', 'developer_contributions')
    op.drop_table('developer_contributions')
    op.drop_index('ix_vault_positions_wallet_season', 'vault_positions')
    op.drop_table('vault_positions')
    op.drop_index('ix_referrals_referee_season', 'referrals')
    op.drop_index('ix_referrals_referrer_season', 'referrals')
    op.drop_table('referrals')
    op.drop_index('ix_shard_earning_history_season_date', 'shard_earning_history')
    op.drop_table('shard_earning_history')
    op.drop_index('ix_shard_balances_season_total', 'shard_balances')
    op.drop_table('shard_balances')
    op.drop_index('ix_seasons_status', 'seasons')
    op.drop_table('seasons')
