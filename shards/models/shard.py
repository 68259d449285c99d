import datetime as dt
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, DateTime, Date, JSON, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shards.db.database import Base
from shards.domain.values import utcnow


class ShardBalanceRow(Base):
    """Cumulative shards per (wallet, season). total = sum of the four categories."""

    __tablename__ = 'shard_balances'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    wallet_address: Mapped[str] = mapped_column(String(42))
    season_id: Mapped[int] = mapped_column(Integer)

    staking_shards: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)
    social_shards: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)
    developer_shards: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)
    referral_shards: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)
    total_shards: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)

    last_calculated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint('wallet_address', 'season_id', name='uq_shard_balances_wallet_season'),
        Index('ix_shard_balances_season_total', 'season_id', 'total_shards'),
    )


class ShardEarningHistoryRow(Base):
    """Immutable daily ledger entry. (wallet, season, date) is the idempotence key."""

    __tablename__ = 'shard_earning_history'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    wallet_address: Mapped[str] = mapped_column(String(42))
    season_id: Mapped[int] = mapped_column(Integer)
    date: Mapped[dt.date] = mapped_column(Date)

    staking_shards: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)
    social_shards: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)
    developer_shards: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)
    referral_shards: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)
    daily_total: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)

    vault_breakdown: Mapped[list] = mapped_column(JSON, default=list)
    # referee_multiplier, fraud_check, calculated_at
    metadata_: Mapped[dict] = mapped_column('metadata', JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        # Storage-level backstop for concurrent accruals of the same key
        UniqueConstraint(
            'wallet_address', 'season_id', 'date',
            name='uq_shard_earning_history_wallet_season_date',
        ),
        Index('ix_shard_earning_history_season_date', 'season_id', 'date'),
    )
