from datetime import datetime, date
from decimal import Decimal
from sqlalchemy import String, Integer, BigInteger, Boolean, Numeric, DateTime, Date, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from shards.db.database import Base
from shards.domain.values import utcnow


class VaultPositionRow(Base):
    """Daily snapshot of a wallet's vault balance. Written by the vault sync."""

    __tablename__ = 'vault_positions'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    wallet_address: Mapped[str] = mapped_column(String(42))
    vault_address: Mapped[str] = mapped_column(String(42))
    asset_symbol: Mapped[str] = mapped_column(String(20))
    chain: Mapped[str] = mapped_column(String(20))
    season_id: Mapped[int] = mapped_column(Integer)

    balance: Mapped[Decimal] = mapped_column(Numeric(38, 18), default=0)
    usd_value: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)

    snapshot_date: Mapped[date] = mapped_column(Date)
    block_number: Mapped[int] = mapped_column(BigInteger, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        Index('ix_vault_positions_wallet_season', 'wallet_address', 'season_id'),
    )


class DeveloperContributionRow(Base):
    """Developer action; verified/distributed by the contribution workflow."""

    __tablename__ = 'developer_contributions'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    wallet_address: Mapped[str] = mapped_column(String(42))
    season_id: Mapped[int] = mapped_column(Integer)
    action_type: Mapped[str] = mapped_column(String(30))
    action_details: Mapped[dict] = mapped_column(JSON, default=dict)
    shards_earned: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)

    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    verified_by: Mapped[str | None] = mapped_column(String(100), default=None)
    distributed_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index('ix_developer_contributions_wallet_created', 'wallet_address', 'created_at'),
    )
