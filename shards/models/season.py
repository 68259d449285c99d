from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from shards.db.database import Base
from shards.domain.values import utcnow


class SeasonRow(Base):
    """Program season with its rate configuration."""

    __tablename__ = 'seasons'

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    chain: Mapped[str] = mapped_column(String(20))
    start_date: Mapped[datetime] = mapped_column(DateTime)
    end_date: Mapped[datetime | None] = mapped_column(DateTime, default=None)

    # upcoming | active | completed
    status: Mapped[str] = mapped_column(String(10), default='upcoming')

    # vault_rates, social_conversion_rate, vault_locked, withdrawal_enabled, redeem_period_days
    config: Mapped[dict] = mapped_column(JSON, default=dict)

    total_participants: Mapped[int] = mapped_column(Integer, default=0)
    total_shards_issued: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index('ix_seasons_status', 'status'),
    )
