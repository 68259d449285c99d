from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shards.db.database import Base
from shards.domain.values import utcnow


class ReferralRow(Base):
    """Referrer → referee relationship for one season."""

    __tablename__ = 'referrals'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    referrer_address: Mapped[str] = mapped_column(String(42))
    referee_address: Mapped[str] = mapped_column(String(42))
    season_id: Mapped[int] = mapped_column(Integer)

    # pending | active | expired
    status: Mapped[str] = mapped_column(String(10), default='pending')
    activation_date: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    referee_multiplier_expires: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    total_shards_earned: Mapped[Decimal] = mapped_column(Numeric(20, 2), default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint(
            'referrer_address', 'referee_address', 'season_id',
            name='uq_referrals_pair_season',
        ),
        Index('ix_referrals_referrer_season', 'referrer_address', 'season_id'),
        Index('ix_referrals_referee_season', 'referee_address', 'season_id'),
    )
