from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from shards.domain.errors import InvalidSeasonTransition
from shards.domain.values import to_decimal, utcnow

# Shards per $1000 per day when an asset has no configured rate
DEFAULT_VAULT_RATE = Decimal('100')

# 100 YAP points = 1 shard
DEFAULT_SOCIAL_CONVERSION_RATE = Decimal('100')

SEASON_1_VAULT_RATES = {
    'ILV': 80,
    'ILV/ETH': 150,
    'ETH': 150,
    'BTC': 150,
    'USDT': 100,
    'USDC': 100,
    'DAI': 100,
}


class SeasonStatus(str, Enum):
    UPCOMING = 'upcoming'
    ACTIVE = 'active'
    COMPLETED = 'completed'


@dataclass(frozen=True)
class SeasonConfig:
    """Per-season rate table and vault flags."""
    vault_rates: dict[str, Decimal] = field(default_factory=dict)
    social_conversion_rate: Decimal = DEFAULT_SOCIAL_CONVERSION_RATE
    vault_locked: bool = True
    withdrawal_enabled: bool = False
    redeem_period_days: int | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> 'SeasonConfig':
        data = data or {}
        return cls(
            vault_rates={
                asset: to_decimal(rate)
                for asset, rate in (data.get('vault_rates') or {}).items()
            },
            social_conversion_rate=to_decimal(
                data.get('social_conversion_rate') or DEFAULT_SOCIAL_CONVERSION_RATE
            ),
            vault_locked=data.get('vault_locked', True),
            withdrawal_enabled=data.get('withdrawal_enabled', False),
            redeem_period_days=data.get('redeem_period_days'),
        )

    def to_dict(self) -> dict:
        return {
            'vault_rates': {asset: str(rate) for asset, rate in self.vault_rates.items()},
            'social_conversion_rate': str(self.social_conversion_rate),
            'vault_locked': self.vault_locked,
            'withdrawal_enabled': self.withdrawal_enabled,
            'redeem_period_days': self.redeem_period_days,
        }


@dataclass(frozen=True)
class Season:
    """A bounded program epoch. Transitions return new instances."""
    id: int | None
    name: str
    chain: str
    start_date: datetime
    end_date: datetime | None
    status: SeasonStatus
    config: SeasonConfig
    total_participants: int = 0
    total_shards_issued: Decimal = Decimal('0')
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        name: str,
        chain: str,
        start_date: datetime,
        config: SeasonConfig,
        id: int | None = None,
    ) -> 'Season':
        return cls(
            id=id,
            name=name,
            chain=chain,
            start_date=start_date,
            end_date=None,
            status=SeasonStatus.UPCOMING,
            config=config,
        )

    def is_active(self) -> bool:
        return self.status == SeasonStatus.ACTIVE

    def is_completed(self) -> bool:
        return self.status == SeasonStatus.COMPLETED

    def is_upcoming(self) -> bool:
        return self.status == SeasonStatus.UPCOMING

    def activate(self) -> 'Season':
        if self.status != SeasonStatus.UPCOMING:
            raise InvalidSeasonTransition(
                f'Only upcoming seasons can be activated (season {self.id} is {self.status.value})'
            )
        return replace(self, status=SeasonStatus.ACTIVE, updated_at=utcnow())

    def complete(self, end_date: datetime | None = None) -> 'Season':
        if self.status != SeasonStatus.ACTIVE:
            raise InvalidSeasonTransition(
                f'Only active seasons can be completed (season {self.id} is {self.status.value})'
            )
        return replace(
            self,
            status=SeasonStatus.COMPLETED,
            end_date=end_date or self.end_date or utcnow(),
            updated_at=utcnow(),
        )

    def update_stats(self, participants: int, shards_issued) -> 'Season':
        return replace(
            self,
            total_participants=participants,
            total_shards_issued=to_decimal(shards_issued),
            updated_at=utcnow(),
        )

    def update(
        self,
        name: str | None = None,
        end_date: datetime | None = None,
        status: SeasonStatus | None = None,
        config: SeasonConfig | None = None,
    ) -> 'Season':
        """Generic field update; unset arguments keep the current value."""
        return replace(
            self,
            name=name if name is not None else self.name,
            end_date=end_date if end_date is not None else self.end_date,
            status=status if status is not None else self.status,
            config=config if config is not None else self.config,
            updated_at=utcnow(),
        )
