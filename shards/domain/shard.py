"""Ledger records: the cumulative ShardBalance and the daily ShardEarningHistory.

Both are immutable. ``total_shards`` and ``daily_total`` are derived from the
four category fields, so they always equal the category sum.
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from shards.domain.errors import NegativeShardAmount
from shards.domain.values import ZERO, normalize_address, to_day, to_decimal, utcnow


class ShardCategory(str, Enum):
    STAKING = 'staking'
    SOCIAL = 'social'
    DEVELOPER = 'developer'
    REFERRAL = 'referral'


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ShardBalance:
    """Cumulative shards for one (wallet, season)."""
    id: str
    wallet_address: str
    season_id: int
    staking_shards: Decimal = ZERO
    social_shards: Decimal = ZERO
    developer_shards: Decimal = ZERO
    referral_shards: Decimal = ZERO
    last_calculated_at: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def total_shards(self) -> Decimal:
        return (
            self.staking_shards + self.social_shards
            + self.developer_shards + self.referral_shards
        )

    @classmethod
    def create(
        cls,
        wallet_address: str,
        season_id: int,
        staking_shards=0,
        social_shards=0,
        developer_shards=0,
        referral_shards=0,
    ) -> 'ShardBalance':
        return cls(
            id=_new_id(),
            wallet_address=normalize_address(wallet_address),
            season_id=season_id,
            staking_shards=to_decimal(staking_shards),
            social_shards=to_decimal(social_shards),
            developer_shards=to_decimal(developer_shards),
            referral_shards=to_decimal(referral_shards),
        )

    def add_shards(self, category: ShardCategory | str, amount) -> 'ShardBalance':
        """Return a new balance with ``amount`` added to one category."""
        category = ShardCategory(category)
        amount = to_decimal(amount)
        if amount < 0:
            raise NegativeShardAmount(
                f'Cannot add negative {category.value} shards: {amount}'
            )
        column = f'{category.value}_shards'
        now = utcnow()
        return replace(
            self,
            **{column: getattr(self, column) + amount},
            last_calculated_at=now,
            updated_at=now,
        )

    def recalculate_total(self) -> 'ShardBalance':
        # total is derived; this only refreshes the calculation timestamp
        now = utcnow()
        return replace(self, last_calculated_at=now, updated_at=now)


@dataclass(frozen=True)
class VaultBreakdown:
    """One vault's contribution to a day's staking shards."""
    vault_id: str
    asset: str
    chain: str
    shards_earned: Decimal
    usd_value: Decimal
    balance: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: dict) -> 'VaultBreakdown':
        return cls(
            vault_id=data['vault_id'],
            asset=data['asset'],
            chain=data['chain'],
            shards_earned=to_decimal(data.get('shards_earned')),
            usd_value=to_decimal(data.get('usd_value')),
            balance=to_decimal(data.get('balance')),
        )

    def to_dict(self) -> dict:
        return {
            'vault_id': self.vault_id,
            'asset': self.asset,
            'chain': self.chain,
            'shards_earned': str(self.shards_earned),
            'usd_value': str(self.usd_value),
            'balance': str(self.balance),
        }


@dataclass(frozen=True)
class ShardEarningHistory:
    """Immutable daily ledger entry for one (wallet, season, UTC day)."""
    id: str
    wallet_address: str
    season_id: int
    date: date
    staking_shards: Decimal = ZERO
    social_shards: Decimal = ZERO
    developer_shards: Decimal = ZERO
    referral_shards: Decimal = ZERO
    vault_breakdown: tuple[VaultBreakdown, ...] = ()
    metadata: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def daily_total(self) -> Decimal:
        return (
            self.staking_shards + self.social_shards
            + self.developer_shards + self.referral_shards
        )

    @classmethod
    def create(
        cls,
        wallet_address: str,
        season_id: int,
        day: date | datetime,
        staking_shards=0,
        social_shards=0,
        developer_shards=0,
        referral_shards=0,
        vault_breakdown=(),
        metadata: dict | None = None,
    ) -> 'ShardEarningHistory':
        return cls(
            id=_new_id(),
            wallet_address=normalize_address(wallet_address),
            season_id=season_id,
            date=to_day(day),
            staking_shards=to_decimal(staking_shards),
            social_shards=to_decimal(social_shards),
            developer_shards=to_decimal(developer_shards),
            referral_shards=to_decimal(referral_shards),
            vault_breakdown=tuple(vault_breakdown),
            metadata=dict(metadata or {}),
        )

    def has_earnings(self) -> bool:
        return self.daily_total > 0

    def category_breakdown(self) -> dict[str, Decimal]:
        return {
            ShardCategory.STAKING.value: self.staking_shards,
            ShardCategory.SOCIAL.value: self.social_shards,
            ShardCategory.DEVELOPER.value: self.developer_shards,
            ShardCategory.REFERRAL.value: self.referral_shards,
        }

    def vault_breakdown_for(self, asset: str) -> VaultBreakdown | None:
        for vault in self.vault_breakdown:
            if vault.asset == asset:
                return vault
        return None

    def total_vault_shards(self) -> Decimal:
        return sum((v.shards_earned for v in self.vault_breakdown), ZERO)

    def total_usd_value(self) -> Decimal:
        return sum((v.usd_value for v in self.vault_breakdown), ZERO)
