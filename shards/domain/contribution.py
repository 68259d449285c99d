"""Inputs owned by external workflows: vault positions and developer contributions."""
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from shards.domain.errors import NegativeShardAmount, ShardsError
from shards.domain.values import normalize_address, to_day, to_decimal, utcnow


@dataclass(frozen=True)
class VaultPosition:
    """A wallet's staked balance in one vault, valued in USD."""
    wallet_address: str
    vault_address: str
    asset_symbol: str
    chain: str
    balance: Decimal
    usd_value: Decimal
    snapshot_date: date
    season_id: int | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    block_number: int = 0

    @classmethod
    def create(
        cls,
        wallet_address: str,
        vault_address: str,
        asset_symbol: str,
        chain: str,
        balance,
        usd_value,
        snapshot_date: date | datetime,
        block_number: int = 0,
        season_id: int | None = None,
    ) -> 'VaultPosition':
        return cls(
            wallet_address=normalize_address(wallet_address),
            vault_address=normalize_address(vault_address),
            asset_symbol=asset_symbol,
            chain=chain,
            balance=to_decimal(balance),
            usd_value=to_decimal(usd_value),
            snapshot_date=to_day(snapshot_date),
            block_number=block_number,
            season_id=season_id,
        )


class DeveloperActionType(str, Enum):
    SMART_CONTRACT_DEPLOY = 'SMART_CONTRACT_DEPLOY'
    VERIFIED_CONTRACT = 'VERIFIED_CONTRACT'
    GITHUB_CONTRIBUTION = 'GITHUB_CONTRIBUTION'
    BUG_REPORT = 'BUG_REPORT'
    DOCUMENTATION = 'DOCUMENTATION'
    TOOL_DEVELOPMENT = 'TOOL_DEVELOPMENT'
    COMMUNITY_SUPPORT = 'COMMUNITY_SUPPORT'
    DEPLOY_CONTRACT = 'DEPLOY_CONTRACT'
    DEPLOY_DAPP = 'DEPLOY_DAPP'
    CONTRIBUTE_CODE = 'CONTRIBUTE_CODE'
    FIX_BUG = 'FIX_BUG'
    COMPLETE_BOUNTY = 'COMPLETE_BOUNTY'
    CREATE_DOCUMENTATION = 'CREATE_DOCUMENTATION'
    OTHER = 'OTHER'


@dataclass(frozen=True)
class DeveloperContribution:
    """A developer action; only verified and distributed ones count toward shards."""
    id: str
    wallet_address: str
    season_id: int
    action_type: DeveloperActionType
    shards_earned: Decimal
    verified: bool = False
    verified_at: datetime | None = None
    verified_by: str | None = None
    distributed_at: datetime | None = None
    action_details: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        wallet_address: str,
        season_id: int,
        action_type: DeveloperActionType | str,
        shards_earned,
        action_details: dict | None = None,
    ) -> 'DeveloperContribution':
        shards_earned = to_decimal(shards_earned)
        if shards_earned < 0:
            raise NegativeShardAmount('Shards earned cannot be negative')
        return cls(
            id=str(uuid.uuid4()),
            wallet_address=normalize_address(wallet_address),
            season_id=season_id,
            action_type=DeveloperActionType(action_type),
            shards_earned=shards_earned,
            action_details=dict(action_details or {}),
        )

    def verify(self, verified_by: str) -> 'DeveloperContribution':
        if self.verified:
            raise ShardsError('Contribution is already verified')
        now = utcnow()
        return replace(self, verified=True, verified_at=now, verified_by=verified_by, updated_at=now)

    def mark_distributed(self) -> 'DeveloperContribution':
        if not self.verified:
            raise ShardsError('Contribution must be verified before distribution')
        now = utcnow()
        return replace(self, distributed_at=now, updated_at=now)

    def counts_toward_shards(self) -> bool:
        return self.verified and self.distributed_at is not None
