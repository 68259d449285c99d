"""Referral management: creation rules, activation, bonus expiry, stats.

  - a wallet cannot refer itself
  - a referee has at most one referral per season
  - a referrer makes at most 10 referrals per season
  - a wallet that already earns shards cannot be referred
  - activation needs the referee at ≥ 100 total shards
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from shards.domain.errors import (
    RefereeAlreadyEarning,
    RefereeAlreadyReferred,
    ReferralAlreadyActivated,
    ReferralError,
    ReferralLimitReached,
    ReferralNotFound,
    ReferralThresholdNotMet,
    SelfReferral,
)
from shards.domain.referral import (
    ACTIVATION_THRESHOLD, MAX_REFERRALS_PER_SEASON, Referral, ReferralStatus,
)
from shards.domain.values import ZERO, normalize_address, utcnow
from shards.repositories import ReferralRepository, ShardBalanceRepository

logger = logging.getLogger(__name__)

WALLET_ADDRESS_RE = re.compile(r'^0x[a-f0-9]{40}$')


@dataclass
class ReferralInfo:
    referrals_made: int
    total_referral_shards: Decimal
    referred_by: str | None = None
    referee_bonus_active: bool = False
    referee_bonus_expires: datetime | None = None


@dataclass
class ReferralDetail:
    referee_address: str
    status: str
    activation_date: datetime | None
    shards_contributed: Decimal
    is_within_bonus_period: bool
    referee_balance: Decimal | None


@dataclass
class ReferralStats:
    total_referrals: int = 0
    active_referrals: int = 0
    total_shards_earned: Decimal = ZERO
    referrals: list[ReferralDetail] = field(default_factory=list)


@dataclass
class ReferralCodeCheck:
    is_valid: bool
    reason: str | None = None
    referrer_address: str | None = None


class ReferralService:

    def __init__(self, referral_repo, balance_repo):
        self.referral_repo = referral_repo
        self.balance_repo = balance_repo

    @classmethod
    def for_session(cls, db: AsyncSession) -> 'ReferralService':
        return cls(ReferralRepository(db), ShardBalanceRepository(db))

    async def create_referral(
        self, referrer_address: str, referee_address: str, season_id: int,
    ) -> Referral:
        referrer = normalize_address(referrer_address)
        referee = normalize_address(referee_address)
        if referrer == referee:
            raise SelfReferral('Cannot refer yourself')

        if await self.referral_repo.find_by_referee_and_season(referee, season_id):
            raise RefereeAlreadyReferred('Referee already has a referral for this season')

        count = await self.referral_repo.count_by_referrer_and_season(referrer, season_id)
        if count >= MAX_REFERRALS_PER_SEASON:
            raise ReferralLimitReached(
                f'Referrer has reached the maximum referral limit of {MAX_REFERRALS_PER_SEASON}'
            )

        balance = await self.balance_repo.find_by_wallet_and_season(referee, season_id)
        if balance and balance.total_shards > 0:
            raise RefereeAlreadyEarning('Referee already has shard earnings and cannot be referred')

        referral = await self.referral_repo.create(Referral.create(referrer, referee, season_id))
        logger.info(f'Created referral {referral.id}: {referrer} → {referee} (season {season_id})')
        return referral

    async def activate_referral(self, referral_id: str, now: datetime | None = None) -> Referral:
        referral = await self.referral_repo.find_by_id(referral_id)
        if not referral:
            raise ReferralNotFound(f'Referral {referral_id} not found')
        if not referral.is_pending():
            raise ReferralAlreadyActivated(f'Referral is already {referral.status.value}')

        balance = await self.balance_repo.find_by_wallet_and_season(
            referral.referee_address, referral.season_id,
        )
        if not balance:
            raise ReferralThresholdNotMet(
                f'Referee needs at least {ACTIVATION_THRESHOLD} shards to activate referral'
            )

        activated = await self.referral_repo.update(referral.activate(balance.total_shards, now))
        logger.info(f'Activated referral {referral_id} for referee {referral.referee_address}')
        return activated

    async def activate_pending(self, season_id: int) -> int:
        """Activate every pending referral whose referee crossed the threshold."""
        pending = await self.referral_repo.find_by_status(season_id, ReferralStatus.PENDING)
        activated = 0
        for referral in pending:
            try:
                await self.activate_referral(referral.id)
                activated += 1
            except ReferralError as e:
                logger.info(f'Referral {referral.id} not activated: {e}')

        if activated:
            logger.info(f'Activated {activated} pending referrals in season {season_id}')
        return activated

    async def expire_outdated_bonuses(self, season_id: int, now: datetime | None = None) -> int:
        now = now or utcnow()
        active = await self.referral_repo.find_by_status(season_id, ReferralStatus.ACTIVE)
        expired = 0
        for referral in active:
            if referral.is_within_bonus_period(now):
                continue
            await self.referral_repo.update(referral.expire())
            expired += 1
            logger.info(f'Expired referral bonus for referee {referral.referee_address}')
        return expired

    async def get_referral_info(
        self, wallet_address: str, season_id: int, now: datetime | None = None,
    ) -> ReferralInfo:
        wallet = normalize_address(wallet_address)
        info = ReferralInfo(
            referrals_made=await self.referral_repo.count_by_referrer_and_season(wallet, season_id),
            total_referral_shards=await self.referral_repo.get_total_shards_by_referrer(
                wallet, season_id,
            ),
        )

        referred_by = await self.referral_repo.find_by_referee_and_season(wallet, season_id)
        if referred_by:
            info.referred_by = referred_by.referrer_address
            if referred_by.is_active():
                info.referee_bonus_active = referred_by.is_within_bonus_period(now)
                info.referee_bonus_expires = referred_by.referee_multiplier_expires
        return info

    async def get_referral_stats(
        self, wallet_address: str, season_id: int, now: datetime | None = None,
    ) -> ReferralStats:
        wallet = normalize_address(wallet_address)
        referrals = await self.referral_repo.find_by_referrer_and_season(wallet, season_id)

        details = []
        for referral in referrals:
            balance = await self.balance_repo.find_by_wallet_and_season(
                referral.referee_address, season_id,
            )
            details.append(ReferralDetail(
                referee_address=referral.referee_address,
                status=referral.status.value,
                activation_date=referral.activation_date,
                shards_contributed=referral.total_shards_earned,
                is_within_bonus_period=referral.is_within_bonus_period(now),
                referee_balance=balance.total_shards if balance else None,
            ))

        return ReferralStats(
            total_referrals=len(referrals),
            active_referrals=sum(1 for r in referrals if r.is_active()),
            total_shards_earned=await self.referral_repo.get_total_shards_by_referrer(
                wallet, season_id,
            ),
            referrals=details,
        )

    async def validate_referral_code(self, referral_code: str, season_id: int) -> ReferralCodeCheck:
        """A referral code is the referrer's wallet address."""
        referrer = normalize_address(referral_code)
        if not WALLET_ADDRESS_RE.match(referrer):
            return ReferralCodeCheck(False, 'Invalid wallet address format')

        count = await self.referral_repo.count_by_referrer_and_season(referrer, season_id)
        if count >= MAX_REFERRALS_PER_SEASON:
            return ReferralCodeCheck(False, 'Referrer has reached maximum referral limit')

        balance = await self.balance_repo.find_by_wallet_and_season(referrer, season_id)
        if not balance or balance.total_shards == 0:
            return ReferralCodeCheck(False, 'Referrer must be an active participant with shard balance')

        return ReferralCodeCheck(True, referrer_address=referrer)
