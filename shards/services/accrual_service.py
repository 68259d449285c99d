"""Daily accrual for one (wallet, season, day).

  1. season must exist and be active
  2. an existing ledger row for the key is returned as-is (no writes)
  3. staking shards per vault position
  4. social shards from the social source
  5. developer shards from verified + distributed contributions of the day
  6. referee multiplier from the wallet's own active referral
  7. referrer bonus from referees already processed for the same day
  8. totals, fraud verdict, immutable ledger row
  9. additive balance upsert
 10. referral earnings bookkeeping

Everything runs on the caller's session, so a failure before commit leaves
no partial ledger state.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from shards.config import Settings, settings as default_settings
from shards.domain.errors import SeasonNotActive
from shards.domain.shard import ShardBalance, ShardCategory, ShardEarningHistory, VaultBreakdown
from shards.domain.values import ZERO, normalize_address, to_day, to_decimal, utcnow
from shards.repositories import (
    DeveloperContributionRepository,
    ReferralRepository,
    SeasonRepository,
    ShardBalanceRepository,
    ShardEarningHistoryRepository,
    VaultPositionRepository,
)
from shards.services.anti_fraud import AntiFraudService, FraudCheckResult
from shards.services.season_context import SeasonContext
from shards.services.shard_calculator import (
    ONE,
    DailyTotals,
    referral_bonus,
    round_shards,
    staking_shards,
    total_daily,
    validate_shard_amount,
)
from shards.services.social_service import NullSocialShardSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyShardResult:
    wallet_address: str
    season_id: int
    date: date
    staking_shards: Decimal
    social_shards: Decimal
    developer_shards: Decimal
    referral_shards: Decimal
    vault_breakdown: tuple[VaultBreakdown, ...] = ()
    referee_multiplier: Decimal = ONE
    fraud_check: FraudCheckResult | None = None
    replayed: bool = False

    @property
    def total_shards(self) -> Decimal:
        return (
            self.staking_shards + self.social_shards
            + self.developer_shards + self.referral_shards
        )

    @classmethod
    def from_history(cls, history: ShardEarningHistory) -> 'DailyShardResult':
        """Map a stored ledger row back to the result shape, unchanged."""
        metadata = history.metadata or {}
        return cls(
            wallet_address=history.wallet_address,
            season_id=history.season_id,
            date=history.date,
            staking_shards=history.staking_shards,
            social_shards=history.social_shards,
            developer_shards=history.developer_shards,
            referral_shards=history.referral_shards,
            vault_breakdown=history.vault_breakdown,
            referee_multiplier=to_decimal(metadata.get('referee_multiplier', ONE)),
            fraud_check=FraudCheckResult.from_dict(metadata.get('fraud_check')),
            replayed=True,
        )


class DailyAccrualService:
    """Computes and records one wallet's shards for one day."""

    def __init__(
        self,
        season_repo,
        balance_repo,
        history_repo,
        vault_repo,
        referral_repo,
        contribution_repo,
        anti_fraud: AntiFraudService,
        social_source=None,
    ):
        self.season_repo = season_repo
        self.balance_repo = balance_repo
        self.history_repo = history_repo
        self.vault_repo = vault_repo
        self.referral_repo = referral_repo
        self.contribution_repo = contribution_repo
        self.anti_fraud = anti_fraud
        self.social_source = social_source or NullSocialShardSource()

    @classmethod
    def for_session(
        cls, db: AsyncSession, settings: Settings = default_settings, social_source=None,
    ) -> 'DailyAccrualService':
        """Wire the service to SQLAlchemy repositories sharing one session."""
        history_repo = ShardEarningHistoryRepository(db)
        return cls(
            season_repo=SeasonRepository(db),
            balance_repo=ShardBalanceRepository(db),
            history_repo=history_repo,
            vault_repo=VaultPositionRepository(db),
            referral_repo=ReferralRepository(db),
            contribution_repo=DeveloperContributionRepository(db),
            anti_fraud=AntiFraudService(history_repo, settings),
            social_source=social_source,
        )

    async def calculate(
        self,
        wallet_address: str,
        season_id: int,
        day: date | datetime,
        now: datetime | None = None,
    ) -> DailyShardResult:
        wallet = normalize_address(wallet_address)
        day = to_day(day)

        season = await self.season_repo.find_by_id(season_id)
        if not season or not season.is_active():
            raise SeasonNotActive(season_id)

        existing = await self.history_repo.find_by_wallet_and_date(wallet, day, season_id)
        if existing:
            logger.warning(f'Daily shards already calculated for wallet {wallet} on {day}')
            return DailyShardResult.from_history(existing)

        context = SeasonContext(season)

        # Staking
        staking = ZERO
        breakdown = []
        for position in await self.vault_repo.find_by_wallet_and_season(wallet, season_id):
            earned = staking_shards(position.usd_value, context.get_rate(position.asset_symbol))
            staking += earned
            breakdown.append(VaultBreakdown(
                vault_id=position.vault_address,
                asset=position.asset_symbol,
                chain=position.chain,
                shards_earned=round_shards(earned),
                usd_value=position.usd_value,
                balance=position.balance,
            ))

        social = to_decimal(await self.social_source.compute_social_shards(wallet, day))

        # Developer
        contributions = await self.contribution_repo.find_by_wallet_and_date(wallet, day)
        developer = sum(
            (c.shards_earned for c in contributions if c.counts_toward_shards()), ZERO,
        )

        # Referee side: multiplier from this wallet's own referral
        referral = await self.referral_repo.find_by_referee_and_season(wallet, season_id)
        multiplier = ONE
        if referral and referral.is_active():
            multiplier = referral_bonus(staking + social + developer, referral, now).referee_multiplier

        # Referrer side: only referees whose day is already on the ledger count
        bonus = ZERO
        for ref in await self.referral_repo.find_active_by_referrer(wallet, season_id):
            referee_day = await self.history_repo.find_by_wallet_and_date(
                ref.referee_address, day, season_id,
            )
            if referee_day:
                bonus += referral_bonus(referee_day.daily_total, ref, now).referrer_bonus

        totals = total_daily(
            staking=staking,
            social=social,
            developer=developer,
            referral_bonus=bonus,
            referee_multiplier=multiplier,
        ).rounded()

        limits_exceeded = self._check_limits(wallet, totals)

        fraud_check = await self.anti_fraud.check_wallet(wallet, totals.total_shards, season_id)
        if fraud_check.is_suspicious:
            logger.warning(
                f'Suspicious activity detected for wallet {wallet}: '
                f'{", ".join(fraud_check.reasons)}'
            )

        metadata = {
            'referee_multiplier': str(multiplier),
            'fraud_check': fraud_check.to_dict(),
            'calculated_at': utcnow().isoformat(),
        }
        if limits_exceeded:
            metadata['limits_exceeded'] = limits_exceeded

        history = ShardEarningHistory.create(
            wallet,
            season_id,
            day,
            staking_shards=totals.staking_shards,
            social_shards=totals.social_shards,
            developer_shards=totals.developer_shards,
            referral_shards=totals.referral_shards,
            vault_breakdown=breakdown,
            metadata=metadata,
        )
        await self.history_repo.create(history)

        await self._apply_to_balance(wallet, season_id, totals)

        if referral and referral.is_active() and totals.referral_shards > 0:
            await self.referral_repo.update(referral.add_earned_shards(totals.referral_shards))

        logger.info(
            f'Accrued {totals.total_shards} shards for {wallet} on {day} '
            f'(staking={totals.staking_shards}, social={totals.social_shards}, '
            f'developer={totals.developer_shards}, referral={totals.referral_shards})'
        )

        return DailyShardResult(
            wallet_address=wallet,
            season_id=season_id,
            date=day,
            staking_shards=totals.staking_shards,
            social_shards=totals.social_shards,
            developer_shards=totals.developer_shards,
            referral_shards=totals.referral_shards,
            vault_breakdown=tuple(breakdown),
            referee_multiplier=multiplier,
            fraud_check=fraud_check,
        )

    async def _apply_to_balance(self, wallet: str, season_id: int, totals: DailyTotals):
        balance = await self.balance_repo.find_by_wallet_and_season(wallet, season_id)
        if not balance:
            await self.balance_repo.create(ShardBalance.create(
                wallet,
                season_id,
                staking_shards=totals.staking_shards,
                social_shards=totals.social_shards,
                developer_shards=totals.developer_shards,
                referral_shards=totals.referral_shards,
            ))
            return

        for category, amount in _by_category(totals):
            # Zero deltas are skipped
            if amount > 0:
                balance = balance.add_shards(category, amount)
        await self.balance_repo.update(balance)

    def _check_limits(self, wallet: str, totals: DailyTotals) -> list[str]:
        exceeded = [
            category.value for category, amount in _by_category(totals)
            if not validate_shard_amount(amount, category.value)
        ]
        if exceeded:
            logger.warning(
                f'Wallet {wallet} exceeded daily ceilings for: {", ".join(exceeded)}'
            )
        return exceeded


def _by_category(totals: DailyTotals) -> list[tuple[ShardCategory, Decimal]]:
    return [
        (ShardCategory.STAKING, totals.staking_shards),
        (ShardCategory.SOCIAL, totals.social_shards),
        (ShardCategory.DEVELOPER, totals.developer_shards),
        (ShardCategory.REFERRAL, totals.referral_shards),
    ]
