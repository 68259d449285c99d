"""Advisory fraud scoring for a wallet's daily accrual.

Scores are additive and capped at 100. A verdict never blocks accrual:
  - few on-chain transactions             +20
  - first-time earner above 5000 shards   +25 (score only, not escalated)
  - today / 30-day avg > fraud threshold  +min(40, variance × 4), suspicious
  - today / 30-day avg > max variance     +15
  - today above 50000 shards              +30
Suspicious when the total reaches 50.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from shards.config import Settings, settings as default_settings
from shards.domain.values import ZERO, normalize_address, round_half_up, to_decimal

SUSPICIOUS_SCORE = 50
MAX_SCORE = 100
AVERAGE_WINDOW_DAYS = 30

FIRST_EARNER_LIMIT = Decimal('5000')
EXTREME_DAILY_LIMIT = Decimal('50000')

# Wallet clustering: too few counterparties across many interactions
MIN_UNIQUE_COUNTERPARTIES = 5
MIN_CLUSTER_INTERACTIONS = 50
CLUSTER_SCORE = 30

# Risk tiers
HIGH_RISK_SCORE = 70
MEDIUM_RISK_SCORE = 40


class RiskTier(str, Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'


@dataclass
class FraudCheckResult:
    is_suspicious: bool = False
    score: Decimal = ZERO
    reasons: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'is_suspicious': self.is_suspicious,
            'score': str(self.score),
            'reasons': list(self.reasons),
            'recommendations': list(self.recommendations),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> 'FraudCheckResult | None':
        if not data:
            return None
        return cls(
            is_suspicious=bool(data.get('is_suspicious')),
            score=to_decimal(data.get('score')),
            reasons=list(data.get('reasons') or []),
            recommendations=list(data.get('recommendations') or []),
        )


@dataclass
class PatternCheck:
    """Sub-result of the earning pattern analysis."""
    is_suspicious: bool = False
    score: Decimal = ZERO
    reasons: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class ClusterCheck:
    is_clustered: bool
    cluster_size: int
    score: int


@dataclass
class ReferralAbuseCheck:
    is_abusive: bool = False
    reasons: list[str] = field(default_factory=list)


class AntiFraudService:
    """Scores a wallet's day against its own 30-day history."""

    def __init__(self, history_repo, settings: Settings = default_settings):
        self.history_repo = history_repo
        self.min_transactions = settings.min_wallet_transactions
        self.fraud_threshold = to_decimal(settings.fraud_detection_threshold)
        self.max_daily_variance = to_decimal(settings.max_daily_variance)

    async def check_wallet(
        self,
        wallet_address: str,
        daily_shards,
        season_id: int,
        transaction_count: int | None = None,
    ) -> FraudCheckResult:
        daily_shards = to_decimal(daily_shards)
        result = FraudCheckResult()

        # An idle day is never fraud
        if daily_shards == 0:
            return result

        if transaction_count is not None and transaction_count < self.min_transactions:
            result.score += 20
            result.reasons.append(
                f'Wallet has only {transaction_count} transactions '
                f'(minimum: {self.min_transactions})'
            )
            result.recommendations.append('Verify wallet has genuine on-chain activity')

        pattern = await self.analyze_earning_pattern(wallet_address, season_id, daily_shards)
        result.score += pattern.score
        if pattern.is_suspicious:
            result.reasons.extend(pattern.reasons)
            result.recommendations.extend(pattern.recommendations)

        if daily_shards > EXTREME_DAILY_LIMIT:
            result.score += 30
            result.reasons.append('Extremely high daily shard earnings')
            result.recommendations.append('Manual review required for high-value account')

        result.score = min(round_half_up(result.score), Decimal(MAX_SCORE))
        result.is_suspicious = result.score >= SUSPICIOUS_SCORE
        return result

    async def analyze_earning_pattern(
        self, wallet_address: str, season_id: int, daily_shards: Decimal,
    ) -> PatternCheck:
        result = PatternCheck()
        average = await self.history_repo.get_average_daily_shards(
            wallet_address, season_id, AVERAGE_WINDOW_DAYS,
        )
        average = to_decimal(average)

        if average == 0:
            # New earner; flagged for score but never escalated on its own
            if daily_shards > FIRST_EARNER_LIMIT:
                result.score += 25
                result.reasons.append('First-time earner with unusually high shards')
                result.recommendations.append('Verify source of earnings for new wallet')
            return result

        variance = daily_shards / average
        if variance > self.fraud_threshold:
            result.is_suspicious = True
            result.score += min(Decimal('40'), variance * 4)
            result.reasons.append(
                f'Daily earnings {variance:.1f}x higher than 30-day average '
                f'({average:.2f} shards)'
            )
            result.recommendations.append('Review earning sources for unusual activity')
        elif variance > self.max_daily_variance:
            result.score += 15
            result.reasons.append('High variance in daily earnings')
            result.recommendations.append('Monitor for pattern consistency')
        return result

    def check_wallet_clustering(
        self, wallet_address: str, related_transactions: list[str],
    ) -> ClusterCheck:
        wallet = normalize_address(wallet_address)
        counterparties = {
            normalize_address(addr) for addr in related_transactions
            if normalize_address(addr) != wallet
        }
        cluster_size = len(counterparties)
        if cluster_size < MIN_UNIQUE_COUNTERPARTIES and len(related_transactions) > MIN_CLUSTER_INTERACTIONS:
            return ClusterCheck(is_clustered=True, cluster_size=cluster_size, score=CLUSTER_SCORE)
        return ClusterCheck(is_clustered=False, cluster_size=cluster_size, score=0)

    def check_referral_abuse(
        self, referrer_address: str, referee_addresses: list[str],
    ) -> ReferralAbuseCheck:
        result = ReferralAbuseCheck()
        referees = {normalize_address(addr) for addr in referee_addresses}
        if normalize_address(referrer_address) in referees:
            result.is_abusive = True
            result.reasons.append('Self-referral detected')
        return result

    def calculate_fraud_score(
        self,
        wallet_age_days: int | None = None,
        transaction_count: int | None = None,
        earning_variance=None,
        clustering_score: int | None = None,
        referral_abuse_score: int | None = None,
    ) -> int:
        """Weighted combination of independent signals, capped at 100."""
        score = 0

        # Newer wallets are riskier
        if wallet_age_days is not None:
            if wallet_age_days < 7:
                score += 20
            elif wallet_age_days < 30:
                score += 10

        if transaction_count is not None:
            if transaction_count < 10:
                score += 25
            elif transaction_count < self.min_transactions:
                score += 15

        if earning_variance is not None:
            variance = to_decimal(earning_variance)
            if variance > self.fraud_threshold:
                score += 30
            elif variance > self.max_daily_variance:
                score += 15

        if clustering_score is not None:
            score += clustering_score
        if referral_abuse_score is not None:
            score += referral_abuse_score

        return min(MAX_SCORE, score)


def is_high_risk(score) -> bool:
    return score >= HIGH_RISK_SCORE


def is_medium_risk(score) -> bool:
    return MEDIUM_RISK_SCORE <= score < HIGH_RISK_SCORE


def is_low_risk(score) -> bool:
    return score < MEDIUM_RISK_SCORE


def risk_tier(score) -> RiskTier:
    if is_high_risk(score):
        return RiskTier.HIGH
    if is_medium_risk(score):
        return RiskTier.MEDIUM
    return RiskTier.LOW
