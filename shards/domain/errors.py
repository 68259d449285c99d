class ShardsError(Exception):
    """Base class for shard program rule violations."""
    pass


# ── Seasons ───────────────────────────────────────────────────────────────────

class SeasonNotFound(ShardsError):
    pass


class SeasonNotActive(ShardsError):
    """Raised when accrual is attempted against a missing or non-active season."""

    def __init__(self, season_id: int | None):
        self.season_id = season_id
        super().__init__(f'Season {season_id} is not active')


class InvalidSeasonTransition(ShardsError):
    pass


class InvalidSeasonDates(ShardsError):
    pass


# ── Referrals ─────────────────────────────────────────────────────────────────

class ReferralError(ShardsError):
    """Raised for referral business logic errors."""
    pass


class SelfReferral(ReferralError):
    pass


class ReferralAlreadyActivated(ReferralError):
    pass


class ReferralThresholdNotMet(ReferralError):
    pass


class ReferralNotFound(ReferralError):
    pass


class ReferralLimitReached(ReferralError):
    pass


class RefereeAlreadyReferred(ReferralError):
    pass


class RefereeAlreadyEarning(ReferralError):
    pass


# ── Amounts ───────────────────────────────────────────────────────────────────

class NegativeShardAmount(ShardsError, ValueError):
    pass
