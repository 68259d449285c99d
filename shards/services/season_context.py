from decimal import Decimal

from shards.domain.season import DEFAULT_SOCIAL_CONVERSION_RATE, DEFAULT_VAULT_RATE, Season


class SeasonContext:
    """Read-only view over a season's rate table."""

    def __init__(self, season: Season):
        self.season = season
        self._rates = {
            asset.upper(): rate for asset, rate in season.config.vault_rates.items()
        }

    def get_rate(self, asset: str) -> Decimal:
        """Shards per $1000 per day; unknown (or zero-rated) assets use the default."""
        return self._rates.get(asset.upper()) or DEFAULT_VAULT_RATE

    def get_social_conversion_rate(self) -> Decimal:
        return self.season.config.social_conversion_rate or DEFAULT_SOCIAL_CONVERSION_RATE

    def is_active(self) -> bool:
        return self.season.is_active()
