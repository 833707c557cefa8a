"""Exception types raised by the analytics engine and service layer."""


class AnalyticsError(Exception):
    """Base class for errors surfaced to API callers."""


class ValidationError(AnalyticsError, ValueError):
    """Malformed or out-of-policy input. Never retried."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class MissingPriceDataError(AnalyticsError):
    """A computation cannot proceed because a required price is absent."""

    def __init__(self, symbol: str, message: str):
        super().__init__(message)
        self.symbol = symbol


class PortfolioNotFoundError(AnalyticsError):
    def __init__(self, portfolio_id: str):
        super().__init__(f"Portfolio {portfolio_id} not found")
        self.portfolio_id = portfolio_id


class PresetNotFoundError(AnalyticsError):
    def __init__(self, preset_id: str):
        super().__init__(f"Unknown preset: {preset_id}")
        self.preset_id = preset_id
