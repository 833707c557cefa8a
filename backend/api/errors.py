"""Translate engine and service errors into HTTP responses."""

from fastapi import HTTPException

from core.errors import (
    AnalyticsError,
    MissingPriceDataError,
    PortfolioNotFoundError,
    PresetNotFoundError,
)


def http_error(e: AnalyticsError) -> HTTPException:
    if isinstance(e, (PortfolioNotFoundError, PresetNotFoundError)):
        return HTTPException(404, str(e))
    if isinstance(e, MissingPriceDataError):
        return HTTPException(422, str(e))
    return HTTPException(400, str(e))
