"""Exceptions raised by Gazette Watch services."""

from typing import Optional


class GazetteWatchError(Exception):
    """Base class for application errors."""


class InvalidInputError(GazetteWatchError):
    """Raised when a service receives input of the wrong shape or type."""


class UpstreamError(GazetteWatchError):
    """An upstream API answered with an unexpected status."""

    service = "upstream"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CompaniesHouseError(UpstreamError):
    service = "companies_house"


class GazetteError(UpstreamError):
    service = "gazette"


class AnalyticsError(UpstreamError):
    service = "ga4"
