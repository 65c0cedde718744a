class AnalysisError(Exception):
    """Base class for errors raised by the analysis pipeline."""


class InvalidRequestError(AnalysisError):
    """The request did not name any profile to analyze."""


class NoDataError(AnalysisError):
    """Every requested platform failed or returned nothing."""


class FetcherError(AnalysisError):
    """Transport or API failure while fetching a platform profile."""

    def __init__(self, platform: str, message: str):
        super().__init__(f"{platform}: {message}")
        self.platform = platform


class CacheStoreError(AnalysisError):
    """The cache store could not read or write a record."""
