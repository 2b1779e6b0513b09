class CountryCacheError(Exception):
    """Base class for errors raised by the countries app."""


class UpstreamUnavailable(CountryCacheError):
    """One of the external data sources could not be fetched or decoded."""

    def __init__(self, source, reason=""):
        self.source = source
        self.reason = reason
        message = f"Could not fetch data from {source}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CountryNotFound(CountryCacheError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Country not found: {name}")


class InvalidQuery(CountryCacheError):
    """Bad filter or sort parameters for a listing."""

    def __init__(self, details):
        self.details = details
        super().__init__(str(details))


class RefreshInProgress(CountryCacheError):
    pass


class RenderFailure(CountryCacheError):
    pass
