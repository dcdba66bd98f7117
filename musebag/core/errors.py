"""
Application errors for clean API error handling.

Every error carries a user-facing message and the HTTP status the API answers
with. The API layer turns any MuseBagError into an {"error": message} envelope.
"""


class MuseBagError(Exception):
    """Base class for errors reported to the client as an error envelope."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InputError(MuseBagError):
    """Raised when a required field is missing or malformed."""

    status_code = 400


class QueryCompositionError(InputError):
    """Raised when a query document cannot be composed from the request."""


class LocalIOError(MuseBagError):
    """Raised when reading or writing local temporary storage fails."""

    status_code = 500


class ExternalServiceError(MuseBagError):
    """Raised when a collaborator (APC, MQF, weather) fails or answers with an error."""

    status_code = 502


class DistributionError(ExternalServiceError):
    """Raised when a query item could not be relayed to the ingestion endpoint."""


class WeatherUnavailableError(ExternalServiceError):
    """Raised when no weather data is available for a time and position."""
