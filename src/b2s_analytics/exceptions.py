class FetchError(Exception):
    """Raised by a metrics source when the metrics could not be fetched or parsed."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(ValueError):
    """Raised when a dashboard configuration value is invalid."""
