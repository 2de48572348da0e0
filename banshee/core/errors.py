"""Exception hierarchy for Banshee."""


class BansheeError(Exception):
    """Base class for every error raised by Banshee."""


class ConfigurationError(BansheeError, ValueError):
    """Raised when a ClientConfig fails validation. No client is created."""


class SerializationError(BansheeError):
    """Raised when an event or transport envelope cannot be encoded."""


class TransportError(BansheeError):
    """Raised when delivery fails after the retry ceiling is exhausted.

    Attributes:
        status_code: HTTP status of the last attempt, or None for transport failures.
        attempts: Number of attempts made before giving up.
        last_error: Message of the last underlying failure.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        attempts: int = 0,
        last_error: str | None = None,
    ):
        self.status_code = status_code
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.last_error:
            return f"{base} (last error: {self.last_error})"
        return base


class NotFoundError(BansheeError, LookupError):
    """Raised when a registry lookup misses."""


class ClientStoppedError(BansheeError, RuntimeError):
    """Raised when starting a client that has already been shut down."""
