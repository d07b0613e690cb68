from typing import Dict, Optional

from ..models.api_models import ErrorEnvelope, ErrorKind


class RelayError(Exception):
    """Base for every failure the relay turns into an error envelope."""

    status_code: int = 500
    kind: ErrorKind = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        user_message: str,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
        kind: Optional[ErrorKind] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(user_message)
        self.user_message = user_message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        if kind is not None:
            self.kind = kind
        self.headers = headers or {}

    @classmethod
    def from_envelope(cls, envelope: ErrorEnvelope) -> "RelayError":
        return cls(
            envelope.user_message,
            details=envelope.details,
            status_code=envelope.status_code,
            kind=envelope.kind,
        )

    def to_envelope(self) -> ErrorEnvelope:
        return ErrorEnvelope(
            status_code=self.status_code,
            kind=self.kind,
            user_message=self.user_message,
            details=self.details,
        )


class ConfigurationError(RelayError):
    status_code = 500
    kind = ErrorKind.CONFIGURATION_ERROR


class ClientInputError(RelayError):
    status_code = 400
    kind = ErrorKind.BAD_REQUEST


class ProviderError(RelayError):
    pass


class ProviderUnavailableError(RelayError):
    status_code = 500
    kind = ErrorKind.PROVIDER_UNAVAILABLE


class EmptyGenerationError(RelayError):
    status_code = 500
    kind = ErrorKind.NO_CANDIDATES
