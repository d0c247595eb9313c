"""Failure taxonomy for the certificate analysis pipeline."""


class CertTrackError(Exception):
    """Base class for pipeline errors surfaced to the HTTP layer."""


class InvalidInputError(CertTrackError):
    """Caller-supplied arguments violate preconditions. No I/O was performed."""


class PreprocessError(CertTrackError):
    """The uploaded file could not be decoded or yielded no content."""


class ExtractionError(CertTrackError):
    """Gemini returned no parseable JSON after all attempts.

    `raw_response` keeps the last completion for operator diagnostics;
    it must never be echoed to end users.
    """

    def __init__(self, message: str, raw_response: str | None = None, attempts: int = 0):
        super().__init__(message)
        self.raw_response = raw_response
        self.attempts = attempts


class InvalidAIResponseError(CertTrackError):
    """Gemini returned JSON that is missing required top-level fields."""

    def __init__(self, message: str, payload: object = None):
        super().__init__(message)
        self.payload = payload


class AIUnavailableError(CertTrackError):
    """Gemini is not configured, so no completion can be requested."""


class NotFoundError(CertTrackError):
    """A referenced user, skill or certification does not exist."""
