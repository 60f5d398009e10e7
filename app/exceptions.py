"""Pipeline failure taxonomy.

Every error carries a stable ``code``, the HTTP status it maps to and a
Dutch message that is safe to show to the end user. Technical details go
into ``detail`` and are only logged.
"""

from dataclasses import dataclass


@dataclass(eq=False)
class PipelineError(Exception):
    """Base exception for failures anywhere in the letter pipeline."""

    message: str
    detail: str | None = None
    status_code: int = 500

    code = "pipeline_error"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


@dataclass(eq=False)
class InvalidInputError(PipelineError):
    """Raised when an incoming letter request breaks a validation rule."""

    status_code: int = 400

    code = "invalid_input"


@dataclass(eq=False)
class UpstreamAuthError(PipelineError):
    """Raised when the language-model provider rejects our credential."""

    message: str = (
        "De AI-service heeft de aanvraag niet geaccepteerd. "
        "Neem contact op met de beheerder."
    )
    status_code: int = 401

    code = "upstream_auth_failure"


@dataclass(eq=False)
class UpstreamRateLimitedError(PipelineError):
    """Raised when the provider keeps signalling a rate limit."""

    message: str = (
        "De AI-service is momenteel te druk. Probeer het over enkele minuten opnieuw."
    )
    status_code: int = 429

    code = "upstream_rate_limited"


@dataclass(eq=False)
class UpstreamTimeoutError(PipelineError):
    """Raised when the provider does not answer within the timeout."""

    message: str = "De AI-service reageerde niet op tijd. Probeer het later opnieuw."
    status_code: int = 504

    code = "upstream_timeout"


@dataclass(eq=False)
class UpstreamMalformedResponseError(PipelineError):
    """Raised when the provider answer lacks the generated text."""

    message: str = "Ongeldig antwoord van de AI-service. Probeer het opnieuw."
    status_code: int = 502

    code = "upstream_malformed_response"


@dataclass(eq=False)
class ExtractionError(PipelineError):
    """Raised when an uploaded document cannot be turned into text."""

    filename: str | None = None
    status_code: int = 422

    code = "extraction_failure"


@dataclass(eq=False)
class UnknownPipelineError(PipelineError):
    """Raised for failures that fit no other category."""

    message: str = "Er is een fout opgetreden bij het verwerken van de tekst."
    status_code: int = 500

    code = "unknown_failure"
