"""Exceptions raised while generating move explanations."""


class ExplanationError(Exception):
    """Base class for explanation failures."""


class ConfigurationError(ExplanationError):
    """Raised when the LLM credential is missing."""


class RemoteServiceError(ExplanationError):
    """Raised when the chat-completion endpoint answers with a non-success status.

    Transport failures (connection refused, timeouts) are reported with
    ``status_code`` 0.
    """

    def __init__(self, status_code: int, status_text: str) -> None:
        self.status_code = status_code
        self.status_text = status_text
        super().__init__(f"LLM API error: {status_code} {status_text}".rstrip())


class EmptyResponseError(ExplanationError):
    """Raised when a successful reply carries no message content."""

    def __init__(self, message: str = "No explanation generated") -> None:
        super().__init__(message)


class ParseError(ExplanationError):
    """Raised when a reply is not the expected JSON object. Always recovered locally."""
