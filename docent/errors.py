"""
Error taxonomy for the docent.

Recovered errors (DataFetchError, StreamProtocolError) are logged and never
reach the visitor. Fatal errors are turned into a single user-facing message
by the component that owns the interaction.
"""


class DocentError(Exception):
    """Base class for docent errors."""


class DataFetchError(DocentError):
    """Network or parse failure while loading themes, items or quizzes."""


class SynthesisError(DocentError):
    """Speech synthesis failed for the current utterance."""


class StreamProtocolError(DocentError):
    """A single event frame could not be understood. Skipped, never fatal."""


class StreamFatalError(DocentError):
    """The chat reply could not be completed (explicit error event or broken stream)."""


class ClaimValidationError(DocentError):
    """The prize-claim form is incomplete or invalid."""


class ClaimSubmissionError(DocentError):
    """The prize claim could not be delivered. Safe to retry."""

    def __init__(self, message: str, *, detail: str | None = None):
        super().__init__(message)
        self.detail = detail
