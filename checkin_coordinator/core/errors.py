# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Error taxonomy for the coordinator.
Every error carries a user_message that is safe to send back to chat.
"""


class CoordinatorError(Exception):
    """Base class for all coordinator errors."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str = "", user_message: str | None = None) -> None:
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ValidationError(CoordinatorError):
    """Malformed input to a store operation."""

    user_message = "Some of the details you provided are not valid."


class ExtractionError(CoordinatorError):
    """Model output could not be parsed into the expected fields."""

    user_message = (
        "I could not read that configuration. "
        "Please provide the information in the correct format."
    )


class DuplicateSubmission(CoordinatorError):
    """The record store rejected a conflicting identical identifier."""

    user_message = "⚠️ This has already been submitted."


class DuplicateRecordError(DuplicateSubmission):
    """Raised by a record store when a record id already exists."""


class RoomExistsError(CoordinatorError):
    """Raised by a record store when ensure_room targets an existing room."""


class CollaboratorUnavailable(CoordinatorError):
    """Messaging, model or task subsystem is unreachable."""

    user_message = (
        "❌ I'm unable to reach the chat platform right now. "
        "Please try again later."
    )


class ConfigurationMissing(CoordinatorError):
    """A report was requested before a report channel was configured."""

    user_message = (
        "No report channel is configured for this server yet. "
        "Set one up first by recording your check-in details."
    )
