"""Error types raised by the rank algebra and the reorder engine.

The engine resolves every one of these into a structured decision, so they
only reach callers that use the lower-level helpers directly.
"""
from typing import Optional


GENERIC_AUTHORIZATION_MESSAGE = "You are not authorised to perform this action"
GENERIC_FAILURE_MESSAGE = "Something went wrong"


class KanbanError(Exception):
    """Base error carrying a message that can be shown to the user."""

    default_message = GENERIC_FAILURE_MESSAGE

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthorizationDenied(KanbanError):
    """A status drop-validation predicate refused the move."""

    default_message = GENERIC_AUTHORIZATION_MESSAGE


class DisabledOperation(KanbanError):
    """Reordering is disabled for the acting user."""

    default_message = GENERIC_AUTHORIZATION_MESSAGE


class MalformedKeyError(KanbanError, ValueError):
    """A persisted rank key could not be parsed."""

    default_message = "Malformed rank key"


class RankExhaustedError(KanbanError, ValueError):
    """No key exists beyond the minimum or maximum rank."""

    default_message = "No rank exists beyond this key"


class InvalidDragResult(KanbanError, ValueError):
    """The drag result is missing required fields."""

    default_message = "Invalid drag result"


class InvalidStatusError(KanbanError, ValueError):
    """A status value is not part of the collection's vocabulary."""

    default_message = "Invalid status"
