"""Application-level exception types for actionturn."""

from __future__ import annotations


class ActionTurnError(Exception):
    """Base exception for actionturn."""


class ConfigurationError(ActionTurnError):
    """Raised when an app is wired with inconsistent options."""


class UsageError(ActionTurnError):
    """Base exception for programmer mistakes while building a response."""


class ResponseDigestedError(UsageError):
    """Raised when a conversation is mutated or finalized after it was digested."""


class NoResponseError(UsageError):
    """Raised when a conversation is finalized without any response."""

    def __init__(self) -> None:
        super().__init__(
            "No response has been set. "
            "Is this being used in an async call that was not awaited by the intent handler?"
        )


class RoutingError(ActionTurnError):
    """Base exception for intent resolution failures."""


class HandlerNotFoundError(RoutingError):
    """Raised when an intent has no handler and no fallback is registered."""

    def __init__(self, intent: str, message: str | None = None) -> None:
        super().__init__(message or f"IntentHandler not found for intent: {intent}")
        self.intent = intent


class CircularRedirectError(RoutingError):
    """Raised when intent redirects loop back onto an already visited target."""

    def __init__(self, target: str) -> None:
        super().__init__(f'Circular intent map detected: "{target}" traversed twice')
        self.target = target


class ResponseValidationError(ActionTurnError):
    """Base exception for responses that break composition rules."""


class SimpleResponseRequiredError(ResponseValidationError):
    """Raised when rich content is sent without a speakable anchor."""

    def __init__(self) -> None:
        super().__init__("A simple response is required in addition to this type of response")


class StateDecodeError(ActionTurnError, ValueError):
    """Raised when persisted session state is not valid JSON."""

    def __init__(self, location: str, reason: str) -> None:
        super().__init__(f"Cannot decode session state from {location}: {reason}")
        self.location = location


class VerificationError(ActionTurnError):
    """Raised when an inbound request fails verification."""


class UnauthorizedError(ActionTurnError):
    """Raise from an intent handler to answer the request with HTTP 401."""
