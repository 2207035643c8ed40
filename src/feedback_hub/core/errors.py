"""Custom exception hierarchy for the feedback hub."""

from __future__ import annotations

from dataclasses import dataclass


class FeedbackHubError(Exception):
    """Base exception for all feedback hub errors."""


# --- Configuration ---
class ConfigError(FeedbackHubError):
    """Invalid or missing configuration."""


# --- Event bus ---
class EventBusError(FeedbackHubError):
    """Event bus registration or dispatch error."""


class InvalidArgumentError(EventBusError, ValueError):
    """Empty event type, missing handler or missing event."""


class NotFoundError(EventBusError, LookupError):
    """Unsubscribe target is not registered."""


@dataclass(frozen=True)
class HandlerError:
    """One handler's failure during a single dispatch."""

    event_type: str
    event_id: str
    handler_name: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.handler_name}: {self.error!r}"


class HandlerFailureError(EventBusError):
    """One or more handlers raised while an event was dispatched.

    Every registered handler has already run by the time this is raised,
    so side effects of the successful ones have happened.
    """

    def __init__(self, event_type: str, errors: list[HandlerError]):
        self.event_type = event_type
        self.errors = list(errors)
        joined = "; ".join(str(e) for e in self.errors)
        super().__init__(
            f"{len(self.errors)} handler(s) failed for {event_type}: {joined}"
        )

    @property
    def exceptions(self) -> list[Exception]:
        """The underlying handler exceptions, in dispatch order."""
        return [e.error for e in self.errors]


# --- Domain ---
class DomainError(FeedbackHubError):
    """Business rule violation in a domain service."""


class ValidationError(DomainError, ValueError):
    """Input failed domain validation."""


class OrganizationNotFoundError(DomainError, LookupError):
    """No organization with the requested id."""


class DuplicateSlugError(DomainError):
    """Another organization already owns the slug."""


class MembershipNotFoundError(DomainError, LookupError):
    """User is not a member of the organization."""
