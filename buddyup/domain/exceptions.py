"""
Domain-specific exception hierarchy for the buddyup application.
"""

from typing import Iterable, Sequence


class BuddyUpError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(BuddyUpError):
    """Raised when a config file or stored workflow config cannot be used."""


class SlackAPIError(BuddyUpError):
    """Raised when a Slack Web API call fails or answers with ``ok: false``."""

    def __init__(self, method: str, error: str):
        super().__init__(f"Slack API call {method} failed: {error}")
        self.method = method
        self.error = error


class RosterUnavailable(BuddyUpError):
    """Raised when the members of a group cannot be resolved at all."""

    def __init__(self, group_id: str, reason: str):
        super().__init__(f"Could not load members of {group_id}: {reason}")
        self.group_id = group_id
        self.reason = reason


class PartialRoster(BuddyUpError):
    """
    Raised when some member lookups failed.

    Non-fatal: ``roster`` holds the members that were resolved and callers
    are expected to continue with it.
    """

    def __init__(self, roster: Sequence, failed_ids: Iterable[str]):
        self.roster = list(roster)
        self.failed_ids = sorted(failed_ids)
        super().__init__(
            f"{len(self.failed_ids)} member lookup(s) failed: {', '.join(self.failed_ids)}"
        )


class InvalidRoster(BuddyUpError):
    """Raised when a roster breaks the unique-id invariant."""

    def __init__(self, duplicate_ids: Iterable[str]):
        self.duplicate_ids = sorted(duplicate_ids)
        super().__init__(f"Duplicate member ids in roster: {', '.join(self.duplicate_ids)}")


class DeliveryFailed(BuddyUpError):
    """Raised when the rendered report could not be posted."""

    def __init__(self, group_id: str, reason: str):
        super().__init__(f"Could not post report to {group_id}: {reason}")
        self.group_id = group_id
        self.reason = reason
