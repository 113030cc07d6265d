"""
Application service for pairing channel members.

The service coordinates roster loading and report delivery via adapters and
delegates the pairing itself to the domain-level ``match`` function. Every
collaborator is passed in explicitly, so tests can swap any of them for a
stub that satisfies the protocols below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Sequence

from pydantic import ValidationError

from ..config import WorkflowConfig
from ..domain.exceptions import (
    ConfigurationError,
    DeliveryFailed,
    InvalidRoster,
    PartialRoster,
    RosterUnavailable,
    SlackAPIError,
)
from ..domain.matcher import match
from ..domain.models import MatchResult, Member

logger = logging.getLogger(__name__)


class RosterLoaderProtocol(Protocol):
    """Resolves the eligible members of a group."""

    async def load_roster(self, group_id: str) -> Sequence[Member]:
        """Return the members, raising RosterUnavailable or PartialRoster."""


class ReportDeliveryProtocol(Protocol):
    """Delivers reports and user-facing notices back to a group."""

    async def deliver_report(self, group_id: str, report: str) -> None:
        """Post the report, raising DeliveryFailed on failure."""

    async def notify_ephemeral(self, group_id: str, user_id: str, text: str) -> None:
        """Show a message to a single user only."""


class ConfigStoreProtocol(Protocol):
    """Key-value store for per-workflow configuration."""

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the stored value or None when absent."""

    def set(self, key: str, value: Dict[str, Any]) -> None:
        """Store a value under ``key``."""


class InvocationStatus(str, Enum):
    DELIVERED = "delivered"
    COMPUTED = "computed"
    ROSTER_UNAVAILABLE = "roster_unavailable"
    INVALID_ROSTER = "invalid_roster"
    DELIVERY_FAILED = "delivery_failed"
    NOT_CONFIGURED = "not_configured"


@dataclass(frozen=True)
class InvocationOutcome:
    """
    What happened during one invocation, as seen by the caller.

    ``notice`` carries the text of any failure notice. It is also sent as an
    ephemeral message when there is a user to address, but callers should
    show it themselves since that post is best-effort and cannot reach a
    channel that failed to resolve.
    """
    status: InvocationStatus
    result: Optional[MatchResult] = None
    notice: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (InvocationStatus.DELIVERED, InvocationStatus.COMPUTED)


class BuddyUpService:
    """
    Orchestrates roster loading, pairing and report delivery.

    ``handle_invocation`` is the error boundary: loader and delivery
    failures become ephemeral notices for the invoking user instead of
    exceptions.
    """

    def __init__(
        self,
        roster_loader: RosterLoaderProtocol,
        delivery: ReportDeliveryProtocol,
        config_store: ConfigStoreProtocol,
    ) -> None:
        self._roster_loader = roster_loader
        self._delivery = delivery
        self._config_store = config_store

    async def load_roster(self, group_id: str) -> Sequence[Member]:
        """Load the roster, tolerating partially failed member lookups."""
        try:
            return await self._roster_loader.load_roster(group_id)
        except PartialRoster as e:
            logger.warning(
                "Continuing with %d member(s) of %s; %s",
                len(e.roster),
                group_id,
                e,
            )
            return e.roster

    async def compute(self, group_id: str) -> MatchResult:
        """
        Load the group's roster and pair it, without posting anything.

        Raises:
            RosterUnavailable: If the roster cannot be loaded
            InvalidRoster: If the roster contains duplicate ids
        """
        roster = await self.load_roster(group_id)
        result = match(roster)
        logger.info(
            "Paired %d member(s) of %s into %d pair(s)%s",
            len(roster),
            group_id,
            len(result.pairs),
            " with one leftover" if result.leftover else "",
        )
        return result

    async def pair_group(self, group_id: str, *, deliver: bool = True) -> MatchResult:
        """
        Compute the pairing for a group and post the report.

        Raises:
            RosterUnavailable: If the roster cannot be loaded
            InvalidRoster: If the roster contains duplicate ids
            DeliveryFailed: If the report could not be posted
        """
        result = await self.compute(group_id)
        if deliver:
            await self._deliver(group_id, result)
        return result

    async def handle_invocation(
        self,
        group_id: str,
        user_id: str,
        *,
        deliver: bool = True,
    ) -> InvocationOutcome:
        """
        Compute the pairing, deliver it unless ``deliver`` is False, and turn
        failures into user-visible notices.

        The outcome status is ``COMPUTED`` when delivery was skipped.
        """
        try:
            result = await self.compute(group_id)
        except RosterUnavailable as e:
            logger.error("Roster unavailable for %s: %s", group_id, e.reason)
            notice = f"Couldn't load the members of <#{group_id}>: {e.reason}."
            await self._notify(group_id, user_id, notice)
            return InvocationOutcome(InvocationStatus.ROSTER_UNAVAILABLE, notice=notice)
        except InvalidRoster:
            logger.exception("Refusing to pair members of %s", group_id)
            notice = "An internal error occurred while pairing members."
            await self._notify(group_id, user_id, notice)
            return InvocationOutcome(InvocationStatus.INVALID_ROSTER, notice=notice)

        if deliver:
            try:
                await self._deliver(group_id, result)
            except DeliveryFailed as e:
                logger.error("Delivery to %s failed: %s", group_id, e.reason)
                notice = f"The pairing was computed but could not be posted: {e.reason}."
                await self._notify(group_id, user_id, notice)
                return InvocationOutcome(
                    InvocationStatus.DELIVERY_FAILED, result=result, notice=notice
                )

        status = InvocationStatus.DELIVERED if deliver else InvocationStatus.COMPUTED
        return InvocationOutcome(status, result=result)

    def configure(self, workflow_id: str, group_id: str) -> WorkflowConfig:
        """Persist the group a workflow should pair."""
        config = WorkflowConfig(group_id=group_id)
        self._config_store.set(workflow_id, config.model_dump())
        logger.info("Workflow %s configured for %s", workflow_id, config.group_id)
        return config

    def load_configuration(self, workflow_id: str) -> Optional[WorkflowConfig]:
        """
        Read a workflow's stored configuration.

        Returns None when nothing has been configured yet.

        Raises:
            ConfigurationError: If the stored value is malformed
        """
        stored = self._config_store.get(workflow_id)
        if stored is None:
            return None

        try:
            return WorkflowConfig.model_validate(stored)
        except ValidationError as e:
            raise ConfigurationError(
                f"Stored configuration for {workflow_id} is invalid: {e}"
            ) from e

    async def execute(
        self,
        workflow_id: str,
        user_id: str,
        *,
        deliver: bool = True,
    ) -> InvocationOutcome:
        """Pair the group a workflow was configured with."""
        config = self.load_configuration(workflow_id)
        if config is None:
            logger.info("Workflow %s has no configuration yet", workflow_id)
            return InvocationOutcome(
                InvocationStatus.NOT_CONFIGURED,
                notice=f"Workflow {workflow_id} has not been configured yet.",
            )

        return await self.handle_invocation(config.group_id, user_id, deliver=deliver)

    async def _deliver(self, group_id: str, result: MatchResult) -> None:
        await self._delivery.deliver_report(group_id, result.report)
        logger.info("Posted report to %s", group_id)

    async def _notify(self, group_id: str, user_id: str, text: str) -> None:
        if not user_id:
            logger.debug("No user to notify in %s; notice left on the outcome", group_id)
            return
        try:
            await self._delivery.notify_ephemeral(group_id, user_id, text)
        except SlackAPIError as e:
            logger.warning("Could not notify %s in %s: %s", user_id, group_id, e.error)
