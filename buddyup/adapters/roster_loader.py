"""
Slack-backed roster loading and report delivery.

Blocking Slack calls are pushed to worker threads so several member lookups
can be in flight at once, bounded by ``max_concurrency``.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..domain.exceptions import (
    DeliveryFailed,
    PartialRoster,
    RosterUnavailable,
    SlackAPIError,
)
from ..domain.models import Member
from .slack_client import SlackWebAPI

logger = logging.getLogger(__name__)

# Slackbot is a regular user object without is_bot set.
SLACKBOT_ID = "USLACKBOT"


class SlackRosterLoader:
    """
    Resolves the human members of a Slack channel.

    Steps:
    1. Page through ``conversations.members`` for the channel
    2. Fetch ``users.info`` for every member id concurrently
    3. Drop bots, app users, deleted accounts and excluded ids
    4. Skip members whose timezone offset is unknown
    """

    def __init__(
        self,
        client: SlackWebAPI,
        max_concurrency: int = 8,
        exclude_users: Iterable[str] = (),
    ):
        self._client = client
        self._max_concurrency = max_concurrency
        self._exclude_users = frozenset(exclude_users)

    async def load_roster(self, group_id: str) -> List[Member]:
        """
        Load the eligible members of a channel.

        Raises:
            RosterUnavailable: If the channel members cannot be listed
            PartialRoster: If some user lookups failed; carries the rest
        """
        member_ids = await self._list_member_ids(group_id)
        logger.debug("Channel %s has %d member id(s)", group_id, len(member_ids))

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def lookup(member_id: str) -> Dict[str, Any]:
            async with semaphore:
                response = await asyncio.to_thread(self._client.users_info, member_id)
            return response.get("user", {})

        candidates = [m for m in member_ids if m not in self._exclude_users]
        results = await asyncio.gather(
            *(lookup(member_id) for member_id in candidates),
            return_exceptions=True,
        )

        members: List[Member] = []
        failed_ids: List[str] = []

        for member_id, result in zip(candidates, results):
            if isinstance(result, SlackAPIError):
                logger.warning("Could not look up member %s: %s", member_id, result.error)
                failed_ids.append(member_id)
                continue
            if isinstance(result, BaseException):
                raise result

            member = self._to_member(member_id, result)
            if member is not None:
                members.append(member)

        if failed_ids:
            raise PartialRoster(members, failed_ids)

        return members

    async def _list_member_ids(self, group_id: str) -> List[str]:
        member_ids: List[str] = []
        cursor: Optional[str] = None

        while True:
            try:
                page = await asyncio.to_thread(
                    self._client.conversations_members, group_id, cursor
                )
            except SlackAPIError as e:
                raise RosterUnavailable(group_id, e.error) from e

            member_ids.extend(page.get("members", []))
            cursor = page.get("response_metadata", {}).get("next_cursor")
            if not cursor:
                return member_ids

    @staticmethod
    def _to_member(member_id: str, user: Dict[str, Any]) -> Optional[Member]:
        """Convert a ``users.info`` user object, or None if not eligible."""
        if (
            member_id == SLACKBOT_ID
            or user.get("is_bot")
            or user.get("is_app_user")
            or user.get("deleted")
        ):
            logger.debug("Skipping non-human or deactivated member %s", member_id)
            return None

        tz_offset = user.get("tz_offset")
        if tz_offset is None:
            logger.warning("Skipping member %s: no timezone offset", member_id)
            return None

        profile = user.get("profile", {})
        display_name = (
            user.get("real_name")
            or profile.get("display_name")
            or user.get("name")
            or member_id
        )

        return Member(id=member_id, display_name=display_name, tz_offset=int(tz_offset))


class SlackReportDelivery:
    """Posts reports and ephemeral notices back to Slack."""

    def __init__(self, client: SlackWebAPI):
        self._client = client

    async def deliver_report(self, group_id: str, report: str) -> None:
        """
        Post the report to the channel.

        Raises:
            DeliveryFailed: If Slack rejects the message
        """
        try:
            await asyncio.to_thread(self._client.chat_post_message, group_id, report)
        except SlackAPIError as e:
            raise DeliveryFailed(group_id, e.error) from e

    async def notify_ephemeral(self, group_id: str, user_id: str, text: str) -> None:
        """Show ``text`` to a single user in the channel."""
        await asyncio.to_thread(
            self._client.chat_post_ephemeral, group_id, user_id, text
        )
