"""
Tests for the Slack roster loader and report delivery adapters.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import pytest

from buddyup.adapters.mock_slack_client import MockSlackClient
from buddyup.adapters.roster_loader import SlackReportDelivery, SlackRosterLoader
from buddyup.domain.exceptions import (
    DeliveryFailed,
    PartialRoster,
    RosterUnavailable,
    SlackAPIError,
)
from buddyup.domain.models import Member


class StubSlackClient:
    """Minimal stub matching SlackWebAPI with paginated members."""

    def __init__(
        self,
        pages: List[List[str]],
        users: Dict[str, Dict[str, Any]],
        failing_users: tuple = (),
        channel_error: Optional[str] = None,
    ):
        self._pages = pages
        self._users = users
        self._failing_users = set(failing_users)
        self._channel_error = channel_error
        self.cursors: List[Optional[str]] = []
        self.lookups: List[str] = []

    def conversations_members(self, channel, cursor=None, limit=200):
        self.cursors.append(cursor)
        if self._channel_error:
            raise SlackAPIError("conversations.members", self._channel_error)
        index = int(cursor) if cursor else 0
        next_cursor = str(index + 1) if index + 1 < len(self._pages) else ""
        return {
            "ok": True,
            "members": self._pages[index],
            "response_metadata": {"next_cursor": next_cursor},
        }

    def users_info(self, user):
        self.lookups.append(user)
        if user in self._failing_users:
            raise SlackAPIError("users.info", "user_not_found")
        return {"ok": True, "user": self._users[user]}


def _user(user_id: str, tz_offset: Optional[int] = 0, **extra) -> Dict[str, Any]:
    user = {"id": user_id, "name": user_id.lower(), "real_name": f"Real {user_id}", "profile": {}}
    if tz_offset is not None:
        user["tz_offset"] = tz_offset
    user.update(extra)
    return user


class TestSlackRosterLoader:
    """Tests for SlackRosterLoader."""

    def test_follows_pagination(self):
        client = StubSlackClient(
            pages=[["U1", "U2"], ["U3"]],
            users={"U1": _user("U1", -3600), "U2": _user("U2", 0), "U3": _user("U3", 7200)},
        )

        members = asyncio.run(SlackRosterLoader(client).load_roster("C1"))

        assert [m.id for m in members] == ["U1", "U2", "U3"]
        assert members[0] == Member(id="U1", display_name="Real U1", tz_offset=-3600)
        assert client.cursors == [None, "1"]

    def test_filters_non_human_members(self):
        client = StubSlackClient(
            pages=[["U1", "B1", "A1", "D1", "USLACKBOT"]],
            users={
                "U1": _user("U1"),
                "B1": _user("B1", is_bot=True),
                "A1": _user("A1", is_app_user=True),
                "D1": _user("D1", deleted=True),
                "USLACKBOT": _user("USLACKBOT"),
            },
        )

        members = asyncio.run(SlackRosterLoader(client).load_roster("C1"))

        assert [m.id for m in members] == ["U1"]

    def test_skips_member_without_offset(self, caplog):
        client = StubSlackClient(
            pages=[["U1", "U2"]],
            users={"U1": _user("U1"), "U2": _user("U2", tz_offset=None)},
        )

        with caplog.at_level(logging.WARNING):
            members = asyncio.run(SlackRosterLoader(client).load_roster("C1"))

        assert [m.id for m in members] == ["U1"]
        assert "U2" in caplog.text

    def test_excluded_users_are_not_looked_up(self):
        client = StubSlackClient(
            pages=[["U1", "U2"]],
            users={"U1": _user("U1"), "U2": _user("U2")},
        )

        loader = SlackRosterLoader(client, exclude_users=["U2"])
        members = asyncio.run(loader.load_roster("C1"))

        assert [m.id for m in members] == ["U1"]
        assert client.lookups == ["U1"]

    def test_display_name_fallbacks(self):
        client = StubSlackClient(
            pages=[["U1", "U2", "U3"]],
            users={
                "U1": _user("U1", real_name="", profile={"display_name": "disp"}),
                "U2": _user("U2", real_name="", profile={}),
                "U3": {"id": "U3", "tz_offset": 0},
            },
        )

        members = asyncio.run(SlackRosterLoader(client).load_roster("C1"))

        assert [m.display_name for m in members] == ["disp", "u2", "U3"]

    def test_unknown_channel_is_unavailable(self):
        client = StubSlackClient(pages=[], users={}, channel_error="channel_not_found")

        with pytest.raises(RosterUnavailable) as exc_info:
            asyncio.run(SlackRosterLoader(client).load_roster("C404"))

        assert exc_info.value.group_id == "C404"
        assert exc_info.value.reason == "channel_not_found"

    def test_failed_lookups_give_partial_roster(self):
        client = StubSlackClient(
            pages=[["U1", "U2", "U3"]],
            users={"U1": _user("U1"), "U3": _user("U3")},
            failing_users=("U2",),
        )

        with pytest.raises(PartialRoster) as exc_info:
            asyncio.run(SlackRosterLoader(client, max_concurrency=1).load_roster("C1"))

        assert [m.id for m in exc_info.value.roster] == ["U1", "U3"]
        assert exc_info.value.failed_ids == ["U2"]

    def test_with_mock_workspace(self):
        loader = SlackRosterLoader(MockSlackClient())

        members = asyncio.run(loader.load_roster("C0GENERAL"))

        ids = {m.id for m in members}
        assert "B01HELPER" not in ids
        assert "U08HANK" not in ids
        assert len(members) == 7


class TestSlackReportDelivery:
    """Tests for SlackReportDelivery."""

    def test_deliver_report_posts_message(self):
        client = MockSlackClient()

        asyncio.run(SlackReportDelivery(client).deliver_report("C0PAIR", "hello"))

        assert client.posted == [{"channel": "C0PAIR", "text": "hello"}]

    def test_delivery_failure(self):
        client = MockSlackClient()

        with pytest.raises(DeliveryFailed) as exc_info:
            asyncio.run(SlackReportDelivery(client).deliver_report("C404", "hello"))

        assert exc_info.value.reason == "channel_not_found"

    def test_notify_ephemeral(self):
        client = MockSlackClient()

        asyncio.run(SlackReportDelivery(client).notify_ephemeral("C0PAIR", "U01ANA", "oops"))

        assert client.posted == [{"channel": "C0PAIR", "user": "U01ANA", "text": "oops"}]
