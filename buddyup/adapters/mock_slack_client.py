"""
Mock Slack client for trying buddyup without a workspace.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..domain.exceptions import SlackAPIError


class MockSlackClient:
    """
    Mock client that simulates Slack Web API responses.

    Channels and users are loaded from mock_slack_data.json. Messages that
    would be posted are recorded in ``posted`` instead.
    """

    def __init__(self, data_file: Optional[Path] = None):
        """
        Initialize the mock client.

        Args:
            data_file: Optional JSON file replacing the bundled mock data
        """
        self.data_file = data_file or Path(__file__).parent / "mock_slack_data.json"
        self.posted: List[Dict[str, str]] = []
        self._load_workspace_data()

    def _load_workspace_data(self):
        """Load mock channels and users from the JSON file."""
        if self.data_file.exists():
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            data = {}

        self.channels: Dict[str, List[str]] = data.get("channels", {})
        self.users: Dict[str, Dict[str, Any]] = data.get("users", {})

    def conversations_members(
        self,
        channel: str,
        cursor: Optional[str] = None,
        limit: int = 200,
    ) -> Dict[str, Any]:
        if channel not in self.channels:
            raise SlackAPIError("conversations.members", "channel_not_found")

        return {
            "ok": True,
            "members": list(self.channels[channel]),
            "response_metadata": {"next_cursor": ""},
        }

    def users_info(self, user: str) -> Dict[str, Any]:
        if user not in self.users:
            raise SlackAPIError("users.info", "user_not_found")
        return {"ok": True, "user": self.users[user]}

    def chat_post_message(self, channel: str, text: str) -> Dict[str, Any]:
        if channel not in self.channels:
            raise SlackAPIError("chat.postMessage", "channel_not_found")
        self.posted.append({"channel": channel, "text": text})
        return {"ok": True, "channel": channel}

    def chat_post_ephemeral(self, channel: str, user: str, text: str) -> Dict[str, Any]:
        self.posted.append({"channel": channel, "user": user, "text": text})
        return {"ok": True}

    def auth_test(self) -> Dict[str, Any]:
        """Mock connection test."""
        return {"ok": True, "user": "buddyup", "team": "Mock Workspace"}
