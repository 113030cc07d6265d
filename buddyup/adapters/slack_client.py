"""
Slack Web API client for the handful of methods buddyup needs.
"""

import logging
import math
import time
from typing import Any, Dict, Optional, Protocol

import requests

from ..domain.exceptions import SlackAPIError

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 1.0


def _retry_after_seconds(headers) -> float:
    """Read ``Retry-After`` as seconds, falling back to one second when unusable."""
    try:
        seconds = float(headers.get("Retry-After", DEFAULT_RETRY_AFTER_SECONDS))
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER_SECONDS
    if not math.isfinite(seconds) or seconds < 0:
        return DEFAULT_RETRY_AFTER_SECONDS
    return seconds


class SlackWebAPI(Protocol):
    """Slack methods used by the roster loader and report delivery."""

    def conversations_members(
        self, channel: str, cursor: Optional[str] = None, limit: int = 200
    ) -> Dict[str, Any]: ...

    def users_info(self, user: str) -> Dict[str, Any]: ...

    def chat_post_message(self, channel: str, text: str) -> Dict[str, Any]: ...

    def chat_post_ephemeral(self, channel: str, user: str, text: str) -> Dict[str, Any]: ...

    def auth_test(self) -> Dict[str, Any]: ...


class SlackClient:
    """
    Thin synchronous wrapper over the Slack Web API.

    Every call is a form-encoded POST authenticated with the bot token. A
    response is accepted only when it is HTTP 2xx and carries ``ok: true``;
    anything else raises ``SlackAPIError``.
    """

    SLACK_API_ENDPOINT = "https://slack.com/api"

    def __init__(
        self,
        token: str,
        timeout_seconds: float = 10,
        max_retries: int = 1,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Slack client.

        Args:
            token: Bot token (``xoxb-...``)
            timeout_seconds: Per-request timeout
            max_retries: How many times a rate-limited call is retried
            session: Optional pre-configured requests session
        """
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.session = session or requests.Session()
        self.headers = {"Authorization": f"Bearer {token}"}

    def conversations_members(
        self,
        channel: str,
        cursor: Optional[str] = None,
        limit: int = 200,
    ) -> Dict[str, Any]:
        """One page of member ids of a conversation."""
        params: Dict[str, Any] = {"channel": channel, "limit": limit}
        if cursor:
            params["cursor"] = cursor
        return self._call("conversations.members", params)

    def users_info(self, user: str) -> Dict[str, Any]:
        """Profile of a single user, including ``tz_offset``."""
        return self._call("users.info", {"user": user})

    def chat_post_message(self, channel: str, text: str) -> Dict[str, Any]:
        return self._call("chat.postMessage", {"channel": channel, "text": text})

    def chat_post_ephemeral(self, channel: str, user: str, text: str) -> Dict[str, Any]:
        return self._call(
            "chat.postEphemeral",
            {"channel": channel, "user": user, "text": text},
        )

    def auth_test(self) -> Dict[str, Any]:
        """Check the token and return the bot identity."""
        return self._call("auth.test", {})

    def _call(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.SLACK_API_ENDPOINT}/{method}"
        attempt = 0

        while True:
            try:
                response = self.session.post(
                    url,
                    headers=self.headers,
                    data=params,
                    timeout=self.timeout_seconds,
                )
            except requests.exceptions.RequestException as e:
                raise SlackAPIError(method, str(e)) from e

            if response.status_code == 429 and attempt < self.max_retries:
                attempt += 1
                retry_after = _retry_after_seconds(response.headers)
                logger.warning(
                    "Rate limited on %s, retrying in %ss (attempt %d/%d)",
                    method,
                    retry_after,
                    attempt,
                    self.max_retries,
                )
                time.sleep(retry_after)
                continue

            try:
                response.raise_for_status()
                data = response.json()
            except (requests.exceptions.RequestException, ValueError) as e:
                raise SlackAPIError(method, str(e)) from e

            if not data.get("ok"):
                raise SlackAPIError(method, data.get("error", "unknown_error"))

            return data
