"""
Adapters layer - External integrations (Slack Web API, config storage).
"""

from .config_store import InMemoryConfigStore, JsonFileConfigStore
from .mock_slack_client import MockSlackClient
from .roster_loader import SlackReportDelivery, SlackRosterLoader
from .slack_client import SlackClient

__all__ = [
    "InMemoryConfigStore",
    "JsonFileConfigStore",
    "MockSlackClient",
    "SlackClient",
    "SlackReportDelivery",
    "SlackRosterLoader",
]
