"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .buddy_up import (
    BuddyUpService,
    ConfigStoreProtocol,
    InvocationOutcome,
    InvocationStatus,
    ReportDeliveryProtocol,
    RosterLoaderProtocol,
)

__all__ = [
    "BuddyUpService",
    "ConfigStoreProtocol",
    "InvocationOutcome",
    "InvocationStatus",
    "ReportDeliveryProtocol",
    "RosterLoaderProtocol",
]
