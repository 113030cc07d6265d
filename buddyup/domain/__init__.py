"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import Leftover, MatchResult, Member, Pair, Roster
from .matcher import match, order_roster, render_report

__all__ = [
    "Leftover",
    "MatchResult",
    "Member",
    "Pair",
    "Roster",
    "match",
    "order_roster",
    "render_report",
]
