"""
Domain models for members and pairing results.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime


@dataclass(frozen=True)
class Member:
    """
    A human participant of a group.

    ``tz_offset`` is in seconds east of UTC, as reported by Slack.
    """
    id: str
    display_name: str
    tz_offset: int

    def mention(self) -> str:
        """Slack mention markup for this member."""
        return f"<@{self.id}>"

    def utc_offset_label(self) -> str:
        """Format the offset, e.g. ``UTC-08:00`` or ``UTC+05:30``."""
        sign = "-" if self.tz_offset < 0 else "+"
        hours, remainder = divmod(abs(self.tz_offset), 3600)
        return f"UTC{sign}{hours:02d}:{remainder // 60:02d}"

    def local_time(self, at: Optional[DateTime] = None) -> DateTime:
        """The member's wall clock time at ``at`` (defaults to now)."""
        moment = at or pendulum.now("UTC")
        return moment.in_timezone(pendulum.fixed_timezone(self.tz_offset))


Roster = Sequence[Member]


@dataclass(frozen=True)
class Pair:
    """
    Two matched members.

    ``lead`` is drawn from the low-offset end and owns scheduling the 1-1.
    """
    lead: Member
    partner: Member

    @property
    def offset_gap(self) -> int:
        """Timezone distance between the two members in seconds."""
        return self.partner.tz_offset - self.lead.tz_offset


@dataclass(frozen=True)
class Leftover:
    """The member left over when the roster has odd size."""
    member: Member


@dataclass(frozen=True)
class MatchResult:
    """Outcome of one pairing run, pairs in emission order."""
    pairs: Tuple[Pair, ...]
    leftover: Optional[Leftover]
    report: str

    @property
    def is_empty(self) -> bool:
        return not self.pairs and self.leftover is None

    def members(self) -> Iterator[Member]:
        """Yield every member of the result, pairs first."""
        for pair in self.pairs:
            yield pair.lead
            yield pair.partner
        if self.leftover is not None:
            yield self.leftover.member
