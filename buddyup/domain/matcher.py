"""
Core pairing logic: match members who are farthest apart in timezone.

Pure domain logic without any external dependencies (no API calls, no
storage, no I/O). Safe to call concurrently.
"""

from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple

from .exceptions import InvalidRoster
from .models import Leftover, MatchResult, Member, Pair, Roster

EMPTY_REPORT = "No members to pair."


def match(roster: Iterable[Member]) -> MatchResult:
    """
    Pair members by timezone spread.

    Algorithm:
    1. Reject rosters with duplicate ids
    2. Sort by offset, ties broken by id
    3. Walk two cursors in from both ends of the sorted tuple; each step
       pairs the lowest remaining offset (lead) with the highest (partner)
    4. A single member left in the middle becomes the leftover

    Raises:
        InvalidRoster: If two members share an id
    """
    members = tuple(roster)
    ensure_unique_ids(members)
    ordered = order_roster(members)

    pairs: List[Pair] = []
    low, high = 0, len(ordered) - 1
    while low < high:
        pairs.append(Pair(lead=ordered[low], partner=ordered[high]))
        low += 1
        high -= 1

    leftover = Leftover(member=ordered[low]) if low == high else None

    return MatchResult(
        pairs=tuple(pairs),
        leftover=leftover,
        report=render_report(pairs, leftover),
    )


def ensure_unique_ids(roster: Roster) -> None:
    """Raise InvalidRoster if any member id occurs more than once."""
    counts = Counter(member.id for member in roster)
    duplicates = [member_id for member_id, count in counts.items() if count > 1]
    if duplicates:
        raise InvalidRoster(duplicates)


def order_roster(roster: Roster) -> Tuple[Member, ...]:
    """Sort by ``tz_offset`` ascending, then ``id`` ascending."""
    return tuple(sorted(roster, key=lambda m: (m.tz_offset, m.id)))


def render_report(pairs: Sequence[Pair], leftover: Optional[Leftover]) -> str:
    """
    Render the Slack message for a pairing.

    Example:
    * <@U1> matched with <@U9>. <@U1>, you are in charge of scheduling the 1-1.
    * <@U5> couldn't be paired with anyone.
    """
    if not pairs and leftover is None:
        return EMPTY_REPORT

    lines = [
        f"* {pair.lead.mention()} matched with {pair.partner.mention()}. "
        f"{pair.lead.mention()}, you are in charge of scheduling the 1-1.\n"
        for pair in pairs
    ]
    if leftover is not None:
        lines.append(f"* {leftover.member.mention()} couldn't be paired with anyone.\n")

    return "".join(lines)
