"""Match scoring for revealed whiskies.

Points reward sensory agreement: whenever two or more participants pick the
same value for a comparable attribute, each of them earns the group 10
points. The overall star score is a matter of taste and is never scored.
"""
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional

from schemas import BreakdownEntry, Rating

POINTS_PER_MATCH = 10


class Category(NamedTuple):
    label: str
    values: Callable[[Rating], Iterable]
    display: Callable[[object], str]


def _scalar(attr: str):
    def values(rating: Rating):
        value = getattr(rating, attr)
        return [] if value is None else [value]
    return values


# Declaration order is breakdown order
CATEGORIES = (
    Category("Aroma Intensiteit", _scalar("aroma_intensity"), lambda v: f"Intensiteit {v}"),
    Category("Aroma Rokerigheid", _scalar("aroma_smokiness"), lambda v: f"Rokerigheid {v}"),
    Category("Aroma Zoetheid", _scalar("aroma_sweetness"), lambda v: f"Zoetheid {v}"),
    Category("Kleur", _scalar("color"), str),
    Category("Smaakbeleving", lambda r: r.flavor_notes, str),
)


class PointsResult(NamedTuple):
    total: int
    breakdown: List[BreakdownEntry]


def _group(ratings: List[Rating], values: Callable[[Rating], Iterable]) -> Dict[object, Dict[str, str]]:
    """value -> {participant_id: participant_name}"""
    groups: Dict[object, Dict[str, str]] = {}
    for rating in ratings:
        for value in values(rating):
            groups.setdefault(value, {})[rating.participant_id] = rating.participant_name
    return groups


def score_category(ratings: List[Rating], category: Category) -> List[BreakdownEntry]:
    entries = []
    groups = _group(ratings, category.values)
    for value in sorted(groups):
        members = groups[value]
        if len(members) < 2:
            continue
        entries.append(BreakdownEntry(
            category=category.label,
            value=category.display(value),
            matches=len(members),
            points=POINTS_PER_MATCH * len(members),
            matched_participants=sorted(members.values()),
        ))
    return entries


def compute_points(ratings: List[Rating], categories: Optional[Iterable[Category]] = None) -> PointsResult:
    """
    Score the ratings of one whisky.

    Participants are identified by participant id, so two people who happen
    to share a display name are still counted separately.

    Returns:
        PointsResult with the summed total and one breakdown entry per
        matched value, ordered by category then value.
    """
    if len(ratings) < 2:
        return PointsResult(0, [])

    breakdown: List[BreakdownEntry] = []
    for category in categories or CATEGORIES:
        breakdown.extend(score_category(ratings, category))

    return PointsResult(sum(entry.points for entry in breakdown), breakdown)
