"""Talent-pool membership and pool statistics.

``qualify`` is the only definition of who counts as a talent profile.
Search and statistics both go through it.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from talent_engine.errors import CollaboratorError
from talent_engine.profile.models import Profile, SignalSet, aware_utc
from talent_engine.storage.store import ProfilePredicates, TalentStore

logger = logging.getLogger("talent_engine.talent.qualification")

TOP_SKILLS_LIMIT = 10
TOP_LOCATIONS_LIMIT = 10


def qualify(profile: Profile, signals: Optional[SignalSet]) -> bool:
    """True when the profile opted in or has any talent signal.

    A profile with no opt-in but a single orphaned skill assignment still
    qualifies: signals imply intent.
    """
    if profile.talent_opt:
        return True
    return signals is not None and not signals.is_empty()


@dataclass
class TalentPoolStats:
    total_profiles: int = 0
    profiles_with_assessment: int = 0
    looking_for_work: int = 0
    new_this_week: int = 0
    new_this_month: int = 0
    top_skills: list[tuple[str, int]] = field(default_factory=list)
    location_distribution: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_profiles": self.total_profiles,
            "profiles_with_assessment": self.profiles_with_assessment,
            "looking_for_work": self.looking_for_work,
            "new_this_week": self.new_this_week,
            "new_this_month": self.new_this_month,
            "top_skills": [{"name": n, "count": c} for n, c in self.top_skills],
            "location_distribution": [{"location": loc, "count": c} for loc, c in self.location_distribution],
        }


def talent_pool_stats(store: TalentStore, aggregator, now: Optional[datetime] = None) -> TalentPoolStats:
    """Aggregate statistics over every qualified profile."""
    now = now or datetime.now(timezone.utc)

    try:
        profiles = store.fetch_profiles(ProfilePredicates())
    except Exception as e:
        logger.error("Profile fetch for statistics failed: %s", e)
        raise CollaboratorError("fetch_profiles", str(e)) from e

    if not profiles:
        return TalentPoolStats()

    signals = aggregator.aggregate([p.id for p in profiles])
    pool = [(p, signals[p.id]) for p in profiles if qualify(p, signals[p.id].signals)]

    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    skill_counts: Counter[str] = Counter()
    location_counts: Counter[str] = Counter()
    for profile, candidate in pool:
        skill_counts.update(candidate.skill_names)
        if profile.location:
            location_counts[profile.location] += 1

    stats = TalentPoolStats(
        total_profiles=len(pool),
        profiles_with_assessment=sum(1 for _, c in pool if c.signals.assessment is not None),
        looking_for_work=sum(1 for p, _ in pool if p.looking_for_work),
        new_this_week=sum(1 for p, _ in pool if aware_utc(p.created_at) >= week_ago),
        new_this_month=sum(1 for p, _ in pool if aware_utc(p.created_at) >= month_ago),
        top_skills=skill_counts.most_common(TOP_SKILLS_LIMIT),
        location_distribution=location_counts.most_common(TOP_LOCATIONS_LIMIT),
    )
    logger.info(
        "Talent pool: %d of %d profiles qualify (%d looking for work)",
        stats.total_profiles, len(profiles), stats.looking_for_work,
    )
    return stats
