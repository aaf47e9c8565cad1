"""
Job list comparison.

Two jobs are the same job when their activity ids are equal. The project a
job is attached to plays no part in identity: projects can rotate while an
activity persists, and such a job is reported as neither added nor removed.

A job without an activity id matches nothing, so it always shows up as
added (fresh side) or removed (old side).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .logger import get_logger

logger = get_logger()

Job = Dict[str, Any]


class Outcome(str, Enum):
    BOOTSTRAP = "bootstrap"          # no previous snapshot
    NO_FRESH_DATA = "no_fresh_data"  # nothing fetched to compare
    DIFFED = "diffed"


@dataclass
class ChangeReport:
    outcome: Outcome
    added_jobs: Optional[List[Job]] = None
    removed_jobs: Optional[List[Job]] = None

    @property
    def is_init(self) -> bool:
        return self.outcome is Outcome.BOOTSTRAP

    @property
    def has_changes(self) -> bool:
        if self.outcome is not Outcome.DIFFED:
            return False
        return bool(self.added_jobs) or bool(self.removed_jobs)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict form; added/removed keys only exist for a real diff."""
        report: Dict[str, Any] = {
            "is_init": self.is_init,
            "has_changes": self.has_changes,
        }
        if self.outcome is Outcome.DIFFED:
            report["added_jobs"] = list(self.added_jobs or [])
            report["removed_jobs"] = list(self.removed_jobs or [])
        return report


def activity_id(job: Job) -> Any:
    """Return the activity id of a job, or None when it has none."""
    activity = job.get("activity") if isinstance(job, dict) else None
    if not isinstance(activity, dict):
        return None
    return activity.get("id")


def _activity_ids(jobs: List[Job]) -> Set[Any]:
    ids = set()
    for job in jobs:
        job_id = activity_id(job)
        if job_id is None:
            logger.warning("Job without activity id, it will never match", job=job)
            continue
        ids.add(job_id)
    return ids


def _missing_from(jobs: List[Job], known_ids: Set[Any]) -> List[Job]:
    # None is never in known_ids
    return [job for job in jobs if activity_id(job) not in known_ids]


def compare(fresh_jobs: Optional[List[Job]], old_jobs: Optional[List[Job]]) -> ChangeReport:
    """
    Compare freshly fetched jobs against the previously cached ones.

    Args:
        fresh_jobs: Jobs just fetched, or None when nothing was fetched
        old_jobs: Jobs from the cache, or None when nothing was cached yet

    Returns:
        ChangeReport tagged BOOTSTRAP when old_jobs is None, NO_FRESH_DATA
        when fresh_jobs is None, DIFFED otherwise. Added jobs keep the order
        of fresh_jobs and removed jobs keep the order of old_jobs.
    """
    if old_jobs is None:
        return ChangeReport(Outcome.BOOTSTRAP)
    if fresh_jobs is None:
        return ChangeReport(Outcome.NO_FRESH_DATA)

    old_ids = _activity_ids(old_jobs)
    fresh_ids = _activity_ids(fresh_jobs)

    return ChangeReport(
        Outcome.DIFFED,
        added_jobs=_missing_from(fresh_jobs, old_ids),
        removed_jobs=_missing_from(old_jobs, fresh_ids),
    )
