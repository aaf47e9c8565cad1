"""
Job synchronization service.

Fetches staffing jobs from Octopod, keeps the latest list in the cache and
reports what changed since the previous cycle.
"""

from typing import Any, Dict, List, Optional

from .cache import JOBS_CACHE_KEY
from .differ import ChangeReport, compare
from .logger import get_logger
from .mailing import MailError
from . import serializers

logger = get_logger()


class JobService:
    """
    Orchestrates the Octopod client, the serializer, the cache, the
    subscription store and the mailer. All collaborators are injected.

    Cycles must not overlap on the same cache: nothing here locks the cache
    key, callers run one cycle at a time.
    """

    def __init__(self, client, cache, subscriptions=None, mailer=None, serializer=None):
        self.client = client
        self.cache = cache
        self.subscriptions = subscriptions
        self.mailer = mailer
        self.serializer = serializer or serializers

    def fetch_and_cache_jobs(self) -> List[Dict[str, Any]]:
        """
        Fetch jobs from Octopod, overwrite the cached list and return it.

        Any error from the client or the serializer propagates and leaves the
        cache untouched.
        """
        access_token = self.client.get_access_token()
        projects = self.client.fetch_projects_to_be_staffed(access_token)
        activities = self.client.fetch_activities_to_be_staffed(access_token, projects)
        jobs = self.serializer.serialize(projects, activities)
        self.cache.set(JOBS_CACHE_KEY, jobs)
        logger.debug(f"Cached {len(jobs)} jobs", key=JOBS_CACHE_KEY)
        return jobs

    def get_jobs(self) -> List[Dict[str, Any]]:
        """Return cached jobs, fetching them only on a cache miss."""
        jobs = self.cache.get(JOBS_CACHE_KEY)
        if jobs is not None:
            return jobs
        logger.info("Jobs cache miss, fetching from Octopod")
        return self.fetch_and_cache_jobs()

    def compare_fetched_and_cached_jobs(
        self, fresh_jobs: Optional[List[Dict[str, Any]]], old_jobs: Optional[List[Dict[str, Any]]]
    ) -> ChangeReport:
        return compare(fresh_jobs, old_jobs)

    def synchronize_jobs(self) -> ChangeReport:
        """
        Run one synchronization cycle.

        Reads the cached jobs, refetches and recaches unconditionally, diffs
        the fresh list against the pre-fetch snapshot and emails subscribers
        when jobs were added or removed. The report is returned whether or
        not an email went out: a mail failure is logged and counted
        but does not fail the cycle.
        """
        logger.record_sync_attempt()
        try:
            old_jobs = self.cache.get(JOBS_CACHE_KEY)
            fresh_jobs = self.fetch_and_cache_jobs()
            report = self.compare_fetched_and_cached_jobs(fresh_jobs, old_jobs)

            if report.is_init:
                logger.info(f"First synchronization, {len(fresh_jobs)} jobs cached")
            elif report.has_changes:
                logger.info(
                    "Jobs changed",
                    added=len(report.added_jobs),
                    removed=len(report.removed_jobs),
                )
                self._notify(report)
            else:
                logger.info("No job changes")
        except Exception as e:
            logger.record_sync_failure(type(e).__name__)
            logger.error(f"Synchronization failed: {e}", error_type=type(e).__name__)
            raise

        logger.record_sync_success(
            added=len(report.added_jobs or []),
            removed=len(report.removed_jobs or []),
        )
        return report

    def _notify(self, report: ChangeReport) -> None:
        if self.subscriptions is None or self.mailer is None:
            logger.debug("No subscription store or mailer configured, skipping notification")
            return
        recipients = [sub.email for sub in self.subscriptions.all()]
        if not recipients:
            logger.info("Jobs changed but nobody is subscribed")
            return
        try:
            self.mailer.send_jobs_changed_email(report, recipients)
        except MailError as e:
            # The fresh list is already cached, so a retried cycle would see no changes.
            logger.record_notification_failure(type(e).__name__)
            logger.error(
                f"Jobs changed but notification failed: {e}",
                error_type=type(e).__name__,
                recipients=len(recipients),
            )
            return
        logger.record_notification()
