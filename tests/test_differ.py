"""
Tests for differ.py - job list comparison keyed on activity id.
"""

import pytest

from jobboard.differ import ChangeReport, Outcome, activity_id, compare


class TestBootstrapAndNoData:
    """Absent inputs short-circuit the diff."""

    def test_no_old_jobs_is_init(self, job):
        """No cached jobs means first sync: is_init, no changes, no lists."""
        fresh = [job(1), job(2), job(3)]

        report = compare(fresh, None)

        assert report.outcome is Outcome.BOOTSTRAP
        assert report.to_dict() == {"is_init": True, "has_changes": False}
        assert report.added_jobs is None
        assert report.removed_jobs is None

    def test_no_old_jobs_wins_over_no_fresh_jobs(self):
        """Both absent is still the bootstrap case."""
        assert compare(None, None).to_dict() == {"is_init": True, "has_changes": False}

    @pytest.mark.parametrize("fresh", [[], [{"activity": {"id": 1}}]])
    def test_bootstrap_regardless_of_fresh_contents(self, fresh):
        """compare(X, None) never depends on X."""
        assert compare(fresh, None).to_dict() == {"is_init": True, "has_changes": False}

    def test_no_fresh_jobs_has_no_changes(self, job):
        """Nothing fetched: not init, no changes and no added/removed keys."""
        old = [job(1), job(2), job(3)]

        report = compare(None, old)

        assert report.outcome is Outcome.NO_FRESH_DATA
        assert report.to_dict() == {"is_init": False, "has_changes": False}


class TestDiff:
    """Both lists present."""

    def test_same_jobs_have_no_changes(self, job):
        """A list compared with itself yields empty lists."""
        jobs = [job(1), job(2), job(3)]

        report = compare(jobs, jobs)

        assert report.to_dict() == {
            "is_init": False,
            "has_changes": False,
            "added_jobs": [],
            "removed_jobs": [],
        }

    def test_equal_values_have_no_changes(self, job):
        """Equal lists that are distinct objects behave the same."""
        report = compare([job(1), job(2)], [job(1), job(2)])
        assert not report.has_changes
        assert report.added_jobs == []
        assert report.removed_jobs == []

    def test_added_and_removed_jobs(self, job):
        """1,2,3 -> 2,3,4,5 adds 4 and 5 and removes 1."""
        job1, job2, job3, job4, job5 = (job(i) for i in range(1, 6))

        report = compare([job2, job3, job4, job5], [job1, job2, job3])

        assert report.to_dict() == {
            "is_init": False,
            "has_changes": True,
            "added_jobs": [job4, job5],
            "removed_jobs": [job1],
        }

    def test_empty_old_list_is_not_init(self, job):
        """An empty cached list is a real snapshot: every fresh job is added."""
        fresh = [job(1), job(2)]

        report = compare(fresh, [])

        assert not report.is_init
        assert report.has_changes
        assert report.added_jobs == fresh
        assert report.removed_jobs == []

    def test_empty_fresh_list_removes_everything(self, job):
        old = [job(1), job(2)]
        report = compare([], old)
        assert report.removed_jobs == old
        assert report.added_jobs == []
        assert report.has_changes

    def test_identity_is_activity_id_only(self, job):
        """Same activity on another project is neither added nor removed."""
        old = [job(1, project_id="alpha")]
        fresh = [job(1, project_id="beta", title="Renamed")]

        report = compare(fresh, old)

        assert not report.has_changes
        assert report.added_jobs == []
        assert report.removed_jobs == []

    def test_order_is_preserved(self, job):
        """Added keeps fresh order, removed keeps old order."""
        old = [job(9), job(1), job(7), job(5)]
        fresh = [job(8), job(1), job(2), job(6)]

        report = compare(fresh, old)

        assert [activity_id(j) for j in report.added_jobs] == [8, 2, 6]
        assert [activity_id(j) for j in report.removed_jobs] == [9, 7, 5]

    def test_added_and_removed_swap_symmetrically(self, job):
        """added of compare(A, B) equals removed of compare(B, A)."""
        a = [job(1), job(2), job(4)]
        b = [job(2), job(3)]

        forward = compare(a, b)
        backward = compare(b, a)

        assert forward.added_jobs == backward.removed_jobs
        assert forward.removed_jobs == backward.added_jobs

    def test_job_without_activity_id_never_matches(self, job):
        """Malformed jobs show up as added and removed every time."""
        malformed_old = {"project": {"id": "p"}, "activity": {"title": "no id"}}
        malformed_fresh = {"project": {"id": "p"}}

        report = compare([job(1), malformed_fresh], [job(1), malformed_old])

        assert report.added_jobs == [malformed_fresh]
        assert report.removed_jobs == [malformed_old]
        assert report.has_changes


class TestChangeReport:
    """ChangeReport flags."""

    def test_has_changes_false_for_non_diff_outcomes(self):
        assert not ChangeReport(Outcome.BOOTSTRAP).has_changes
        assert not ChangeReport(Outcome.NO_FRESH_DATA).has_changes

    def test_is_init_only_for_bootstrap(self):
        assert ChangeReport(Outcome.BOOTSTRAP).is_init
        assert not ChangeReport(Outcome.NO_FRESH_DATA).is_init
        assert not ChangeReport(Outcome.DIFFED, [], []).is_init

    def test_activity_id_of_malformed_records(self):
        assert activity_id({"activity": {"id": 3}}) == 3
        assert activity_id({"activity": None}) is None
        assert activity_id({}) is None
