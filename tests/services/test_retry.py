"""Tests for apply_with_retry."""

import pytest

from workrequest_kernel.exceptions import DuplicateVoteError, StaleRequestError
from workrequest_services import apply_with_retry


class Flaky:
    """Raises StaleRequestError ``conflicts`` times, then returns ``result``."""

    def __init__(self, conflicts, result="done"):
        self.conflicts = conflicts
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.conflicts:
            raise StaleRequestError("req-1", self.calls)
        return self.result


class TestApplyWithRetry:

    def test_first_attempt(self):
        fn = Flaky(0)
        assert apply_with_retry(fn) == "done"
        assert fn.calls == 1

    def test_recovers_after_conflicts(self, captured_logs):
        fn = Flaky(2)
        assert apply_with_retry(fn, max_retries=3) == "done"
        assert fn.calls == 3

        retries = [r for r in captured_logs() if r["message"] == "conflict_retry"]
        assert [r["attempt"] for r in retries] == [1, 2]

    def test_gives_up(self, captured_logs):
        fn = Flaky(10)
        with pytest.raises(StaleRequestError):
            apply_with_retry(fn, max_retries=2)

        assert fn.calls == 3
        exhausted = [r for r in captured_logs() if r["message"] == "conflict_retries_exhausted"]
        assert exhausted[0]["attempts"] == 3

    def test_other_errors_are_not_retried(self):
        calls = []

        def fn():
            calls.append(1)
            raise DuplicateVoteError("p1", "alice")

        with pytest.raises(DuplicateVoteError):
            apply_with_retry(fn)
        assert len(calls) == 1
