"""Unit tests for the debounce (fudge) wrapper."""

import pytest

from lemonblocks.debounce import Debouncer


class TestDebouncer:
    """Test that bursts collapse into a single delayed call."""

    def test_single_trigger_runs_after_delay(self, scheduler):
        """Test one trigger runs the callback delay ms later."""
        calls = []
        debouncer = Debouncer(scheduler, 20, lambda: calls.append(scheduler.now_ms()))

        debouncer.trigger()
        scheduler.advance(19)
        assert calls == []
        scheduler.advance(1)
        assert calls == [20]

    @pytest.mark.parametrize("burst", [2, 5, 50])
    def test_burst_runs_once_after_last_trigger(self, scheduler, burst):
        """Test a burst of triggers spaced below the delay runs exactly once."""
        calls = []
        debouncer = Debouncer(scheduler, 500, lambda: calls.append(scheduler.now_ms()))

        for _ in range(burst):
            debouncer.trigger()
            scheduler.advance(120)
        last_trigger = scheduler.now_ms() - 120

        scheduler.advance(1000)
        assert calls == [last_trigger + 500]

    def test_at_most_one_pending_timer(self, scheduler):
        """Test repeated triggers never leave more than one timer pending."""
        debouncer = Debouncer(scheduler, 50, lambda: None)
        for _ in range(10):
            debouncer.trigger()
            assert scheduler.pending == 1
        assert debouncer.pending

    def test_spaced_triggers_run_separately(self, scheduler):
        """Test triggers further apart than the delay each run."""
        calls = []
        debouncer = Debouncer(scheduler, 20, lambda: calls.append(scheduler.now_ms()))

        debouncer.trigger()
        scheduler.advance(50)
        debouncer.trigger()
        scheduler.advance(50)
        assert calls == [20, 70]

    def test_cancel(self, scheduler):
        """Test cancel drops the pending call."""
        calls = []
        debouncer = Debouncer(scheduler, 20, lambda: calls.append(1))
        debouncer.trigger()
        debouncer.cancel()

        scheduler.advance(100)
        assert calls == []
        assert not debouncer.pending
