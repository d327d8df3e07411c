"""
Unit tests for trial aggregation.
"""

import pytest

from core.aggregator import Aggregator, average_results, sender_lock
from core.errors import DeadlineExceededError, InvalidConfigurationError, RunCancelledError, SubmissionError
from core.models import TrialResult
from core.monitor import ConfirmationTracker
from core.trial import TrialRunner

from conftest import FakeChainClient, FakeClock


class ScriptedRunner:
    """Returns (or raises) pre-built trial outcomes in order."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def run_trial(self, spec):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def result(first, soft=None, hard=None):
    soft = first if soft is None else soft
    hard = soft if hard is None else hard
    return TrialResult(first_confirmation_ms=first, soft_finality_ms=soft, hard_finality_ms=hard)


def test_average_of_three_trials_is_exact(spec):
    runner = ScriptedRunner([
        result(100.0, 1000.0, 2000.0),
        result(200.0, 1100.0, 2300.0),
        result(300.0, 1200.0, 2600.0),
    ])

    aggregate = Aggregator(runner).run(spec, 3)

    assert aggregate.average_first_confirmation_ms == 200.0
    assert aggregate.average_soft_finality_ms == 1100.0
    assert aggregate.average_hard_finality_ms == 2300.0
    assert aggregate.trials == 3


@pytest.mark.parametrize("trial_count", [0, -1, 1.5, None, True])
def test_invalid_trial_count_makes_no_adapter_calls(clock, spec, trial_count):
    client = FakeChainClient(clock)
    runner = TrialRunner(client, ConfirmationTracker(client, clock=clock), clock=clock)

    with pytest.raises(InvalidConfigurationError):
        Aggregator(runner).run(spec, trial_count)

    assert sum(client.calls.values()) == 0


@pytest.mark.parametrize("trial_count", [1, 2, 5])
def test_inclusion_timeout_aborts_run(clock, spec, trial_count):
    client = FakeChainClient(clock, inclusion_error=DeadlineExceededError("not mined"))
    runner = TrialRunner(client, ConfirmationTracker(client, clock=clock), clock=clock)

    with pytest.raises(DeadlineExceededError):
        Aggregator(runner).run(spec, trial_count)

    assert client.calls["await_inclusion"] == 1


def test_failed_trial_stops_remaining_trials(spec):
    runner = ScriptedRunner([result(100.0), SubmissionError("rejected"), result(300.0)])
    seen = []

    with pytest.raises(SubmissionError):
        Aggregator(runner, on_trial=lambda i, r: seen.append(i)).run(spec, 3)

    assert runner.calls == 2
    assert seen == [0]


def test_end_to_end_run_with_simulated_chain(clock, spec):
    client = FakeChainClient(clock, inclusion_delay=12.0)
    runner = TrialRunner(client, ConfirmationTracker(client, poll_interval=1.0, clock=clock), clock=clock)

    aggregate = Aggregator(runner).run(spec, 2)

    assert aggregate.average_first_confirmation_ms == pytest.approx(12_000)
    assert aggregate.average_soft_finality_ms == pytest.approx(17_000)
    assert aggregate.average_hard_finality_ms == pytest.approx(22_000)
    assert client.calls["submit_transfer"] == 2


def test_average_results_rejects_empty():
    with pytest.raises(InvalidConfigurationError):
        average_results([])


def test_sender_lock_is_shared_per_address():
    lower = sender_lock("0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266")
    checksummed = sender_lock("0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266")
    other = sender_lock("0x70997970C51812dc3A010C7d01b50e0d17dc79C8")

    assert lower is checksummed
    assert lower is not other


def test_run_releases_sender_lock_on_failure(spec):
    runner = ScriptedRunner([SubmissionError("rejected")])

    with pytest.raises(SubmissionError):
        Aggregator(runner).run(spec, 1)

    lock = sender_lock(spec.sender)
    assert lock.acquire(blocking=False)
    lock.release()


def test_cancellation_mid_trial_aborts_the_run(spec):
    clock = FakeClock(cancel_after_sleeps=2)
    client = FakeChainClient(clock, heights=[100] * 50)
    tracker = ConfirmationTracker(client, poll_interval=1.0, clock=clock)
    finished = []
    aggregator = Aggregator(TrialRunner(client, tracker, clock=clock), on_trial=lambda *args: finished.append(args))

    outcome = None
    with pytest.raises(RunCancelledError):
        outcome = aggregator.run(spec, 3)

    assert outcome is None
    assert finished == []
    assert client.calls["submit_transfer"] == 1
    assert not sender_lock(spec.sender).locked()
