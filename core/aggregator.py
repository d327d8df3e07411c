"""
Runs trials back to back and averages their milestones.
"""
import statistics
import threading
import typing as t
from collections import defaultdict

from .errors import InvalidConfigurationError
from .models import AggregateResult, TransferSpec, TrialResult
from .trial import TrialRunner

_sender_locks: t.Dict[str, threading.Lock] = defaultdict(threading.Lock)
_registry_lock = threading.Lock()


def sender_lock(address: str) -> threading.Lock:
    """
    Process-wide lock for one sender account. Two runs from the same
    sender would race on its nonce and balance.
    """
    with _registry_lock:
        return _sender_locks[address.lower()]


def average_results(results: t.Sequence[TrialResult]) -> AggregateResult:
    if not results:
        raise InvalidConfigurationError("Cannot average zero trials")
    return AggregateResult(
        average_first_confirmation_ms=statistics.mean(r.first_confirmation_ms for r in results),
        average_soft_finality_ms=statistics.mean(r.soft_finality_ms for r in results),
        average_hard_finality_ms=statistics.mean(r.hard_finality_ms for r in results),
        trials=len(results),
    )


class Aggregator:
    """
    Sequential trial loop for one run.

    Usage:
        aggregator = Aggregator(TrialRunner(client, tracker))
        result = aggregator.run(spec, trial_count=5)
    """

    def __init__(
        self,
        runner: TrialRunner,
        on_trial: t.Optional[t.Callable[[int, TrialResult], None]] = None,
    ) -> None:
        self.runner = runner
        self.on_trial = on_trial

    def run(self, spec: TransferSpec, trial_count: int) -> AggregateResult:
        """
        Execute `trial_count` trials strictly one after another.

        The first failing trial aborts the run; its error propagates and no
        partial average is produced.
        """
        if not isinstance(trial_count, int) or isinstance(trial_count, bool) or trial_count < 1:
            raise InvalidConfigurationError(f"trial_count must be a positive integer, got {trial_count!r}")

        results: t.List[TrialResult] = []
        with sender_lock(spec.sender):
            for i in range(trial_count):
                print(f"\n[Runner] --- Trial {i + 1} / {trial_count} ---")
                result = self.runner.run_trial(spec)
                results.append(result)
                if self.on_trial is not None:
                    self.on_trial(i, result)

        aggregate = average_results(results)
        print(
            f"[Runner] Averages over {aggregate.trials} trial(s): "
            f"first receipt {aggregate.average_first_confirmation_ms:.0f}ms, "
            f"soft {aggregate.average_soft_finality_ms:.0f}ms, "
            f"hard {aggregate.average_hard_finality_ms:.0f}ms"
        )
        return aggregate
