"""
Data records exchanged between the tracker, trial runner and aggregator.
"""
import typing as t
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidConfigurationError


class TrialState(Enum):
    PRECHECK = "precheck"
    SUBMITTED = "submitted"
    INCLUDED = "included"
    SOFT_FINAL = "soft_final"
    HARD_FINAL = "hard_final"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class TransferSpec:
    """
    One run's transfer parameters.

    value is in wei. Depths count blocks mined on top of the inclusion block.
    poll_interval and trial_deadline are seconds.
    """
    sender: str
    recipient: str
    value: int
    soft_depth: int = 6
    hard_depth: int = 12
    poll_interval: float = 1.0
    trial_deadline: t.Optional[float] = None

    def __post_init__(self) -> None:
        if self.value < 0:
            raise InvalidConfigurationError(f"Transfer value must not be negative, got {self.value}")
        if self.soft_depth < 1 or self.hard_depth < 1:
            raise InvalidConfigurationError(
                f"Confirmation depths must be at least 1, got {self.soft_depth}/{self.hard_depth}"
            )
        if self.poll_interval <= 0:
            raise InvalidConfigurationError(f"Poll interval must be positive, got {self.poll_interval}")
        if self.trial_deadline is not None and self.trial_deadline <= 0:
            raise InvalidConfigurationError(f"Trial deadline must be positive, got {self.trial_deadline}")


@dataclass(frozen=True)
class InclusionReceipt:
    tx_hash: str
    block_number: int


@dataclass(frozen=True)
class TrialResult:
    """
    Milliseconds elapsed since submission (T0) for each milestone.
    Soft and hard are cumulative from T0, not from inclusion.
    """
    first_confirmation_ms: float
    soft_finality_ms: float
    hard_finality_ms: float


@dataclass(frozen=True)
class AggregateResult:
    average_first_confirmation_ms: float
    average_soft_finality_ms: float
    average_hard_finality_ms: float
    trials: int

    def to_dict(self) -> t.Dict[str, t.Any]:
        """Response body using the field names the web UI expects."""
        return {
            "averagefirstConfirmationTime": self.average_first_confirmation_ms,
            "averageSoftFinality": self.average_soft_finality_ms,
            "averageHardFinality": self.average_hard_finality_ms,
            "trials": self.trials,
        }


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry for transient height-query failures.

    attempts is the number of consecutive failures tolerated before the
    error propagates; the n-th retry waits backoff * 2**n seconds.
    """
    attempts: int = 3
    backoff: float = 1.0

    def delay(self, retry_index: int) -> float:
        return self.backoff * (2 ** retry_index)
