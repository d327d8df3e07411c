"""
Error taxonomy for the finality benchmark.

Every failure surfaced by the measurement engine derives from BenchmarkError.
`kind` is the stable name reported at the HTTP boundary.
"""


class BenchmarkError(Exception):
    kind = "BenchmarkError"


class ConnectivityError(BenchmarkError):
    """Node unreachable, timed out, or returned malformed data."""
    kind = "ConnectivityError"


class SubmissionError(BenchmarkError):
    """Node rejected the transfer (nonce conflict, underpriced, reverted...)."""
    kind = "SubmissionError"


class InsufficientFundsError(BenchmarkError):
    kind = "InsufficientFundsError"


class DeadlineExceededError(BenchmarkError, TimeoutError):
    """Inclusion or confirmation depth not observed before the deadline."""
    kind = "TimeoutError"


class InvalidConfigurationError(BenchmarkError, ValueError):
    kind = "InvalidConfigurationError"


class RunCancelledError(BenchmarkError):
    """The caller aborted the run."""
    kind = "CancelledError"
