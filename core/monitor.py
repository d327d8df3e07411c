"""
Confirmation depth monitoring for the finality benchmark.
Polls chain height until an included transfer is buried deep enough.
"""
import typing as t

from .client import ChainClient
from .clock import SystemClock, check_deadline
from .errors import ConnectivityError, InvalidConfigurationError
from .models import InclusionReceipt, RetryPolicy


def count_confirmations(latest_block: int, inclusion_block: int) -> int:
    """
    Blocks mined on top of the inclusion block.

    The inclusion block itself counts as zero. A node lagging behind the one
    that reported the receipt can return a lower height; that counts as zero
    rather than negative.
    """
    return max(0, latest_block - inclusion_block)


class ConfirmationTracker:
    """
    Waits for a receipt to reach a confirmation depth.

    Usage:
        tracker = ConfirmationTracker(client, poll_interval=1.0)
        soft_at = tracker.wait_for_depth(receipt, 6)
        hard_at = tracker.wait_for_depth(receipt, 12)

    Stateless between calls: the second call resumes from whatever height
    the chain is at, it never re-queries inclusion or resubmits.
    """

    def __init__(
        self,
        client: ChainClient,
        poll_interval: float = 1.0,
        clock: t.Optional[SystemClock] = None,
        retry_policy: t.Optional[RetryPolicy] = None,
    ) -> None:
        if poll_interval <= 0:
            raise InvalidConfigurationError(f"Poll interval must be positive, got {poll_interval}")
        self.client = client
        self.poll_interval = poll_interval
        self.clock = clock or SystemClock()
        self.retry_policy = retry_policy or RetryPolicy()

    def _poll_height(self, deadline: t.Optional[float]) -> int:
        """
        One height observation, retrying transient failures with backoff.
        """
        failures = 0
        while True:
            self.clock.raise_if_cancelled()
            try:
                return self.client.current_height()
            except ConnectivityError as e:
                if failures >= self.retry_policy.attempts:
                    print(f"[Tracker] Height query failed {failures + 1} times in a row, giving up")
                    raise
                delay = self.retry_policy.delay(failures)
                failures += 1
                print(f"[Tracker] Height query failed ({e}), retry {failures}/{self.retry_policy.attempts} in {delay:.1f}s")
                check_deadline(self.clock, deadline, "Confirmation depth")
                self.clock.sleep(delay)

    def wait_for_depth(
        self,
        receipt: InclusionReceipt,
        required_depth: int,
        deadline: t.Optional[float] = None,
        poll_interval: t.Optional[float] = None,
    ) -> float:
        """
        Block until `required_depth` confirmations are observed.

        Args:
            receipt: Inclusion receipt of the tracked transfer.
            required_depth: Blocks needed on top of the inclusion block.
            deadline: Optional clock instant after which DeadlineExceededError
                is raised.
            poll_interval: Overrides the tracker default for this wait.

        Returns:
            Clock instant of the poll that first observed the depth.
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        if interval <= 0:
            raise InvalidConfigurationError(f"Poll interval must be positive, got {interval}")
        while True:
            latest = self._poll_height(deadline)
            confirmations = count_confirmations(latest, receipt.block_number)
            print(f"[Tracker] Confirmations: {confirmations}/{required_depth}")
            if confirmations >= required_depth:
                return self.clock.now()

            check_deadline(self.clock, deadline, f"{required_depth} confirmations")
            self.clock.sleep(interval)
