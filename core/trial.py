"""
Single end-to-end finality trial.
"""
import typing as t

from web3 import Web3

from .client import ChainClient
from .clock import SystemClock
from .errors import InsufficientFundsError
from .models import TransferSpec, TrialResult, TrialState
from .monitor import ConfirmationTracker


class TrialRunner:
    """
    Drives one transfer through PRECHECK -> SUBMITTED -> INCLUDED ->
    SOFT_FINAL -> HARD_FINAL -> DONE.

    Any failure moves the runner to FAILED and re-raises unchanged; no
    partial TrialResult is ever returned.
    """

    def __init__(
        self,
        client: ChainClient,
        tracker: ConfirmationTracker,
        clock: t.Optional[SystemClock] = None,
    ) -> None:
        self.client = client
        self.tracker = tracker
        self.clock = clock or tracker.clock
        self.state = TrialState.PRECHECK
        self.transitions: t.List[TrialState] = []

    def _enter(self, state: TrialState) -> None:
        self.state = state
        self.transitions.append(state)

    def precheck(self, spec: TransferSpec) -> int:
        """
        Advisory balance check; the balance can still change before submission.
        """
        balance = self.client.get_balance(spec.sender)
        print(f"[Trial] Balance of sender ({spec.sender}): {Web3.from_wei(balance, 'ether')} ETH")
        if balance < spec.value:
            raise InsufficientFundsError(
                f"Sender {spec.sender} holds {balance} wei, transfer needs {spec.value} wei"
            )
        return balance

    def run_trial(self, spec: TransferSpec) -> TrialResult:
        self.transitions = []
        try:
            return self._run(spec)
        except BaseException:
            self._enter(TrialState.FAILED)
            raise

    def _run(self, spec: TransferSpec) -> TrialResult:
        self._enter(TrialState.PRECHECK)
        self.precheck(spec)

        start_time = self.clock.now()
        deadline = start_time + spec.trial_deadline if spec.trial_deadline else None
        tx_hash = self.client.submit_transfer(spec)
        self._enter(TrialState.SUBMITTED)
        print(f"[Trial] Transfer {tx_hash} of {Web3.from_wei(spec.value, 'ether')} ETH to {spec.recipient} sent")

        receipt = self.client.await_inclusion(tx_hash, deadline=deadline)
        first_confirmation_ms = (self.clock.now() - start_time) * 1000
        self._enter(TrialState.INCLUDED)
        print(f"[Trial] Included in block {receipt.block_number}")
        print(f"[Trial] Time to first receipt: {first_confirmation_ms / 1000:.2f}s")

        soft_at = self.tracker.wait_for_depth(
            receipt, spec.soft_depth, deadline=deadline, poll_interval=spec.poll_interval
        )
        soft_finality_ms = (soft_at - start_time) * 1000
        self._enter(TrialState.SOFT_FINAL)
        print(f"[Trial] Soft finality reached at block {receipt.block_number + spec.soft_depth}")
        print(f"[Trial] Time to soft finality: {soft_finality_ms / 1000:.2f}s")

        hard_at = self.tracker.wait_for_depth(
            receipt, spec.hard_depth, deadline=deadline, poll_interval=spec.poll_interval
        )
        hard_finality_ms = (hard_at - start_time) * 1000
        self._enter(TrialState.HARD_FINAL)
        print(f"[Trial] Hard finality reached at block {receipt.block_number + spec.hard_depth}")
        print(f"[Trial] Time to hard finality: {hard_finality_ms / 1000:.2f}s")

        self._enter(TrialState.DONE)
        print(f"[Trial] Transfer {tx_hash} fully confirmed")
        return TrialResult(
            first_confirmation_ms=first_confirmation_ms,
            soft_finality_ms=soft_finality_ms,
            hard_finality_ms=hard_finality_ms,
        )
