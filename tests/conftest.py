"""Pytest configuration and fixtures."""

import typing as t
from collections import Counter

import pytest

from core.errors import RunCancelledError
from core.models import InclusionReceipt, TransferSpec

# Well-known development key (Hardhat account #0); never funded on a real network.
DEV_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
DEV_MNEMONIC = "test test test test test test test test test test test junk"


class FakeClock:
    """Virtual clock: sleep advances time instantly and is recorded."""

    def __init__(self, start: float = 1000.0, cancel_after_sleeps: t.Optional[int] = None) -> None:
        self.time = start
        self.sleeps: t.List[float] = []
        self.cancel_after_sleeps = cancel_after_sleeps
        self._cancelled = False

    def now(self) -> float:
        return self.time

    def sleep(self, seconds: float) -> None:
        if self._cancelled:
            raise RunCancelledError("Run cancelled by caller")
        self.sleeps.append(seconds)
        self.time += seconds
        if self.cancel_after_sleeps is not None and len(self.sleeps) >= self.cancel_after_sleeps:
            self._cancelled = True

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RunCancelledError("Run cancelled by caller")


class FakeChainClient:
    """
    Scripted ChainClient.

    Without `heights`, every current_height() call mines one block on top of
    the inclusion block. With `heights`, values are returned in order and
    exception instances are raised.
    """

    def __init__(
        self,
        clock: FakeClock,
        balance: int = 10 ** 18,
        inclusion_block: int = 100,
        inclusion_delay: float = 12.0,
        heights: t.Optional[t.Iterable[t.Any]] = None,
        submit_error: t.Optional[Exception] = None,
        inclusion_error: t.Optional[Exception] = None,
    ) -> None:
        self.clock = clock
        self.balance = balance
        self.inclusion_block = inclusion_block
        self.inclusion_delay = inclusion_delay
        self.height = inclusion_block
        self.heights = list(heights) if heights is not None else None
        self.submit_error = submit_error
        self.inclusion_error = inclusion_error
        self.calls: Counter = Counter()
        self.inclusion_deadlines: t.List[t.Optional[float]] = []
        self._tx_counter = 0

    def get_balance(self, address: str) -> int:
        self.calls["get_balance"] += 1
        return self.balance

    def submit_transfer(self, spec: TransferSpec) -> str:
        self.calls["submit_transfer"] += 1
        if self.submit_error is not None:
            raise self.submit_error
        self._tx_counter += 1
        return "0x" + f"{self._tx_counter:064x}"

    def await_inclusion(self, tx_hash: str, deadline: t.Optional[float] = None) -> InclusionReceipt:
        self.calls["await_inclusion"] += 1
        self.inclusion_deadlines.append(deadline)
        if self.inclusion_error is not None:
            raise self.inclusion_error
        self.clock.time += self.inclusion_delay
        self.height = self.inclusion_block
        return InclusionReceipt(tx_hash=tx_hash, block_number=self.inclusion_block)

    def current_height(self) -> int:
        self.calls["current_height"] += 1
        if self.heights is not None:
            item = self.heights.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        self.height += 1
        return self.height


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def spec() -> TransferSpec:
    return TransferSpec(
        sender=DEV_ADDRESS,
        recipient=DEV_ADDRESS,
        value=10 ** 15,
        soft_depth=6,
        hard_depth=12,
        poll_interval=1.0,
        trial_deadline=600.0,
    )


@pytest.fixture
def receipt() -> InclusionReceipt:
    return InclusionReceipt(tx_hash="0x" + "ab" * 32, block_number=100)


@pytest.fixture
def dev_env() -> t.Dict[str, str]:
    return {"PRIVATE_KEY": DEV_PRIVATE_KEY}
