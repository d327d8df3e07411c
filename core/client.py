"""
Chain client adapter for the finality benchmark.

The measurement engine only sees the ChainClient protocol; Web3ChainClient
binds it to a JSON-RPC endpoint.
"""
import typing as t

from web3 import Web3
from web3.exceptions import TransactionNotFound

from .clock import SystemClock, check_deadline
from .errors import ConnectivityError, SubmissionError
from .injector import TransferInjector
from .models import InclusionReceipt, RetryPolicy, TransferSpec
from .network import rpc_call


class ChainClient(t.Protocol):
    def get_balance(self, address: str) -> int: ...

    def submit_transfer(self, spec: TransferSpec) -> str: ...

    def await_inclusion(
        self, tx_hash: str, deadline: t.Optional[float] = None
    ) -> InclusionReceipt: ...

    def current_height(self) -> int: ...


class Web3ChainClient:
    """
    ChainClient over a Web3 connection.

    Usage:
        web3 = ConnectionManager().get_web3("https://rpc.sepolia.org")
        client = Web3ChainClient(web3, TransferInjector(account, 11155111))
        tx_hash = client.submit_transfer(spec)
        receipt = client.await_inclusion(tx_hash)
    """

    def __init__(
        self,
        web3: Web3,
        injector: TransferInjector,
        clock: t.Optional[SystemClock] = None,
        inclusion_timeout: float = 180.0,
        poll_interval: float = 1.0,
        retry_policy: t.Optional[RetryPolicy] = None,
    ) -> None:
        self.web3 = web3
        self.injector = injector
        self.clock = clock or SystemClock()
        self.inclusion_timeout = inclusion_timeout
        self.poll_interval = poll_interval
        self.retry_policy = retry_policy or RetryPolicy()

    def get_balance(self, address: str) -> int:
        with rpc_call("Balance query"):
            balance = self.web3.eth.get_balance(Web3.to_checksum_address(address))
        if not isinstance(balance, int):
            raise ConnectivityError(f"Balance query returned non-integer {balance!r}")
        return balance

    def submit_transfer(self, spec: TransferSpec) -> str:
        return self.injector.send_transfer(self.web3, spec)

    def current_height(self) -> int:
        with rpc_call("Block number query"):
            height = self.web3.eth.block_number
        if not isinstance(height, int) or height < 0:
            raise ConnectivityError(f"Block number query returned {height!r}")
        return height

    def _fetch_receipt(self, tx_hash: str) -> t.Optional[t.Any]:
        with rpc_call("Receipt query"):
            try:
                return self.web3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                return None

    def await_inclusion(
        self, tx_hash: str, deadline: t.Optional[float] = None
    ) -> InclusionReceipt:
        """
        Poll for the receipt of `tx_hash` until it is mined.

        Gives up with DeadlineExceededError after `inclusion_timeout` seconds,
        or at `deadline` (a clock instant) if that comes first.
        """
        ceiling = self.clock.now() + self.inclusion_timeout
        if deadline is not None:
            ceiling = min(ceiling, deadline)

        failures = 0
        while True:
            self.clock.raise_if_cancelled()
            try:
                receipt = self._fetch_receipt(tx_hash)
                failures = 0
            except ConnectivityError:
                if failures >= self.retry_policy.attempts:
                    raise
                delay = self.retry_policy.delay(failures)
                failures += 1
                print(f"[Client] Receipt query failed, retry {failures}/{self.retry_policy.attempts} in {delay:.1f}s")
                check_deadline(self.clock, ceiling, f"Inclusion of {tx_hash}")
                self.clock.sleep(delay)
                continue

            # Some nodes return a receipt with a null blockNumber while pending
            if receipt is not None and receipt.get("blockNumber") is not None:
                block_number = int(receipt["blockNumber"])
                if receipt.get("status") == 0:
                    raise SubmissionError(f"Transfer {tx_hash} reverted in block {block_number}")
                return InclusionReceipt(tx_hash=tx_hash, block_number=block_number)

            check_deadline(self.clock, ceiling, f"Inclusion of {tx_hash}")
            self.clock.sleep(self.poll_interval)
