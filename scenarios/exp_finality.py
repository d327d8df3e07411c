"""
Finality latency experiment.
Measures time to first receipt, soft finality and hard finality of a value
transfer against one RPC endpoint, averaged over TRIAL_COUNT trials.

Usage: `python -m scenarios.exp_finality https://rpc.sepolia.org`
"""
import signal
import sys
import os
import typing as t

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tqdm import tqdm

from config import BenchmarkConfig, load_config
from core.aggregator import Aggregator
from core.client import Web3ChainClient
from core.clock import SystemClock
from core.errors import BenchmarkError
from core.injector import TransferInjector
from core.models import AggregateResult, TrialResult
from core.monitor import ConfirmationTracker
from core.network import ConnectionManager
from core.trial import TrialRunner


def build_aggregator(
    config: BenchmarkConfig,
    endpoint: str,
    connections: t.Optional[ConnectionManager] = None,
    clock: t.Optional[SystemClock] = None,
    on_trial: t.Optional[t.Callable[[int, TrialResult], None]] = None,
) -> Aggregator:
    """
    Wire adapter, tracker, trial runner and aggregator for one endpoint.
    """
    if connections is None:
        connections = ConnectionManager(
            retries=config.http_retries,
            backoff_factor=config.http_backoff_factor,
            timeout=config.http_timeout,
        )
    clock = clock or SystemClock()
    web3 = connections.get_web3(endpoint)
    client = Web3ChainClient(
        web3,
        TransferInjector(config.identity.get_sender(), config.chain_id),
        clock=clock,
        inclusion_timeout=config.inclusion_timeout,
        poll_interval=config.poll_interval,
        retry_policy=config.retry_policy,
    )
    tracker = ConfirmationTracker(
        client,
        poll_interval=config.poll_interval,
        clock=clock,
        retry_policy=config.retry_policy,
    )
    return Aggregator(TrialRunner(client, tracker, clock=clock), on_trial=on_trial)


def run(endpoint: str, config: t.Optional[BenchmarkConfig] = None) -> AggregateResult:
    print("=== Transaction Finality Benchmark ===")
    config = config or load_config()
    clock = SystemClock()

    def handle_interrupt(signum, frame):
        print("\n[System] Interrupt received, cancelling run...")
        clock.cancel()

    previous = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        with tqdm(total=config.trial_count, unit="trial", desc="Finality") as pbar:
            aggregator = build_aggregator(
                config, endpoint, clock=clock, on_trial=lambda i, r: pbar.update(1)
            )
            result = aggregator.run(config.transfer_spec(), config.trial_count)
    finally:
        signal.signal(signal.SIGINT, previous)

    print("\n" + "=" * 60)
    print(f"Summary for {endpoint} ({result.trials} trial(s))")
    print("=" * 60)
    print(f"  Avg time to first receipt: {result.average_first_confirmation_ms / 1000:.2f}s")
    print(f"  Avg time to soft finality ({config.soft_confirmations} blocks): {result.average_soft_finality_ms / 1000:.2f}s")
    print(f"  Avg time to hard finality ({config.hard_confirmations} blocks): {result.average_hard_finality_ms / 1000:.2f}s")
    return result


def main(argv: t.Optional[t.List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python -m scenarios.exp_finality <rpc-endpoint-url>")
        return 2
    try:
        run(argv[0])
    except BenchmarkError as e:
        print(f"[System] Benchmark failed ({e.kind}): {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
