"""
Configuration module for the finality benchmark.
Single source of truth for defaults; values are read from the environment
(and a .env file) once, at process start.
"""
import os
import typing as t
from dataclasses import dataclass
from decimal import InvalidOperation

from dotenv import load_dotenv
from web3 import Web3

from core.errors import InvalidConfigurationError
from core.identity import UserManager
from core.models import RetryPolicy, TransferSpec

# Network
NETWORK: str = "sepolia"
CHAIN_ID: int = 11_155_111

# Transfer
ETH_AMOUNT: str = "0.001"
TRIAL_COUNT: int = 1

# Finality (blocks on top of the inclusion block)
SOFT_CONFIRMATIONS: int = 6
HARD_CONFIRMATIONS: int = 12

# Polling & deadlines (seconds)
POLL_INTERVAL: float = 1.0
INCLUSION_TIMEOUT: float = 180.0
TRIAL_DEADLINE: float = 600.0

# Retry (tracker height queries)
HEIGHT_RETRIES: int = 3
RETRY_BACKOFF: float = 1.0

# HTTP transport
HTTP_RETRIES: int = 5
HTTP_BACKOFF_FACTOR: float = 0.5
HTTP_TIMEOUT: float = 30.0

SERVER_PORT: int = 3000


@dataclass(frozen=True)
class BenchmarkConfig:
    """
    Immutable process configuration, passed explicitly into every run.
    """
    identity: UserManager
    recipient: str
    network: str = NETWORK
    chain_id: int = CHAIN_ID
    value_wei: int = Web3.to_wei(ETH_AMOUNT, "ether")
    trial_count: int = TRIAL_COUNT
    soft_confirmations: int = SOFT_CONFIRMATIONS
    hard_confirmations: int = HARD_CONFIRMATIONS
    poll_interval: float = POLL_INTERVAL
    inclusion_timeout: float = INCLUSION_TIMEOUT
    trial_deadline: float = TRIAL_DEADLINE
    height_retries: int = HEIGHT_RETRIES
    retry_backoff: float = RETRY_BACKOFF
    http_retries: int = HTTP_RETRIES
    http_backoff_factor: float = HTTP_BACKOFF_FACTOR
    http_timeout: float = HTTP_TIMEOUT
    server_port: int = SERVER_PORT

    @property
    def sender(self) -> str:
        return self.identity.address

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(attempts=self.height_retries, backoff=self.retry_backoff)

    def transfer_spec(self) -> TransferSpec:
        return TransferSpec(
            sender=self.sender,
            recipient=self.recipient,
            value=self.value_wei,
            soft_depth=self.soft_confirmations,
            hard_depth=self.hard_confirmations,
            poll_interval=self.poll_interval,
            trial_deadline=self.trial_deadline,
        )


def _read(env: t.Mapping[str, str], name: str, default: t.Any, cast: t.Callable[[str], t.Any]) -> t.Any:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except (ValueError, TypeError) as e:
        raise InvalidConfigurationError(f"{name}={raw!r} is not a valid {cast.__name__}") from e


def _require(name: str, ok: bool, message: str) -> None:
    if not ok:
        raise InvalidConfigurationError(f"{name} {message}")


def _to_wei(name: str, amount: str) -> int:
    try:
        value = Web3.to_wei(amount, "ether")
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidConfigurationError(f"{name}={amount!r} is not an ether amount") from e
    _require(name, value >= 0, "must not be negative")
    return value


def load_config(environ: t.Optional[t.Mapping[str, str]] = None) -> BenchmarkConfig:
    """
    Build the process configuration.

    Args:
        environ: Mapping to read from. Defaults to os.environ after loading .env.

    Raises:
        InvalidConfigurationError: on a missing credential or malformed value.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ
    env = environ

    identity = UserManager.from_credential(
        private_key=env.get("PRIVATE_KEY"),
        mnemonic=env.get("MNEMONIC"),
        index=_read(env, "ACCOUNT_INDEX", 0, int),
    )

    recipient = env.get("RECIPIENT_ADDRESS") or identity.address
    _require("RECIPIENT_ADDRESS", Web3.is_address(recipient), f"is not an address: {recipient!r}")

    config = BenchmarkConfig(
        identity=identity,
        recipient=Web3.to_checksum_address(recipient),
        network=env.get("NETWORK") or NETWORK,
        chain_id=_read(env, "CHAIN_ID", CHAIN_ID, int),
        value_wei=_to_wei("ETH_AMOUNT", env.get("ETH_AMOUNT") or ETH_AMOUNT),
        trial_count=_read(env, "TRIAL_COUNT", TRIAL_COUNT, int),
        soft_confirmations=_read(env, "SOFT_CONFIRMATIONS", SOFT_CONFIRMATIONS, int),
        hard_confirmations=_read(env, "HARD_CONFIRMATIONS", HARD_CONFIRMATIONS, int),
        poll_interval=_read(env, "POLL_INTERVAL", POLL_INTERVAL, float),
        inclusion_timeout=_read(env, "INCLUSION_TIMEOUT", INCLUSION_TIMEOUT, float),
        trial_deadline=_read(env, "TRIAL_DEADLINE", TRIAL_DEADLINE, float),
        height_retries=_read(env, "HEIGHT_RETRIES", HEIGHT_RETRIES, int),
        retry_backoff=_read(env, "RETRY_BACKOFF", RETRY_BACKOFF, float),
        http_retries=_read(env, "HTTP_RETRIES", HTTP_RETRIES, int),
        http_backoff_factor=_read(env, "HTTP_BACKOFF_FACTOR", HTTP_BACKOFF_FACTOR, float),
        http_timeout=_read(env, "HTTP_TIMEOUT", HTTP_TIMEOUT, float),
        server_port=_read(env, "SERVER_PORT", SERVER_PORT, int),
    )

    _require("TRIAL_COUNT", config.trial_count >= 1, "must be at least 1")
    _require("SOFT_CONFIRMATIONS", config.soft_confirmations >= 1, "must be at least 1")
    _require("HARD_CONFIRMATIONS", config.hard_confirmations >= 1, "must be at least 1")
    _require("POLL_INTERVAL", config.poll_interval > 0, "must be positive")
    _require("INCLUSION_TIMEOUT", config.inclusion_timeout > 0, "must be positive")
    _require("TRIAL_DEADLINE", config.trial_deadline > 0, "must be positive")
    _require("HEIGHT_RETRIES", config.height_retries >= 0, "must not be negative")
    _require("RETRY_BACKOFF", config.retry_backoff >= 0, "must not be negative")
    _require("HTTP_RETRIES", config.http_retries >= 0, "must not be negative")
    if config.soft_confirmations >= config.hard_confirmations:
        print(f"[Config] Warning: soft depth {config.soft_confirmations} is not below hard depth {config.hard_confirmations}")

    print(f"[Config] Sender {config.sender} on {config.network} (chain {config.chain_id}), "
          f"{config.trial_count} trial(s), depths {config.soft_confirmations}/{config.hard_confirmations}")
    return config
