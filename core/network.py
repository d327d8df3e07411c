"""
Web3 connection management for the finality benchmark.
One pooled HTTP session per process, one Web3 instance per RPC endpoint.
"""
import contextlib
import threading
import typing as t
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.providers import HTTPProvider
from web3.providers.rpc.utils import REQUEST_RETRY_ALLOWLIST, ExceptionRetryConfiguration

from .errors import BenchmarkError, ConnectivityError, InvalidConfigurationError

# web3 retries these on transport errors; a broadcast is never replayed
READ_RETRY_CONFIGURATION = ExceptionRetryConfiguration(
    errors=(ConnectionError, requests.HTTPError, requests.Timeout),
    method_allowlist=[m for m in REQUEST_RETRY_ALLOWLIST if m != "eth_sendRawTransaction"],
)


def validate_endpoint(url: t.Any) -> str:
    """
    Accept only absolute http(s) URLs with a host.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidConfigurationError("RPC endpoint URL is required")
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidConfigurationError(f"Malformed RPC endpoint URL: {url!r}")
    return url


class ConnectionManager:
    """
    Manages Web3 connections with a shared, retrying HTTP session.
    """
    def __init__(
        self,
        retries: int = 5,
        backoff_factor: float = 0.5,
        timeout: float = 30.0,
    ) -> None:
        self.retries = retries
        self.backoff_factor = backoff_factor
        self.timeout = timeout
        self._connections: t.Dict[str, Web3] = {}
        self._lock = threading.Lock()
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        """
        Creates an HTTP session that retries refused connections and idempotent
        requests with exponential backoff. JSON-RPC POSTs are never resent after
        the request went out, so a broadcast cannot reach the node twice.
        """
        session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=10,
            pool_maxsize=10,
            max_retries=Retry(
                total=self.retries,
                backoff_factor=self.backoff_factor,
                status_forcelist=[429, 500, 502, 503, 504],
            )
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def get_web3(self, endpoint: str) -> Web3:
        """
        Returns a cached Web3 instance for `endpoint`.
        No is_connected() check here; failures surface on first use.
        """
        url = validate_endpoint(endpoint)
        with self._lock:
            if url in self._connections:
                return self._connections[url]

            provider = HTTPProvider(
                url,
                session=self._session,
                request_kwargs={"timeout": self.timeout},
                exception_retry_configuration=READ_RETRY_CONFIGURATION,
            )
            w3 = Web3(provider)
            self._connections[url] = w3
            return w3

    def close(self) -> None:
        with self._lock:
            self._connections.clear()
        self._session.close()


TRANSPORT_ERRORS = (
    requests.exceptions.RequestException,
    OSError,
)


@contextlib.contextmanager
def rpc_call(what: str) -> t.Iterator[None]:
    """
    Translate transport failures and malformed node replies into ConnectivityError.
    """
    try:
        yield
    except BenchmarkError:
        raise
    except TRANSPORT_ERRORS as e:
        raise ConnectivityError(f"{what} failed: endpoint unreachable ({e})") from e
    except (Web3Exception, ValueError, TypeError, KeyError) as e:
        raise ConnectivityError(f"{what} failed: malformed response ({e})") from e
