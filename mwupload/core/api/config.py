"""
API configuration module.

Dataclasses describing how to reach a wiki: endpoint and default request
parameters, plus the HTTP settings shared by the API client and the frame
host (proxy, TLS verification, timeouts, retries).
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
import ssl

import aiohttp


DEFAULT_ENDPOINT = 'https://commons.wikimedia.org/w/api.php'


@dataclass
class ProxyConfig:
    """
    Outgoing HTTP proxy.

    Credentials are sent as proxy basic auth, never spliced into the URL.
    """
    url: str
    username: Optional[str] = None
    password: Optional[str] = None

    def request_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``ClientSession.request``."""
        kwargs: Dict[str, Any] = {'proxy': self.url}
        if self.username:
            kwargs['proxy_auth'] = aiohttp.BasicAuth(self.username, self.password or '')
        return kwargs


@dataclass
class SSLConfig:
    """
    TLS settings for talking to the wiki.

    ``verify=False`` is meant for test wikis with self-signed certificates.
    """
    verify: bool = True
    ca_file: Optional[str] = None

    def connector_ssl(self) -> Any:
        """Value for the ``ssl`` argument of ``aiohttp.TCPConnector``."""
        if not self.verify:
            return False
        if self.ca_file:
            return ssl.create_default_context(cafile=self.ca_file)
        return True


@dataclass
class TimeoutConfig:
    """
    Request timeouts in seconds.

    Uploads can be large, so the total timeout is generous.
    """
    total: float = 600.0
    connect: float = 30.0
    sock_read: float = 120.0

    def client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read
        )


@dataclass
class RetryConfig:
    """
    Retry policy.

    Server codes in ``retry_on_codes`` are retried for every request;
    network errors are retried for GET requests only.
    """
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    retry_on_codes: Tuple[str, ...] = ('maxlag', 'readonly')

    def calculate_delay(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Delay before retry number ``attempt + 1``; ``Retry-After`` wins."""
        if retry_after is None:
            retry_after = self.base_delay * 2 ** attempt
        return min(retry_after, self.max_delay)


@dataclass
class APIConfig:
    """
    Everything the client needs to know about a wiki.

    ``parameters`` are merged into every request, like the default
    parameters of the JavaScript API client.

    Example:
        >>> config = APIConfig.for_endpoint(
        ...     "https://test.wikipedia.org/w/api.php",
        ...     proxy=ProxyConfig("http://proxy.local:3128"),
        ... )
    """
    endpoint: str = DEFAULT_ENDPOINT
    user_agent: str = 'mwupload/1.0.0'
    parameters: Dict[str, Any] = field(
        default_factory=lambda: {'action': 'query', 'format': 'json'}
    )

    # Seconds; sent as the ``maxlag`` parameter when set
    maxlag: Optional[int] = None

    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    extra_headers: Dict[str, str] = field(default_factory=dict)
    log_level: int = 20  # logging.INFO
    connection_limit: int = 10

    @classmethod
    def default(cls) -> 'APIConfig':
        """Configuration for Wikimedia Commons."""
        return cls()

    @classmethod
    def for_endpoint(cls, endpoint: str, **kwargs) -> 'APIConfig':
        """Configuration for a specific wiki's api.php."""
        return cls(endpoint=endpoint, **kwargs)

    def default_parameters(self) -> Dict[str, Any]:
        """Parameters merged into every request."""
        params = dict(self.parameters)
        if self.maxlag is not None:
            params['maxlag'] = self.maxlag
        return params

    def proxy_kwargs(self) -> Dict[str, Any]:
        """Proxy arguments for each request; empty without a proxy."""
        return self.proxy.request_kwargs() if self.proxy else {}

    def connector_kwargs(self) -> Dict[str, Any]:
        return {
            'limit_per_host': self.connection_limit,
            'ssl': self.ssl.connector_ssl(),
        }

    def session_kwargs(self) -> Dict[str, Any]:
        return {
            'headers': {'User-Agent': self.user_agent, **self.extra_headers},
            'timeout': self.timeout.client_timeout(),
        }
