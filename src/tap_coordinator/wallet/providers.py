"""
Wallet Provider Transport and Session

Defines the interface every wallet endpoint must implement, an HTTP JSON-RPC
implementation built on httpx, and the process-wide provider session that
resolves and memoizes the endpoint handle.

Core Classes:
    - WalletProvider: EIP-1193 style ``request(method, params)`` interface
    - HttpWalletProvider: JSON-RPC 2.0 over HTTP (httpx.AsyncClient)
    - ProviderSession: Host-supplied provider first, ambient provider second

Resolution order:
    1. Host provider factory (e.g. a mini-app host SDK bridge). It may
       return ``None`` when the app does not run inside a host.
    2. Ambient provider (an explicit instance, or one built from
       ``WALLET_RPC_URL``).
    3. Neither: ``NoProviderError``. This is never retried.
"""

import itertools
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

import httpx
from loguru import logger

from ..engine.exceptions import (
    NoProviderError,
    USER_REJECTED_CODE,
    UserRejectedError,
    WalletError,
    WalletRpcError,
)


class WalletProvider(ABC):
    """
    Abstract wallet endpoint.

    Implementations forward a method name and positional params to a wallet
    capable of signing and broadcasting call bundles, and return the decoded
    ``result``. Wallet-side errors must be raised, preferably as
    :class:`WalletRpcError` (or :class:`UserRejectedError` for code 4001).
    """

    @abstractmethod
    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        """
        Execute one wallet RPC.

        Args:
            method: RPC method name (e.g. ``"eth_chainId"``)
            params: Positional params, omitted when ``None``

        Returns:
            The decoded ``result`` value.
        """
        pass


HostProviderFactory = Callable[[], Awaitable[Optional[WalletProvider]]]


def rpc_error_from_payload(error: Dict[str, Any]) -> WalletError:
    """
    Convert a JSON-RPC error object into a project exception.

    Args:
        error: The ``error`` member of a JSON-RPC response.

    Returns:
        UserRejectedError for code 4001, WalletRpcError otherwise.
    """
    code = error.get("code")
    message = str(error.get("message") or "Wallet request failed")
    if code == USER_REJECTED_CODE:
        return UserRejectedError(message)
    return WalletRpcError(message, code=code, data=error.get("data"))


class HttpWalletProvider(WalletProvider):
    """
    Wallet endpoint reached over HTTP JSON-RPC 2.0.

    Usage:
        ```python
        provider = HttpWalletProvider("http://127.0.0.1:8545")
        chain_id = await provider.request("eth_chainId")
        await provider.aclose()
        ```
    """

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ):
        """
        Initialize provider.

        Args:
            url: JSON-RPC endpoint URL
            client: Optional shared httpx client; created (and owned) if omitted
            timeout: Request timeout in seconds for an owned client
        """
        self._url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self._url

    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params) if params is not None else [],
        }
        try:
            response = await self._client.post(self._url, json=payload)
            body = response.json()
        except httpx.HTTPError as e:
            raise WalletRpcError(f"Wallet transport error: {e}") from e
        except ValueError as e:
            raise WalletRpcError(f"Malformed wallet response for {method}") from e

        if not isinstance(body, dict):
            raise WalletRpcError(f"Malformed wallet response for {method}")
        error = body.get("error")
        if error:
            raise rpc_error_from_payload(error if isinstance(error, dict) else {"message": str(error)})
        if response.is_error:
            raise WalletRpcError(f"Wallet endpoint returned HTTP {response.status_code}")
        return body.get("result")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class ProviderSession:
    """
    Resolves the wallet endpoint once and memoizes it for the process.

    Attributes:
        provider: The resolved provider, ``None`` until the first success
    """

    def __init__(
        self,
        host_provider: Optional[HostProviderFactory] = None,
        ambient_provider: Optional[WalletProvider] = None,
    ):
        """
        Args:
            host_provider: Async factory for the host-supplied provider
            ambient_provider: Fallback provider used outside a host
        """
        self._host_provider = host_provider
        self._ambient_provider = ambient_provider
        self.provider: Optional[WalletProvider] = None

    @classmethod
    def from_settings(
        cls,
        settings,
        host_provider: Optional[HostProviderFactory] = None,
    ) -> "ProviderSession":
        """Build a session whose ambient provider targets ``settings.wallet_rpc_url``."""
        ambient = None
        if settings.wallet_rpc_url:
            ambient = HttpWalletProvider(settings.wallet_rpc_url, timeout=settings.rpc_timeout)
        return cls(host_provider=host_provider, ambient_provider=ambient)

    async def get_provider(self) -> WalletProvider:
        """
        Return the memoized provider, resolving it on first use.

        Raises:
            NoProviderError: Neither a host nor an ambient provider exists.
        """
        if self.provider is not None:
            return self.provider

        if self._host_provider is not None:
            try:
                provider = await self._host_provider()
            except Exception as e:
                logger.warning("Host wallet provider unavailable: {}", e)
                provider = None
            if provider is not None:
                logger.info("Using host-supplied wallet provider")
                self.provider = provider
                return provider

        if self._ambient_provider is not None:
            logger.info("Using ambient wallet provider")
            self.provider = self._ambient_provider
            return self.provider

        raise NoProviderError()
