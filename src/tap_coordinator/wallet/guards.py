"""
Connection and Chain Guards

Serialize the two interactive wallet prompts the pipeline can trigger:

* ConnectionGuard: ``eth_requestAccounts`` (connect prompt)
* ChainGuard: ``wallet_switchEthereumChain`` (network switch prompt)

Wallet hosts misbehave when interactive requests are fired back-to-back, so
each guard keeps at most one prompt in flight on the shared :class:`Session`.
Concurrent callers await that same task; the marker is cleared when the task
settles, whatever the outcome, so a failed prompt can be retried on the next
call.
"""

import asyncio
from typing import Any, Optional

from loguru import logger

from ..engine.exceptions import (
    ChainSwitchFailedError,
    NoAccountSelectedError,
    UserRejectedError,
)
from .constants import BASE_MAINNET
from .providers import WalletProvider
from .session import Session, normalize_chain_id, same_chain


def _first_account(accounts: Any) -> Optional[str]:
    if isinstance(accounts, (list, tuple)) and accounts:
        first = accounts[0]
        return str(first) if first else None
    return None


def _chain_label(chain_id: str) -> str:
    numeric = normalize_chain_id(chain_id)
    if BASE_MAINNET is not None and numeric == BASE_MAINNET.chain_id:
        return f"{BASE_MAINNET.name} ({numeric})"
    return f"chain {numeric if numeric is not None else chain_id}"


class ConnectionGuard:
    """
    Obtains and caches the active account address.

    Example:
        guard = ConnectionGuard(session)
        address = await guard.ensure_connected(provider)
    """

    def __init__(self, session: Session):
        self._session = session

    async def ensure_connected(self, provider: WalletProvider) -> str:
        """
        Return the connected account, prompting at most once system-wide.

        Order: cached address (no RPC) → join a pending prompt →
        non-interactive ``eth_accounts`` → interactive ``eth_requestAccounts``.

        Raises:
            NoAccountSelectedError: The connect prompt returned no address.
            UserRejectedError: The user declined the connect prompt.
        """
        session = self._session
        if session.account:
            return session.account

        if session.connect_in_flight is not None:
            return await asyncio.shield(session.connect_in_flight)

        try:
            address = _first_account(await provider.request("eth_accounts"))
        except Exception as e:
            logger.debug("Non-interactive account query failed: {}", e)
            address = None
        if address:
            session.account = address
            logger.info("Wallet already connected as {}", address)
            return address

        # Another caller may have cached an account or started the prompt
        # while eth_accounts was awaited.
        if session.account:
            return session.account
        if session.connect_in_flight is None:
            session.connect_in_flight = asyncio.ensure_future(self._request_accounts(provider))
        return await asyncio.shield(session.connect_in_flight)

    async def _request_accounts(self, provider: WalletProvider) -> str:
        session = self._session
        try:
            logger.info("Requesting wallet connection")
            address = _first_account(await provider.request("eth_requestAccounts"))
            if not address:
                raise NoAccountSelectedError()
            session.account = address
            logger.info("Wallet connected as {}", address)
            return address
        finally:
            session.connect_in_flight = None


class ChainGuard:
    """
    Asserts the wallet is on the required chain.

    The active chain id is never cached: the wallet may be switched from its
    own UI at any time, so every call reads ``eth_chainId`` again.
    """

    def __init__(self, session: Session):
        self._session = session

    async def ensure_chain(self, provider: WalletProvider, required_chain_id: str) -> str:
        """
        Make sure the wallet is on ``required_chain_id``.

        Args:
            provider: Wallet endpoint
            required_chain_id: Hex chain id (e.g. ``"0x2105"``)

        Returns:
            str: The required chain id once the wallet reports it.

        Raises:
            ChainSwitchFailedError: The switch failed or was silently ignored.
            UserRejectedError: The user declined the switch prompt.
        """
        current = await provider.request("eth_chainId")
        if same_chain(current, required_chain_id):
            return required_chain_id

        session = self._session
        if session.switch_in_flight is None:
            session.switch_in_flight = asyncio.ensure_future(
                self._switch(provider, required_chain_id, current)
            )
        return await asyncio.shield(session.switch_in_flight)

    async def _switch(self, provider: WalletProvider, required_chain_id: str, current: Any) -> str:
        label = _chain_label(required_chain_id)
        try:
            logger.info("Requesting chain switch from {} to {}", current, label)
            try:
                await provider.request(
                    "wallet_switchEthereumChain",
                    [{"chainId": required_chain_id}],
                )
            except UserRejectedError:
                raise
            except Exception as e:
                raise ChainSwitchFailedError(
                    f"Please switch to {label}",
                    expected=required_chain_id,
                ) from e

            # Wallets may acknowledge the switch without performing it.
            after = await provider.request("eth_chainId")
            if not same_chain(after, required_chain_id):
                logger.warning("Wallet still on {} after switch request", after)
                raise ChainSwitchFailedError(
                    f"Could not switch to {label}",
                    expected=required_chain_id,
                    actual=str(after) if after is not None else None,
                )
            return required_chain_id
        finally:
            self._session.switch_in_flight = None
