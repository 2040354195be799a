from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from itertools import count
from typing import Any, Deque, Dict, Optional, Protocol, Set

import httpx

from config import settings
from security import decrypt_secret

logger = logging.getLogger("storefront")

# Addresses remembered per issuer for the duplicate check; oldest are forgotten first.
ISSUED_ADDRESS_MEMORY = 100_000


class WalletError(Exception):
    """Raised when the wallet node cannot hand out a fresh address."""


class WalletAddressIssuer(Protocol):
    async def issue_address(self) -> str: ...


@dataclass
class WalletCredentials:
    rpc_url: str
    rpc_user: str
    rpc_password: str
    network: str = "testnet"
    label: str = "storefront"
    timeout_seconds: float = 10.0


def build_wallet_credentials() -> WalletCredentials:
    return WalletCredentials(
        rpc_url=settings.wallet_rpc_url,
        rpc_user=settings.wallet_rpc_user,
        rpc_password=decrypt_secret(settings.wallet_rpc_password_encrypted),
        network=settings.wallet_network,
        label=settings.wallet_address_label,
        timeout_seconds=settings.wallet_rpc_timeout_seconds,
    )


class RpcAddressIssuer:
    """Requests new receiving addresses from a Bitcoin Core compatible node."""

    def __init__(
        self,
        creds: WalletCredentials,
        client: Optional[httpx.AsyncClient] = None,
        memory: int = ISSUED_ADDRESS_MEMORY,
    ) -> None:
        self.creds = creds
        self._client = client or httpx.AsyncClient(
            auth=(creds.rpc_user, creds.rpc_password),
            timeout=creds.timeout_seconds,
        )
        self._request_ids = count(1)
        self._issued: Set[str] = set()
        self._issued_order: Deque[str] = deque()
        self._memory = memory

    async def _call(self, method: str, *params: Any) -> Any:
        payload: Dict[str, Any] = {
            "jsonrpc": "1.0",
            "id": next(self._request_ids),
            "method": method,
            "params": list(params),
        }
        try:
            response = await self._client.post(self.creds.rpc_url, json=payload)
        except httpx.HTTPError as exc:
            raise WalletError(f"Wallet node unreachable: {exc.__class__.__name__}") from exc
        if response.status_code == 401:
            raise WalletError("Wallet node rejected the RPC credentials")
        try:
            body = response.json()
        except ValueError as exc:
            raise WalletError(
                f"Wallet node returned a non-JSON response (HTTP {response.status_code})"
            ) from exc
        if not isinstance(body, dict):
            raise WalletError(f"Wallet node returned a malformed {method} response")
        error = body.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise WalletError(f"Wallet node refused {method}: {message}")
        if response.status_code != 200:
            raise WalletError(f"Wallet node returned HTTP {response.status_code}")
        return body.get("result")

    def _remember(self, address: str) -> None:
        self._issued.add(address)
        self._issued_order.append(address)
        if len(self._issued_order) > self._memory:
            self._issued.discard(self._issued_order.popleft())

    async def issue_address(self) -> str:
        result = await self._call("getnewaddress", self.creds.label)
        if not isinstance(result, str) or not result:
            raise WalletError("Wallet node returned an empty address")
        if result in self._issued:
            raise WalletError(f"Wallet node returned an already issued address: {result}")
        self._remember(result)
        logger.info("Issued %s payment address %s", self.creds.network, result)
        return result

    async def aclose(self) -> None:
        await self._client.aclose()


def create_address_issuer(creds: WalletCredentials) -> RpcAddressIssuer:
    return RpcAddressIssuer(creds)
