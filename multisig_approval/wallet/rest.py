"""
multisig_approval.wallet.rest
=============================

`WalletInterface` over a consumer-style BCH REST API (the JSON API a light
wallet uses instead of a full node).

Endpoints (all ``POST``, JSON bodies)
-------------------------------------
- ``bch/txHistory``  {"address"}                  → {"txs": [{"tx_hash", "height"}]}
- ``bch/txData``     {"txids": [...]}             → [details, ...]
- ``bch/pubkey``     {"address"}                  → {"pubkey": {"publicKey": hex}}
- ``slp/tokenData``  {"tokenId", "withTxHistory"} → {"genesisData": {...}}

Responses may wrap their payload in ``{"success": bool, ...}``; a false
``success`` becomes `TransportError`, except for the public key lookup where
"no transaction history" is the ordinary not-found case.

Typical usage
-------------
    async with RestWallet("https://free-bch.fullstack.cash") as wallet:
        history = await wallet.get_transactions("bitcoincash:qr...")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import ApprovalConfig
from ..errors import TransportError
from . import PUBKEY_NOT_FOUND, sort_txs_by_height

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]

# Error messages the REST backend uses when an address has never spent.
_NO_HISTORY_MARKERS = ("no transaction history", "not found")


class RestWallet:
    """
    Parameters
    ----------
    rest_url : str
        Base URL of the REST backend, e.g. "https://free-bch.fullstack.cash".
    timeout_s : float
        Timeout applied to every request.
    client : httpx.AsyncClient | None
        Optional pre-built client (tests, connection reuse). Not closed by
        `aclose()` when supplied by the caller.
    """

    TX_HISTORY_PATH = "bch/txHistory"
    TX_DATA_PATH = "bch/txData"
    PUBKEY_PATH = "bch/pubkey"
    TOKEN_DATA_PATH = "slp/tokenData"

    def __init__(
        self,
        rest_url: str,
        *,
        timeout_s: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.rest_url = rest_url.rstrip("/") + "/"
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(timeout=timeout_s, headers=headers)

    @classmethod
    def from_config(cls, cfg: ApprovalConfig) -> "RestWallet":
        return cls(cfg.rest_url, timeout_s=cfg.request_timeout, headers=cfg.http_headers())

    # --- context manager -------------------------------------------------

    async def __aenter__(self) -> "RestWallet":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # --- WalletInterface -------------------------------------------------

    async def get_transactions(self, address: str) -> List[JsonDict]:
        data = await self._post(self.TX_HISTORY_PATH, {"address": address})
        txs = _unwrap_list(data, ("txs", "transactions", "txHistory"))
        if txs is None:
            raise TransportError("unexpected tx history response", endpoint=self.TX_HISTORY_PATH, data=data)
        return sort_txs_by_height(txs)

    async def get_tx_data(self, txids: Sequence[str]) -> List[JsonDict]:
        data = await self._post(self.TX_DATA_PATH, {"txids": list(txids)})
        details = _unwrap_list(data, ("txData", "transactions"))
        if details is None:
            raise TransportError("unexpected tx data response", endpoint=self.TX_DATA_PATH, data=data)
        return details

    async def get_token_data(self, token_id: str, with_tx_history: bool = False) -> JsonDict:
        data = await self._post(
            self.TOKEN_DATA_PATH,
            {"tokenId": token_id, "withTxHistory": bool(with_tx_history)},
        )
        if isinstance(data, dict) and isinstance(data.get("tokenData"), dict):
            data = data["tokenData"]
        if not isinstance(data, dict) or "genesisData" not in data:
            raise TransportError("unexpected token data response", endpoint=self.TOKEN_DATA_PATH, data=data)
        return data

    async def get_pub_key(self, address: str) -> str:
        try:
            data = await self._post(self.PUBKEY_PATH, {"address": address})
        except TransportError as e:
            if _is_no_history(e.data):
                return PUBKEY_NOT_FOUND
            raise

        pubkey = data.get("pubkey") if isinstance(data, dict) else None
        if isinstance(pubkey, dict):
            pubkey = pubkey.get("publicKey")
        if not isinstance(pubkey, str) or not pubkey:
            raise TransportError("unexpected pubkey response", endpoint=self.PUBKEY_PATH, data=data)
        return pubkey

    # --- internals -------------------------------------------------------

    async def _post(self, path: str, body: JsonDict) -> Any:
        url = self.rest_url + path
        log.debug("POST %s", url)
        try:
            r = await self._http.post(url, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"POST {url} failed: {e}", endpoint=path) from e

        try:
            data = r.json()
        except ValueError:
            raise TransportError(
                "non-JSON response", endpoint=path, http_status=r.status_code, data=r.text[:256]
            ) from None

        if r.status_code >= 400:
            raise TransportError("HTTP error", endpoint=path, http_status=r.status_code, data=data)
        if isinstance(data, dict) and data.get("success") is False:
            raise TransportError("request unsuccessful", endpoint=path, http_status=r.status_code, data=data)
        return data


def _unwrap_list(data: Any, keys: Sequence[str]) -> Optional[List[JsonDict]]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for k in keys:
            v = data.get(k)
            if isinstance(v, list):
                return v
    return None


def _is_no_history(data: Any) -> bool:
    if isinstance(data, dict):
        text = " ".join(str(data.get(k, "")) for k in ("message", "error"))
    else:
        text = str(data or "")
    text = text.lower()
    return any(m in text for m in _NO_HISTORY_MARKERS)


__all__ = ["RestWallet"]
