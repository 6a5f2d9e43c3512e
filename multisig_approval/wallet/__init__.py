"""
Wallet collaborator interface.

The approval protocol never talks to a full node directly. Everything it needs
from the blockchain goes through an object implementing `WalletInterface`:

- get_transactions(address)       → [{"tx_hash": str, "height": int?}, ...]
                                    newest first (unconfirmed first, then by
                                    descending height)
- get_tx_data(txids)              → [details, ...] with vin/vout, input
                                    addresses and scriptPubKey hex
- get_token_data(token_id, ...)   → {"genesisData": {"nfts"?, "nftHolder"?}}
- get_pub_key(address)            → hex public key, or a string containing
                                    PUBKEY_NOT_FOUND if the address never
                                    signed a transaction

`multisig_approval.wallet.rest.RestWallet` is the bundled implementation; tests
use in-memory fakes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence, runtime_checkable

PUBKEY_NOT_FOUND = "not found"

JsonDict = Dict[str, Any]


@runtime_checkable
class WalletInterface(Protocol):
    async def get_transactions(self, address: str) -> List[JsonDict]: ...

    async def get_tx_data(self, txids: Sequence[str]) -> List[JsonDict]: ...

    async def get_token_data(self, token_id: str, with_tx_history: bool = False) -> JsonDict: ...

    async def get_pub_key(self, address: str) -> str: ...


def sort_txs_by_height(txs: Sequence[JsonDict]) -> List[JsonDict]:
    """
    Order history newest first. Unconfirmed entries (no height, or height <= 0)
    come before every confirmed one; the sort is stable within equal heights.
    """

    def _key(tx: JsonDict) -> tuple[int, int]:
        height = tx.get("height")
        if not isinstance(height, int) or height <= 0:
            return (0, 0)
        return (1, -height)

    return sorted(txs, key=_key)


__all__ = ["WalletInterface", "PUBKEY_NOT_FOUND", "sort_txs_by_height"]
