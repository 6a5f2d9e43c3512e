from __future__ import annotations

import logging
from typing import Any, Dict

from .errors import MissingTxidError, TxNotFoundError
from .wallet import WalletInterface

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]


class TxDataCache:
    """
    Transaction-detail lookups memoized by txid.

    Entries are written once and never invalidated: confirmed transaction data
    does not change, and one cache lives for one resolution session.
    """

    def __init__(self, wallet: WalletInterface) -> None:
        self.wallet = wallet
        self._cache: Dict[str, JsonDict] = {}

    async def get_tx_data(self, txid: str) -> JsonDict:
        if not txid:
            raise MissingTxidError("txid (transaction ID) required")

        details = self._cache.get(txid)
        if details is not None:
            return details

        log.debug("tx cache miss: %s", txid)
        results = await self.wallet.get_tx_data([txid])
        if not results:
            raise TxNotFoundError(txid=txid)

        details = results[0]
        self._cache[txid] = details
        return details


__all__ = ["TxDataCache"]
