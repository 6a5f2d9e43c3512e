"""
multisig_approval.write_price
=============================

PS010 write price lookup: the price for pinning data is whatever the PSF
Minting Council most recently approved on chain.

`WritePriceOracle` drives `MultisigApproval` in a loop:

    find newest approval (minus filtered ids)
      └─ none            → NoApprovalFoundError
      └─ found → update tx → IPFS data → validate
                   ├─ valid   → memoize price, return it
                   └─ invalid → filter approval id, try the next one

The loop is bounded by ``max_attempts`` and an optional wall-clock deadline
(`RetryBudgetExceededError`). `get_mc_write_price()` never raises for
governance data problems: any failure is logged and the configured safety
price is returned, so a caller can always quote *some* price.

One oracle is one resolution session. Approvals are append-only on chain, so
a resolved price (and history) is memoized for the lifetime of the instance;
create a new oracle or call `reset()` to resolve again.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, cast

from .approval import MultisigApproval
from .config import ApprovalConfig
from .errors import (
    MalformedPayloadError,
    MalformedUpdateError,
    NoApprovalFoundError,
    RetryBudgetExceededError,
)
from .gateway import IpfsGateway
from .payload import UpdatePayload
from .wallet.rest import RestWallet

log = logging.getLogger(__name__)

__all__ = ["WritePriceEntry", "WritePriceOracle"]


@dataclass(frozen=True)
class WritePriceEntry:
    write_price: float
    height: int

    def to_dict(self) -> Dict[str, Any]:
        return {"writePrice": self.write_price, "height": self.height}


class WritePriceOracle:
    def __init__(
        self,
        approval: MultisigApproval,
        *,
        config: Optional[ApprovalConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.approval = approval
        self.config = config or ApprovalConfig()
        self._clock = clock

        # Approval txids that failed validation in this session.
        self.filter_txids: Set[str] = set()
        self.current_write_price: Optional[float] = None
        self.current_write_price_history: Optional[List[WritePriceEntry]] = None
        self._wallet_to_close: Optional[RestWallet] = None

    @classmethod
    def from_config(cls, cfg: ApprovalConfig) -> "WritePriceOracle":
        """Oracle backed by the REST wallet and IPFS gateway named in `cfg`."""
        wallet = RestWallet.from_config(cfg)
        approval = MultisigApproval(wallet, gateway=IpfsGateway.from_config(cfg))
        oracle = cls(approval, config=cfg)
        oracle._wallet_to_close = wallet
        return oracle

    async def __aenter__(self) -> "WritePriceOracle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        await self.approval.aclose()
        if self._wallet_to_close is not None:
            await self._wallet_to_close.aclose()

    def reset(self) -> None:
        self.filter_txids.clear()
        self.current_write_price = None
        self.current_write_price_history = None

    # --- current price ---------------------------------------------------

    async def get_mc_write_price(self) -> float:
        """Current write price in PSF tokens per megabyte."""
        if self.current_write_price is not None:
            return self.current_write_price

        try:
            return await self._resolve_write_price()
        except Exception:
            log.exception(
                "Error in get_mc_write_price(); using hard-coded, safety value of %s PSF tokens per megabyte",
                self.config.safety_write_price,
            )
            return self.config.safety_write_price

    async def _resolve_write_price(self) -> float:
        address = self.config.write_price_addr
        deadline = self.config.deadline_s
        started = self._clock()

        for attempt in range(1, self.config.max_attempts + 1):
            if deadline is not None and self._clock() - started > deadline:
                raise RetryBudgetExceededError(attempts=attempt - 1, reason=f"deadline of {deadline}s exceeded")

            approval_obj = await self.approval.get_approval_tx(address, self.filter_txids)
            if approval_obj is None:
                raise NoApprovalFoundError("APPROVAL transaction could not be found")

            update_obj = await self.approval.get_update_tx(approval_obj.update_txid)
            update_data = await self.approval.get_cid_data(update_obj["cid"])
            is_valid = await self.approval.validate_approval(
                approval_obj, update_obj, update_data, self.config.group_token_id
            )
            if is_valid:
                price = UpdatePayload.parse(update_data).price
                self.current_write_price = price
                log.info("write price %s approved by %s", price, approval_obj.approval_txid)
                return price

            log.warning("approval %s failed validation; ignoring it", approval_obj.approval_txid)
            self.filter_txids.add(approval_obj.approval_txid)

        raise RetryBudgetExceededError(attempts=self.config.max_attempts)

    # --- history ---------------------------------------------------------

    async def get_write_price_history(self) -> List[WritePriceEntry]:
        """
        Every validated write price change, newest first, with its block height.

        Invalid or malformed approvals are skipped. Errors reading the history
        itself (transport, missing heights) propagate.
        """
        if self.current_write_price_history is not None:
            return self.current_write_price_history

        approvals = await self.approval.get_all_approval_txs(self.config.write_price_addr)

        history: List[WritePriceEntry] = []
        for approval_obj in approvals:
            try:
                update_obj = await self.approval.get_update_tx(approval_obj.update_txid)
                update_data = await self.approval.get_cid_data(update_obj["cid"])
                is_valid = await self.approval.validate_approval(
                    approval_obj, update_obj, update_data, self.config.group_token_id
                )
            except (MalformedUpdateError, MalformedPayloadError) as e:
                log.warning("skipping malformed approval %s: %s", approval_obj.approval_txid, e)
                continue

            if not is_valid:
                log.info("skipping invalid approval %s", approval_obj.approval_txid)
                continue

            # get_all_approval_txs() only returns approvals with a height
            height = cast(int, approval_obj.height)
            history.append(WritePriceEntry(write_price=UpdatePayload.parse(update_data).price, height=height))

        self.current_write_price_history = history
        return history
