"""
multisig_approval.approval
==========================

Discovery and validation of multisig APPROVAL transactions (PS009).

A council publishes a decision in two steps:

1. an **UPDATE** transaction whose OP_RETURN carries a small JSON document
   pointing (by CID) at the full update data on IPFS;
2. an **APPROVAL** transaction, spent *from the council's multisig address*,
   whose OP_RETURN reads ``APPROVE`` followed by the UPDATE txid.

`MultisigApproval` finds the newest APPROVAL sent to an address, follows it to
the UPDATE transaction and its IPFS data, and checks that

- the data's ``walletObj`` re-derives to the multisig address that spent the
  APPROVAL transaction, and
- enough of the ``walletObj`` public keys belong to the current NFT holders.

Wire format
-----------
Scripts are decoded as 7-bit ASCII, one character per byte:

- APPROVAL: contains ``APPROVE``; the UPDATE txid starts at offset 10
  (OP_RETURN, push, ``APPROVE``, push) and runs to the end of the script.
  Anything other than 64 lowercase hex characters there means the
  transaction is not an approval.
- UPDATE: everything after the first 4 bytes (OP_RETURN + PUSHDATA header)
  is a JSON document with at least a ``cid``.

Preconditions
-------------
The wallet collaborator returns history newest-first. This is checked only
for entries with a positive block height; unconfirmed entries are exempt.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from .cache import TxDataCache
from .config import DEFAULT_GROUP_TOKEN_ID, DEFAULT_IPFS_GATEWAY
from .errors import (
    HistoryOrderError,
    InvalidAddressError,
    InvalidInputError,
    MalformedDataError,
    MalformedPayloadError,
    MalformedUpdateError,
    MissingHeightError,
    MissingInputError,
    MissingTxidError,
    TxNotFoundError,
)
from .gateway import IpfsGateway
from .multisig import MultisigWallet, create_multisig_address
from .nfts import NftHolderInfo, NftHolderResolver, SignerKey
from .payload import UpdatePayload
from .utils.cashaddr import CASH_PREFIX, SLP_PREFIX, CashAddrError, to_cash_address
from .wallet import WalletInterface

log = logging.getLogger(__name__)

__all__ = [
    "APPROVE_TAG",
    "APPROVAL_TXID_OFFSET",
    "UPDATE_JSON_OFFSET",
    "MIN_MATCHES",
    "ApprovalTx",
    "MultisigApproval",
    "normalize_address",
]

JsonDict = Dict[str, Any]

APPROVE_TAG = "APPROVE"
APPROVAL_TXID_OFFSET = 10
UPDATE_JSON_OFFSET = 4
# No approval is accepted on fewer matching council keys than this.
MIN_MATCHES = 2

_TXID_RE = re.compile(r"[0-9a-f]{64}")


@dataclass
class ApprovalTx:
    approval_txid: str
    update_txid: str
    approval_tx_details: JsonDict = field(repr=False)
    op_return: str
    height: Optional[int] = None

    @property
    def input_address(self) -> Optional[str]:
        """Address owning the first input, i.e. the wallet that sent the approval."""
        vin = self.approval_tx_details.get("vin") or []
        if not vin or not isinstance(vin[0], dict):
            return None
        return vin[0].get("address")

    def to_dict(self) -> JsonDict:
        out: JsonDict = {
            "approvalTxid": self.approval_txid,
            "updateTxid": self.update_txid,
            "opReturn": self.op_return,
        }
        if self.height is not None:
            out["height"] = self.height
        return out


def normalize_address(address: str) -> str:
    """Return the ``bitcoincash:`` form of a CashAddr or SLP address."""
    if not isinstance(address, str):
        raise InvalidAddressError("address must be a string")
    if address.startswith(f"{SLP_PREFIX}:"):
        try:
            address = to_cash_address(address)
        except CashAddrError as e:
            raise InvalidAddressError(f"invalid simpleledger address {address!r}: {e}") from e
    if not address.startswith(f"{CASH_PREFIX}:"):
        raise InvalidAddressError("Input address must start with bitcoincash: or simpleledger:")
    return address


def _script_ascii(script_hex: str) -> str:
    # High bit cleared: every byte maps to exactly one character, so byte
    # offsets and string offsets agree.
    return bytes(b & 0x7F for b in bytes.fromhex(script_hex)).decode("ascii")


def _first_output_ascii(details: JsonDict) -> str:
    try:
        script_hex = details["vout"][0]["scriptPubKey"]["hex"]
        return _script_ascii(script_hex)
    except (KeyError, IndexError, TypeError, ValueError) as e:
        txid = details.get("txid") if isinstance(details, dict) else None
        raise MalformedDataError(f"transaction {txid} has no decodable first output") from e


def _check_newest_first(history: Sequence[JsonDict]) -> None:
    prev: Optional[int] = None
    for entry in history:
        height = entry.get("height")
        if not isinstance(height, int) or height <= 0:
            continue
        if prev is not None and height > prev:
            raise HistoryOrderError(txid=str(entry.get("tx_hash")), height=height, previous_height=prev)
        prev = height


class MultisigApproval:
    """
    Parameters
    ----------
    wallet : WalletInterface
        Chain access (history, tx details, token data, public keys).
    gateway : IpfsGateway | None
        Gateway client. Built from `ipfs_gateway` when omitted.
    ipfs_gateway : str
        Gateway base URL used when `gateway` is not supplied.
    """

    def __init__(
        self,
        wallet: WalletInterface,
        *,
        gateway: Optional[IpfsGateway] = None,
        ipfs_gateway: str = DEFAULT_IPFS_GATEWAY,
    ) -> None:
        if wallet is None:
            raise InvalidInputError("a wallet implementing WalletInterface is required")
        self.wallet = wallet
        self.gateway = gateway or IpfsGateway(ipfs_gateway)
        self.nfts = NftHolderResolver(wallet)
        self.tx_cache = TxDataCache(wallet)

    async def __aenter__(self) -> "MultisigApproval":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        await self.gateway.aclose()

    # --- council ---------------------------------------------------------

    async def get_nft_holder_info(self, group_token_id: Optional[str] = None) -> NftHolderInfo:
        return await self.nfts.get_nft_holder_info(group_token_id or DEFAULT_GROUP_TOKEN_ID)

    def create_multisig_address(
        self,
        keys: Iterable[Union[SignerKey, str]],
        required_signers: Optional[int] = None,
    ) -> MultisigWallet:
        """Multisig wallet for resolver output (`SignerKey`s) or bare hex keys."""
        if isinstance(keys, (str, bytes, dict)) or not isinstance(keys, Iterable):
            raise InvalidInputError("keys must be a sequence of public keys")
        pub_keys = [k.pub_key if isinstance(k, SignerKey) else k for k in keys]
        return create_multisig_address(pub_keys, required_signers)

    # --- scanning --------------------------------------------------------

    async def get_approval_tx(
        self, address: str, filter_txids: Optional[Iterable[str]] = None
    ) -> Optional[ApprovalTx]:
        """
        Newest APPROVAL transaction sent to `address`, or None.

        Transactions listed in `filter_txids` (known fake approvals) are skipped
        without being fetched.
        """
        address = normalize_address(address)
        skip = set(filter_txids or ())

        history = await self.wallet.get_transactions(address)
        _check_newest_first(history)

        for entry in history:
            txid = entry.get("tx_hash")
            if not txid or txid in skip:
                continue
            approval = await self._as_approval(txid, entry)
            if approval is not None:
                return approval
        return None

    async def get_all_approval_txs(self, address: str) -> List[ApprovalTx]:
        """Every APPROVAL transaction sent to `address`, newest first, with heights."""
        address = normalize_address(address)
        history = await self.wallet.get_transactions(address)
        _check_newest_first(history)

        approvals: List[ApprovalTx] = []
        for entry in history:
            txid = entry.get("tx_hash")
            if not txid:
                continue
            approval = await self._as_approval(txid, entry)
            if approval is None:
                continue
            if approval.height is None:
                raise MissingHeightError(txid=txid)
            approvals.append(approval)
        return approvals

    async def _as_approval(self, txid: str, entry: JsonDict) -> Optional[ApprovalTx]:
        details = await self.tx_cache.get_tx_data(txid)
        out2ascii = _first_output_ascii(details)
        if APPROVE_TAG not in out2ascii:
            return None

        update_txid = out2ascii[APPROVAL_TXID_OFFSET:]
        if not _TXID_RE.fullmatch(update_txid):
            log.warning("ignoring APPROVE transaction %s: no update txid in its OP_RETURN", txid)
            return None

        height = entry.get("height")
        return ApprovalTx(
            approval_txid=txid,
            update_txid=update_txid,
            approval_tx_details=details,
            op_return=out2ascii,
            height=height if isinstance(height, int) else None,
        )

    # --- update data -----------------------------------------------------

    async def get_update_tx(self, txid: str) -> JsonDict:
        """Parse the JSON embedded in an UPDATE transaction's OP_RETURN."""
        if not txid:
            raise MissingTxidError("txid required")

        try:
            details = await self.tx_cache.get_tx_data(txid)
        except TxNotFoundError as e:
            raise MalformedUpdateError(f"update transaction {txid} not found") from e
        try:
            json_str = _first_output_ascii(details)[UPDATE_JSON_OFFSET:]
            update_obj = json.loads(json_str)
        except (MalformedDataError, ValueError) as e:
            raise MalformedUpdateError(f"could not parse embedded JSON in transaction {txid}") from e
        if not isinstance(update_obj, dict):
            raise MalformedUpdateError(f"could not parse embedded JSON in transaction {txid}: not an object")
        if not update_obj.get("cid"):
            raise MalformedUpdateError(f"update transaction {txid} does not reference a cid")

        update_obj["txid"] = txid
        update_obj["txDetails"] = details
        return update_obj

    async def get_cid_data(self, cid: str) -> Any:
        return await self.gateway.get_cid_data(cid)

    # --- validation ------------------------------------------------------

    async def validate_approval(
        self,
        approval_obj: Optional[ApprovalTx],
        update_obj: Optional[JsonDict],
        update_data: Any,
        group_token_id: Optional[str] = None,
    ) -> bool:
        """
        True if `approval_obj` was sent by the multisig wallet described in
        `update_data` and that wallet is backed by enough current council keys.

        - approval_obj is the output of get_approval_tx()
        - update_obj is the output of get_update_tx()
        - update_data is the CID data returned by get_cid_data()
        """
        if not approval_obj:
            raise MissingInputError("approval_obj", "output of get_approval_tx() expected")
        if not update_obj:
            raise MissingInputError("update_obj", "output of get_update_tx() expected")
        if not update_data:
            raise MissingInputError("update_data", "update CID JSON data expected")

        payload = UpdatePayload.parse(update_data)
        pub_keys = payload.wallet_obj.public_keys
        required_signers = payload.wallet_obj.required_signers

        try:
            ms_addr = create_multisig_address(pub_keys, required_signers).address
        except InvalidInputError as e:
            raise MalformedPayloadError(f"walletObj does not describe a multisig wallet: {e}") from e

        input_addr = approval_obj.input_address
        if ms_addr != input_addr:
            log.info(
                "approval %s input address %s does not match calculated multisig address %s",
                approval_obj.approval_txid, input_addr, ms_addr,
            )
            return False

        holders = await self.get_nft_holder_info(group_token_id)
        council_keys = set(holders.pub_keys)
        matches = sum(1 for k in set(pub_keys) if k in council_keys)

        threshold = max(MIN_MATCHES, required_signers)
        ok = matches >= threshold
        log.debug(
            "approval %s: %d of %d claimed keys are council keys (threshold %d)",
            approval_obj.approval_txid, matches, len(pub_keys), threshold,
        )
        return ok
