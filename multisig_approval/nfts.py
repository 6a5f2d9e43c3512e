"""
multisig_approval.nfts
======================

Council membership from Group/NFT SLP tokens.

A Group token spawns one NFT per council seat. Whoever holds a seat NFT is an
authorized signer; their public key is recovered from the chain (an address
only exposes its key once it has spent). The resolver walks

    group token → child NFT ids → holder addresses → public keys

and classifies every holder into exactly one of ``keys`` (key found) or
``keys_not_found``. Any lookup failure aborts the whole resolution; partial
signer sets are never returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .config import DEFAULT_GROUP_TOKEN_ID
from .errors import MalformedDataError, MissingHolderError
from .wallet import PUBKEY_NOT_FOUND, WalletInterface

log = logging.getLogger(__name__)

__all__ = ["SignerKey", "NftHolderInfo", "NftHolderResolver"]


@dataclass(frozen=True)
class SignerKey:
    address: str
    pub_key: str
    nft: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"addr": self.address, "pubKey": self.pub_key, "nft": self.nft}


@dataclass
class NftHolderInfo:
    keys: List[SignerKey] = field(default_factory=list)
    keys_not_found: List[str] = field(default_factory=list)

    @property
    def pub_keys(self) -> List[str]:
        return [k.pub_key for k in self.keys]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keys": [k.to_dict() for k in self.keys],
            "keysNotFound": list(self.keys_not_found),
        }


class NftHolderResolver:
    def __init__(self, wallet: WalletInterface) -> None:
        self.wallet = wallet

    async def get_nft_holder_info(self, group_token_id: Optional[str] = None) -> NftHolderInfo:
        """Addresses and public keys of every NFT holder of `group_token_id`."""
        group_token_id = group_token_id or DEFAULT_GROUP_TOKEN_ID

        nfts = await self.get_nfts_from_group(group_token_id)
        holders = await self.get_holders(nfts)
        info = await self.find_keys(list(holders), list(holders.values()))

        log.debug(
            "group %s: %d NFTs, %d keys, %d keys not found",
            group_token_id, len(nfts), len(info.keys), len(info.keys_not_found),
        )
        return info

    async def get_nfts_from_group(self, group_id: str = DEFAULT_GROUP_TOKEN_ID) -> List[str]:
        group_data = await self.wallet.get_token_data(group_id)
        nfts = (group_data.get("genesisData") or {}).get("nfts")
        if nfts is None:
            return []
        if not isinstance(nfts, list):
            raise MalformedDataError(f"NFT list of group {group_id} is not a list: {nfts!r}")
        return [str(n) for n in nfts]

    async def get_holders(self, nfts: Sequence[str]) -> Dict[str, str]:
        """
        Map holder address → first NFT it was seen holding.

        An address holding several seats appears once, so it can never be
        counted twice towards a signing threshold.
        """
        holders: Dict[str, str] = {}
        for nft in nfts:
            nft_data = await self.wallet.get_token_data(nft, True)
            holder = (nft_data.get("genesisData") or {}).get("nftHolder")
            if not holder:
                raise MissingHolderError(nft=nft, token_data=nft_data)
            holders.setdefault(holder, nft)
        return holders

    async def get_addrs_from_nfts(self, nfts: Sequence[str]) -> List[str]:
        """Deduplicated holder addresses of `nfts`."""
        return list(await self.get_holders(nfts))

    async def find_keys(
        self, addrs: Sequence[str], nfts: Optional[Sequence[Optional[str]]] = None
    ) -> NftHolderInfo:
        """
        Look up the public key of each address. `nfts`, when given, is aligned
        with `addrs` and recorded on the resulting `SignerKey`.
        """
        if nfts is not None and len(nfts) != len(addrs):
            raise ValueError("addrs and nfts must have the same length")

        info = NftHolderInfo()
        for i, addr in enumerate(addrs):
            nft = nfts[i] if nfts is not None else None
            pub_key = await self.wallet.get_pub_key(addr)
            if PUBKEY_NOT_FOUND in pub_key:
                info.keys_not_found.append(addr)
            else:
                info.keys.append(SignerKey(address=addr, pub_key=pub_key, nft=nft))
        return info
