"""
Schema of the update document published on IPFS (``<cid>/data.json``).

Only the fields the validator and the orchestrator rely on are declared; any
other keys the council tooling writes (holder lists, timestamps, ...) are kept
as extras. The write price has two historical spellings: ``p2wdbWritePrice``
wins when present, ``writePrice`` is the fallback, and a document carrying
neither is rejected when parsed.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import MalformedPayloadError

__all__ = ["WalletObj", "UpdatePayload"]


class WalletObj(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    public_keys: List[str] = Field(alias="publicKeys", min_length=1)
    required_signers: int = Field(alias="requiredSigners", ge=1)
    address: Optional[str] = None
    script_hex: Optional[str] = Field(default=None, alias="scriptHex")


class UpdatePayload(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    wallet_obj: WalletObj = Field(alias="walletObj")
    p2wdb_write_price: Optional[float] = Field(default=None, alias="p2wdbWritePrice")
    write_price: Optional[float] = Field(default=None, alias="writePrice")
    group_id: Optional[str] = Field(default=None, alias="groupId")
    multisig_addr: Optional[str] = Field(default=None, alias="multisigAddr")

    @model_validator(mode="after")
    def _require_price(self) -> "UpdatePayload":
        if self.p2wdb_write_price is None and self.write_price is None:
            raise ValueError("update data carries neither p2wdbWritePrice nor writePrice")
        return self

    @property
    def price(self) -> float:
        if self.p2wdb_write_price is not None:
            return self.p2wdb_write_price
        return self.write_price  # type: ignore[return-value]

    @classmethod
    def parse(cls, data: Any) -> "UpdatePayload":
        """Validate raw gateway JSON, raising `MalformedPayloadError` on failure."""
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedPayloadError(f"invalid update data: {e}") from e
