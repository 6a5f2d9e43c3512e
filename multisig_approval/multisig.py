"""
multisig_approval.multisig
==========================

Deterministic P2SH multisignature address derivation.

The redeem script is the bare ``m-of-n`` template

    OP_m <pubkey_1> ... <pubkey_n> OP_n OP_CHECKMULTISIG

with the public keys sorted lexicographically by their hex encoding, so the
same key set always yields the same address regardless of input order. The
address is the CashAddr (type P2SH) of HASH160(redeem script) and the locking
script is ``OP_HASH160 <hash> OP_EQUAL``.

The validator re-derives this address from an update payload and compares it
with the address that actually spent into the APPROVAL transaction, so the
derivation must stay byte-for-byte stable.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import InvalidInputError
from .utils.cashaddr import CASH_PREFIX, P2SH, encode
from .utils.hash import hash160

__all__ = [
    "MultisigWallet",
    "MAX_PUBKEYS",
    "default_required_signers",
    "build_redeem_script",
    "create_multisig_address",
]

OP_1 = 0x51
OP_EQUAL = 0x87
OP_HASH160 = 0xA9
OP_CHECKMULTISIG = 0xAE

# OP_1..OP_16 are the only small-int opcodes a bare multisig template can use.
MAX_PUBKEYS = 16


@dataclass(frozen=True)
class MultisigWallet:
    address: str
    script_hex: str
    redeem_script_hex: str
    public_keys: List[str]
    required_signers: int

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape used by update payloads (``walletObj``)."""
        return {
            "address": self.address,
            "scriptHex": self.script_hex,
            "publicKeys": list(self.public_keys),
            "requiredSigners": self.required_signers,
        }


def default_required_signers(n_keys: int) -> int:
    """Simple majority: floor(n/2) + 1."""
    return n_keys // 2 + 1


def _small_int_op(n: int) -> int:
    return OP_1 + (n - 1)


def _parse_pubkey(key: Any) -> bytes:
    if not isinstance(key, str):
        raise InvalidInputError(f"public key must be a hex string, got {type(key).__name__}")
    try:
        raw = bytes.fromhex(key)
    except ValueError:
        raise InvalidInputError(f"public key is not valid hex: {key!r}") from None
    if len(raw) == 33 and raw[0] in (0x02, 0x03):
        return raw
    if len(raw) == 65 and raw[0] == 0x04:
        return raw
    raise InvalidInputError(f"not a SEC encoded public key: {key!r}")


def _check_keys(public_keys: Any) -> List[bytes]:
    if isinstance(public_keys, (str, bytes, bytearray, Mapping)) or not isinstance(public_keys, Sequence):
        raise InvalidInputError("public_keys must be a sequence of hex public keys")
    if not public_keys:
        raise InvalidInputError("public_keys must not be empty")
    if len(public_keys) > MAX_PUBKEYS:
        raise InvalidInputError(f"at most {MAX_PUBKEYS} public keys are supported, got {len(public_keys)}")
    return [_parse_pubkey(k) for k in public_keys]


def build_redeem_script(public_keys: Sequence[str], required_signers: int) -> bytes:
    keys = sorted(_check_keys(public_keys), key=lambda raw: raw.hex())
    n = len(keys)
    if isinstance(required_signers, bool) or not isinstance(required_signers, int):
        raise InvalidInputError("required_signers must be an integer")
    if not 1 <= required_signers <= n:
        raise InvalidInputError(f"required_signers must be between 1 and {n}, got {required_signers}")

    script = bytearray([_small_int_op(required_signers)])
    for raw in keys:
        script.append(len(raw))  # direct push, 33 or 65 bytes
        script.extend(raw)
    script.append(_small_int_op(n))
    script.append(OP_CHECKMULTISIG)
    return bytes(script)


def create_multisig_address(
    public_keys: Sequence[str],
    required_signers: Optional[int] = None,
    *,
    prefix: str = CASH_PREFIX,
) -> MultisigWallet:
    """
    Derive the P2SH multisig wallet for `public_keys`.

    `required_signers` defaults to a 50% + 1 threshold.
    """
    keys = _check_keys(public_keys)
    if required_signers is None:
        required_signers = default_required_signers(len(keys))

    redeem = build_redeem_script(public_keys, required_signers)
    script_hash = hash160(redeem)
    locking = bytes([OP_HASH160, len(script_hash)]) + script_hash + bytes([OP_EQUAL])

    return MultisigWallet(
        address=encode(prefix, P2SH, script_hash),
        script_hex=locking.hex(),
        redeem_script_hex=redeem.hex(),
        public_keys=list(public_keys),
        required_signers=required_signers,
    )
