"""
CashAddr codec (Bitcoin Cash address format), plus prefix conversion helpers.

A tiny self-contained implementation so the library does not depend on an
external address package. SLP wallets show the same hash under the
``simpleledger:`` prefix; converting between prefixes only re-computes the
checksum.

Typical usage
-------------
>>> addr = encode("bitcoincash", P2SH, bytes(20))
>>> prefix, kind, h = decode(addr)
>>> to_cash_address(encode("simpleledger", P2PKH, h)).startswith("bitcoincash:")
True

Helpers
-------
- encode(prefix, kind, hash_bytes) -> "prefix:payload"
- decode(addr) -> (prefix, kind, hash_bytes)
- convert_prefix(addr, prefix) -> same hash/kind under another prefix
- to_cash_address(addr) -> bitcoincash: form
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

__all__ = [
    "encode",
    "decode",
    "convert_prefix",
    "to_cash_address",
    "CashAddrError",
    "CASH_PREFIX",
    "SLP_PREFIX",
    "P2PKH",
    "P2SH",
]

CASH_PREFIX = "bitcoincash"
SLP_PREFIX = "simpleledger"

# Address kinds (upper bits of the version byte)
P2PKH = 0
P2SH = 1

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
CHARSET_REV = {c: i for i, c in enumerate(CHARSET)}

# hash size in bytes -> size code (lower 3 bits of the version byte)
_SIZE_CODES = {20: 0, 24: 1, 28: 2, 32: 3, 40: 4, 48: 5, 56: 6, 64: 7}
_SIZE_BY_CODE = {v: k for k, v in _SIZE_CODES.items()}


class CashAddrError(ValueError):
    pass


def _polymod(values: Sequence[int]) -> int:
    """40-bit BCH checksum over 5-bit values."""
    GENERATORS = (0x98F2BC8E61, 0x79B76D99E2, 0xF33E5FB3C4, 0xAE2EABE2A8, 0x1E4F43E470)
    c = 1
    for d in values:
        c0 = c >> 35
        c = ((c & 0x07FFFFFFFF) << 5) ^ d
        for i in range(5):
            if (c0 >> i) & 1:
                c ^= GENERATORS[i]
    return c ^ 1


def _prefix_expand(prefix: str) -> List[int]:
    return [ord(x) & 0x1F for x in prefix] + [0]


def _create_checksum(prefix: str, payload: Sequence[int]) -> List[int]:
    mod = _polymod(_prefix_expand(prefix) + list(payload) + [0] * 8)
    return [(mod >> 5 * (7 - i)) & 0x1F for i in range(8)]


def _validate_prefix(prefix: str) -> None:
    if not prefix or any(not ("a" <= c <= "z" or "0" <= c <= "9") for c in prefix):
        raise CashAddrError("invalid prefix (must be lowercase alphanumeric)")


def convertbits(data: Iterable[int], from_bits: int, to_bits: int, *, pad: bool = True) -> List[int]:
    """
    General power-of-two base conversion (e.g., 8→5 or 5→8).
    Returns list of integers in the target base.
    """
    acc = 0
    bits = 0
    ret: List[int] = []
    maxv = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise CashAddrError("invalid value for convertbits")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (to_bits - bits)) & maxv)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & maxv):
        raise CashAddrError("non-zero padding")
    return ret


def encode(prefix: str, kind: int, hash_bytes: bytes) -> str:
    """Encode a hash of the given kind (P2PKH/P2SH) under `prefix`."""
    _validate_prefix(prefix)
    size_code = _SIZE_CODES.get(len(hash_bytes))
    if size_code is None:
        raise CashAddrError(f"unsupported hash length {len(hash_bytes)}")
    if kind < 0 or kind > 15:
        raise CashAddrError(f"invalid address kind {kind}")
    version = (kind << 3) | size_code
    payload = convertbits(bytes([version]) + bytes(hash_bytes), 8, 5, pad=True)
    checksum = _create_checksum(prefix, payload)
    return prefix + ":" + "".join(CHARSET[d] for d in payload + checksum)


def decode(addr: str) -> Tuple[str, int, bytes]:
    """
    Decode a prefixed CashAddr string. Returns (prefix, kind, hash_bytes).
    Raises CashAddrError on failure.
    """
    if not isinstance(addr, str):
        raise CashAddrError("address must be a string")
    if addr.lower() != addr and addr.upper() != addr:
        raise CashAddrError("mixed case not allowed")
    addr = addr.lower()
    if ":" not in addr:
        raise CashAddrError("missing prefix separator ':'")
    prefix, rest = addr.split(":", 1)
    _validate_prefix(prefix)
    if len(rest) < 8 + 1:
        raise CashAddrError("too short payload/checksum")
    try:
        data = [CHARSET_REV[c] for c in rest]
    except KeyError:
        raise CashAddrError("invalid charset") from None
    if _polymod(_prefix_expand(prefix) + data) != 0:
        raise CashAddrError("invalid checksum")

    decoded = bytes(convertbits(data[:-8], 5, 8, pad=False))
    version, hash_bytes = decoded[0], decoded[1:]
    expected = _SIZE_BY_CODE[version & 0x07]
    if len(hash_bytes) != expected:
        raise CashAddrError(f"hash length {len(hash_bytes)} does not match version byte")
    return prefix, version >> 3, hash_bytes


def convert_prefix(addr: str, prefix: str) -> str:
    _, kind, hash_bytes = decode(addr)
    return encode(prefix, kind, hash_bytes)


def to_cash_address(addr: str) -> str:
    """Return the ``bitcoincash:`` form of a CashAddr/SLP address."""
    return convert_prefix(addr, CASH_PREFIX)

