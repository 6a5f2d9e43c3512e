"""
Small self-contained helpers: hashing and the CashAddr codec.
"""

from .cashaddr import (  # noqa: F401
    CashAddrError,
    convert_prefix,
    decode as decode_cashaddr,
    encode as encode_cashaddr,
    to_cash_address,
)
from .hash import hash160, ripemd160, sha256  # noqa: F401

__all__ = [
    "CashAddrError",
    "convert_prefix",
    "decode_cashaddr",
    "encode_cashaddr",
    "to_cash_address",
    "hash160",
    "ripemd160",
    "sha256",
]
