from __future__ import annotations

import hashlib

from Crypto.Hash import RIPEMD160

# hashlib only has RIPEMD-160 on some OpenSSL builds.


def sha256(data: bytes) -> bytes:
    """Return the SHA-256 digest of *data*."""
    return hashlib.sha256(bytes(data)).digest()


def ripemd160(data: bytes) -> bytes:
    """Return the RIPEMD-160 digest of *data*."""
    return RIPEMD160.new(bytes(data)).digest()


def hash160(data: bytes) -> bytes:
    """RIPEMD-160(SHA-256(data)), the script/key hash used by P2PKH and P2SH."""
    return ripemd160(sha256(data))


__all__ = ["sha256", "ripemd160", "hash160"]
