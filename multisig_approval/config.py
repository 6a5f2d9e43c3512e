"""
Library configuration: REST backend, IPFS gateway, governance constants and
retry budget.

- Loads sane defaults and supports overrides via environment variables (PSF_*).
- Validates URL schemes the same way for env and keyword overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .version import __version__

DEFAULT_REST_URL = "https://free-bch.fullstack.cash"
DEFAULT_IPFS_GATEWAY = "https://p2wdb-gateway-678.fullstack.cash"

# PSF Minting Council: Group token whose NFTs are the council seats, and the
# address the council's APPROVAL transactions are sent to.
DEFAULT_GROUP_TOKEN_ID = "8e8d90ebdb1791d58eba7acd428ff3b1e21c47fb7aba2ba3b5b815aa0fe7d6d5"
WRITE_PRICE_ADDR = "bitcoincash:qrwe6kxhvu47ve6jvgrf2d93w0q38av7s5xm9xfehr"

# PSF tokens per megabyte, used whenever governance data can not be resolved.
SAFETY_WRITE_PRICE = 0.03570889


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


def _optional_float(val: Optional[str]) -> Optional[float]:
    if val is None or val.strip() == "":
        return None
    return float(val)


@dataclass(slots=True)
class ApprovalConfig:
    # Endpoints
    rest_url: str = DEFAULT_REST_URL
    ipfs_gateway: str = DEFAULT_IPFS_GATEWAY
    # Governance
    write_price_addr: str = WRITE_PRICE_ADDR
    group_token_id: str = DEFAULT_GROUP_TOKEN_ID
    safety_write_price: float = SAFETY_WRITE_PRICE
    # HTTP behavior
    request_timeout: float = 30.0
    user_agent: str = field(default_factory=lambda: f"psf-multisig-approval-py/{__version__}")
    # Retry budget for the write price lookup
    max_attempts: int = 25
    deadline_s: Optional[float] = None

    @classmethod
    def from_env(cls, prefix: str = "PSF_") -> "ApprovalConfig":
        """
        Create config from environment variables:

        PSF_REST_URL            (http/https) wallet REST backend
        PSF_IPFS_GATEWAY        (http/https) gateway serving /ipfs/<cid>/data.json
        PSF_WRITE_PRICE_ADDR    address receiving APPROVAL transactions
        PSF_GROUP_TOKEN_ID      Group token of the council NFTs
        PSF_SAFETY_WRITE_PRICE  (float) fallback write price
        PSF_TIMEOUT             (float seconds, HTTP)
        PSF_MAX_ATTEMPTS        (int) approvals tried before giving up
        PSF_DEADLINE            (float seconds) wall-clock budget, empty = none
        PSF_USER_AGENT          (str)
        """
        rest = _env(f"{prefix}REST_URL", DEFAULT_REST_URL)
        gateway = _env(f"{prefix}IPFS_GATEWAY", DEFAULT_IPFS_GATEWAY)
        _ensure_scheme(rest, ("http", "https"))
        _ensure_scheme(gateway, ("http", "https"))

        attempts = int(_env(f"{prefix}MAX_ATTEMPTS", "25"))
        if attempts < 1:
            raise ValueError(f"{prefix}MAX_ATTEMPTS must be >= 1, got {attempts}")

        return cls(
            rest_url=rest or DEFAULT_REST_URL,
            ipfs_gateway=gateway or DEFAULT_IPFS_GATEWAY,
            write_price_addr=_env(f"{prefix}WRITE_PRICE_ADDR", WRITE_PRICE_ADDR) or WRITE_PRICE_ADDR,
            group_token_id=_env(f"{prefix}GROUP_TOKEN_ID", DEFAULT_GROUP_TOKEN_ID) or DEFAULT_GROUP_TOKEN_ID,
            safety_write_price=float(_env(f"{prefix}SAFETY_WRITE_PRICE", str(SAFETY_WRITE_PRICE))),
            request_timeout=float(_env(f"{prefix}TIMEOUT", "30.0")),
            user_agent=_env(f"{prefix}USER_AGENT", None) or f"psf-multisig-approval-py/{__version__}",
            max_attempts=attempts,
            deadline_s=_optional_float(_env(f"{prefix}DEADLINE", None)),
        )

    @classmethod
    def with_overrides(
        cls, base: Optional["ApprovalConfig"] = None, **overrides: Any
    ) -> "ApprovalConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys and None values are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data and v is not None})
        if "rest_url" in overrides:
            _ensure_scheme(data["rest_url"], ("http", "https"))
        if "ipfs_gateway" in overrides:
            _ensure_scheme(data["ipfs_gateway"], ("http", "https"))
        return cls(**data)

    def http_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rest_url": self.rest_url,
            "ipfs_gateway": self.ipfs_gateway,
            "write_price_addr": self.write_price_addr,
            "group_token_id": self.group_token_id,
            "safety_write_price": float(self.safety_write_price),
            "request_timeout": float(self.request_timeout),
            "user_agent": self.user_agent,
            "max_attempts": int(self.max_attempts),
            "deadline_s": self.deadline_s,
        }


__all__ = [
    "ApprovalConfig",
    "DEFAULT_REST_URL",
    "DEFAULT_IPFS_GATEWAY",
    "DEFAULT_GROUP_TOKEN_ID",
    "WRITE_PRICE_ADDR",
    "SAFETY_WRITE_PRICE",
]
