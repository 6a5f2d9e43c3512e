"""
IPFS gateway client: resolves an update CID to its ``data.json`` document.

There is no retry at this layer. Transport errors (`httpx.HTTPError` and
subclasses) propagate unmodified; the write price orchestrator decides what a
failed fetch means.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .config import DEFAULT_IPFS_GATEWAY, ApprovalConfig
from .errors import MissingCidError

log = logging.getLogger(__name__)


class IpfsGateway:
    def __init__(
        self,
        gateway_url: str = DEFAULT_IPFS_GATEWAY,
        *,
        timeout_s: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.gateway_url = gateway_url.rstrip("/")
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(timeout=timeout_s, headers=headers)

    @classmethod
    def from_config(cls, cfg: ApprovalConfig) -> "IpfsGateway":
        return cls(cfg.ipfs_gateway, timeout_s=cfg.request_timeout, headers=cfg.http_headers())

    async def __aenter__(self) -> "IpfsGateway":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def cid_url(self, cid: str) -> str:
        return f"{self.gateway_url}/ipfs/{cid}/data.json"

    async def get_cid_data(self, cid: str) -> Any:
        """GET ``{gateway}/ipfs/{cid}/data.json`` and return the decoded JSON."""
        if not cid:
            raise MissingCidError("cid is a required input")

        url = self.cid_url(cid)
        log.debug("fetching update data %s", url)
        r = await self._http.get(url)
        r.raise_for_status()
        return r.json()


__all__ = ["IpfsGateway"]
