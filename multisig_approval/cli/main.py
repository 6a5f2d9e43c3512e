"""
multisig_approval.cli.main
==========================

`psf-approval`: inspect PSF Minting Council governance data from the shell.

Examples
--------
    $ psf-approval write-price
    $ psf-approval history
    $ psf-approval holders
    $ psf-approval multisig-address --required 3
    $ psf-approval approval --address bitcoincash:qr... --filter <txid>

Configuration
-------------
- REST URL     : `--rest-url` or env `PSF_REST_URL`
- IPFS gateway : `--gateway` or env `PSF_IPFS_GATEWAY`
- HTTP timeout : `--timeout` or env `PSF_TIMEOUT`
- Other PSF_* variables are read by `ApprovalConfig.from_env()`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import typer

from ..config import ApprovalConfig
from ..version import __version__
from ..write_price import WritePriceOracle

T = TypeVar("T")

app = typer.Typer(
    name="psf-approval",
    help="PSF multisig approval tools: write price, council keys, approvals.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main"]


@dataclass
class Ctx:
    config: ApprovalConfig


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False))


@app.callback()
def _root(
    ctx: typer.Context,
    rest_url: Optional[str] = typer.Option(None, "--rest-url", help="Wallet REST API base URL."),
    gateway: Optional[str] = typer.Option(None, "--gateway", help="IPFS gateway base URL."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="HTTP timeout in seconds."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level."),
) -> None:
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    cfg = ApprovalConfig.with_overrides(
        ApprovalConfig.from_env(),
        rest_url=rest_url,
        ipfs_gateway=gateway,
        request_timeout=timeout,
    )
    ctx.obj = Ctx(config=cfg)


def _oracle(ctx: typer.Context) -> WritePriceOracle:
    c: Ctx = ctx.obj
    return WritePriceOracle.from_config(c.config)


def _run(ctx: typer.Context, fn: Callable[[WritePriceOracle], Awaitable[T]]) -> T:
    async def _go() -> T:
        async with _oracle(ctx) as oracle:
            return await fn(oracle)

    return asyncio.run(_go())


# --- Commands -----------------------------------------------------------------


@app.command("version")
def version() -> None:
    """Print the CLI version."""
    typer.echo(f"psf-approval {__version__}")


@app.command("env")
def env(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    c: Ctx = ctx.obj
    _print_json(c.config.to_dict())


@app.command("write-price")
def write_price(ctx: typer.Context) -> None:
    """Current write price (PSF tokens per MB) approved by the council."""
    price = _run(ctx, lambda o: o.get_mc_write_price())
    _print_json({"writePrice": price})


@app.command("history")
def history(ctx: typer.Context) -> None:
    """Every validated write price change with its block height."""
    entries = _run(ctx, lambda o: o.get_write_price_history())
    _print_json([e.to_dict() for e in entries])


@app.command("holders")
def holders(
    ctx: typer.Context,
    group: Optional[str] = typer.Option(None, "--group", help="Group token id (default: Minting Council)."),
) -> None:
    """Council NFT holders and their public keys."""
    info = _run(ctx, lambda o: o.approval.get_nft_holder_info(group))
    _print_json(info.to_dict())


@app.command("multisig-address")
def multisig_address(
    ctx: typer.Context,
    group: Optional[str] = typer.Option(None, "--group", help="Group token id (default: Minting Council)."),
    required: Optional[int] = typer.Option(None, "--required", help="Required signers (default: 50% + 1)."),
) -> None:
    """Multisig wallet formed by the current council keys."""

    async def _build(o: WritePriceOracle):
        info = await o.approval.get_nft_holder_info(group)
        return o.approval.create_multisig_address(info.keys, required)

    wallet = _run(ctx, _build)
    _print_json(wallet.to_dict())


@app.command("approval")
def approval(
    ctx: typer.Context,
    address: Optional[str] = typer.Option(None, "--address", help="Address receiving approvals."),
    filter_txids: List[str] = typer.Option([], "--filter", help="Approval txid to skip (repeatable)."),
) -> None:
    """Newest APPROVAL transaction sent to an address."""
    c: Ctx = ctx.obj
    addr = address or c.config.write_price_addr
    found = _run(ctx, lambda o: o.approval.get_approval_tx(addr, filter_txids))
    if found is None:
        typer.echo("no APPROVAL transaction found", err=True)
        raise typer.Exit(code=1)
    _print_json(found.to_dict())


# --- Entrypoints --------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code.
    """
    try:
        rv = app(prog_name="psf-approval", standalone_mode=False, args=argv)
        return rv if isinstance(rv, int) else 0
    except typer.Exit as e:
        return int(e.exit_code)
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
