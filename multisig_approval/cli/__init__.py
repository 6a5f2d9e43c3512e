"""
multisig_approval.cli
=====================

Typer-based command line interface, installed as the `psf-approval` console
script. Typer is only imported when the CLI is actually used.

    $ psf-approval write-price
    $ psf-approval history
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Optional

__all__ = ["run", "app"]

_SUBMODULE = "multisig_approval.cli.main"


def __getattr__(name: str) -> Any:  # PEP 562 lazy attribute access
    if name == "app":
        return import_module(_SUBMODULE).app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def run(argv: Optional[list[str]] = None) -> int:
    """Run `psf-approval` with `argv` and return its exit code."""
    return int(import_module(_SUBMODULE).main(argv))
