"""
Typed error classes for the multisig approval library.

Everything raised by the scanner, resolvers, validator and REST wallet derives
from `ApprovalError`, so callers can catch one base class or pick the failure
mode they care about:

- InputValidationError  : a required argument is missing or malformed
- MalformedDataError    : chain or gateway data does not have the expected shape
- ResolutionNotFoundError: no APPROVAL transaction could be located
- RetryBudgetExceededError: the orchestrator ran out of attempts or time
- TransportError        : the wallet collaborator returned an unusable response
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

__all__ = [
    "ApprovalError",
    "InputValidationError",
    "InvalidInputError",
    "InvalidAddressError",
    "MissingTxidError",
    "MissingCidError",
    "MissingInputError",
    "MalformedDataError",
    "MalformedUpdateError",
    "MalformedPayloadError",
    "MissingHolderError",
    "MissingHeightError",
    "TxNotFoundError",
    "HistoryOrderError",
    "ResolutionNotFoundError",
    "NoApprovalFoundError",
    "RetryBudgetExceededError",
    "TransportError",
]


class ApprovalError(Exception):
    """Base class for all library errors."""


# --- Input validation ---------------------------------------------------------


class InputValidationError(ApprovalError, ValueError):
    """A required argument is missing or malformed. Never retried."""


class InvalidInputError(InputValidationError):
    pass


class InvalidAddressError(InputValidationError):
    pass


class MissingTxidError(InputValidationError):
    pass


class MissingCidError(InputValidationError):
    pass


@dataclass(slots=True)
class MissingInputError(InputValidationError):
    """Raised by the validator when one of its three inputs is absent."""

    field: str
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        msg = f"missing required input {self.field!r}"
        return f"{msg}: {self.hint}" if self.hint else msg


# --- Malformed data -----------------------------------------------------------


class MalformedDataError(ApprovalError):
    """Chain or gateway data could not be interpreted."""


class MalformedUpdateError(MalformedDataError):
    pass


class MalformedPayloadError(MalformedDataError):
    pass


@dataclass(slots=True)
class MissingHolderError(MalformedDataError):
    """The token indexer did not report a holder address for an NFT."""

    nft: str
    token_data: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return (
            f"SLP indexer data does not include a holder address for NFT {self.nft}"
            f" (token data: {self.token_data!r})"
        )


@dataclass(slots=True)
class MissingHeightError(MalformedDataError):
    """A history entry has no block height where one is required."""

    txid: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"block height missing for transaction {self.txid}"


@dataclass(slots=True)
class TxNotFoundError(MalformedDataError):
    """The wallet returned no details for a transaction id."""

    txid: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"no details found for transaction {self.txid}"


@dataclass(slots=True)
class HistoryOrderError(MalformedDataError):
    """Transaction history is not ordered newest-first."""

    txid: str
    height: int
    previous_height: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return (
            f"transaction history is not newest-first: {self.txid} at height"
            f" {self.height} follows height {self.previous_height}"
        )


# --- Resolution ---------------------------------------------------------------


class ResolutionNotFoundError(ApprovalError):
    pass


class NoApprovalFoundError(ResolutionNotFoundError):
    pass


@dataclass(slots=True)
class RetryBudgetExceededError(ApprovalError):
    """The approval retry loop gave up before finding a valid approval."""

    attempts: int
    reason: str = "max attempts reached"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"gave up after {self.attempts} attempts: {self.reason}"


# --- Transport ----------------------------------------------------------------


@dataclass(slots=True)
class TransportError(ApprovalError):
    """The wallet REST backend returned an error or an unexpected body."""

    message: str
    endpoint: Optional[str] = None
    http_status: Optional[int] = None
    data: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [self.message]
        if self.endpoint:
            parts.append(f"endpoint={self.endpoint}")
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)
