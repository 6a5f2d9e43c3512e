"""
psf-multisig-approval: PSF Minting Council approvals and write price for Python.
Convenience exports for the most common APIs.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import ApprovalConfig  # noqa: F401
from .errors import (  # noqa: F401
    ApprovalError,
    InputValidationError,
    MalformedDataError,
    NoApprovalFoundError,
    RetryBudgetExceededError,
    TransportError,
)

# Protocol
from .approval import ApprovalTx, MultisigApproval  # noqa: F401
from .multisig import MultisigWallet, create_multisig_address  # noqa: F401
from .nfts import NftHolderInfo, NftHolderResolver, SignerKey  # noqa: F401
from .payload import UpdatePayload  # noqa: F401
from .write_price import WritePriceEntry, WritePriceOracle  # noqa: F401

# Transports
from .gateway import IpfsGateway  # noqa: F401
from .wallet import WalletInterface  # noqa: F401
from .wallet.rest import RestWallet  # noqa: F401

__all__ = [
    "__version__",
    # Core
    "ApprovalConfig",
    "ApprovalError", "InputValidationError", "MalformedDataError",
    "NoApprovalFoundError", "RetryBudgetExceededError", "TransportError",
    # Protocol
    "ApprovalTx", "MultisigApproval",
    "MultisigWallet", "create_multisig_address",
    "NftHolderInfo", "NftHolderResolver", "SignerKey",
    "UpdatePayload",
    "WritePriceEntry", "WritePriceOracle",
    # Transports
    "IpfsGateway", "WalletInterface", "RestWallet",
]
