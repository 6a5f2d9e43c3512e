from __future__ import annotations

import pytest

from fakes import FakeGateway, FakeWallet
from multisig_approval.approval import MultisigApproval
from multisig_approval.config import ApprovalConfig
from multisig_approval.utils.cashaddr import CASH_PREFIX, P2PKH, encode
from multisig_approval.write_price import WritePriceOracle

# Address the council sends APPROVAL transactions to in these tests.
PRICE_ADDR = encode(CASH_PREFIX, P2PKH, bytes(range(20)))


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def approval(wallet: FakeWallet, gateway: FakeGateway) -> MultisigApproval:
    return MultisigApproval(wallet, gateway=gateway)  # type: ignore[arg-type]


@pytest.fixture
def price_addr() -> str:
    return PRICE_ADDR


@pytest.fixture
def config() -> ApprovalConfig:
    return ApprovalConfig(write_price_addr=PRICE_ADDR, max_attempts=5)


@pytest.fixture
def oracle(approval: MultisigApproval, config: ApprovalConfig) -> WritePriceOracle:
    return WritePriceOracle(approval, config=config)
