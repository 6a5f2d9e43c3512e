import pytest

from fakes import addr, approval_script, publish_approval, tx, txid, update_script
from multisig_approval.approval import MultisigApproval, normalize_address
from multisig_approval.errors import (
    HistoryOrderError,
    InvalidAddressError,
    InvalidInputError,
    MalformedUpdateError,
    MissingHeightError,
    MissingTxidError,
)
from multisig_approval.utils.cashaddr import SLP_PREFIX, convert_prefix

P2PKH_SCRIPT = "76a914" + "11" * 20 + "88ac"


def test_wallet_is_required():
    with pytest.raises(InvalidInputError):
        MultisigApproval(None)  # type: ignore[arg-type]


def test_normalize_address(price_addr):
    assert normalize_address(price_addr) == price_addr
    assert normalize_address(convert_prefix(price_addr, SLP_PREFIX)) == price_addr
    with pytest.raises(InvalidAddressError):
        normalize_address("bchtest:qqqq")
    with pytest.raises(InvalidAddressError):
        normalize_address("simpleledger:notanaddress")


@pytest.mark.asyncio
async def test_returns_newest_approval(wallet, gateway, approval, price_addr):
    newer, _ = publish_approval(wallet, gateway, to=price_addr, tag="2", height=200, price=0.2)
    publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)

    found = await approval.get_approval_tx(price_addr)

    assert found.approval_txid == newer
    assert found.update_txid == txid("u2")
    assert found.height == 200
    assert "APPROVE" in found.op_return
    assert found.to_dict()["updateTxid"] == txid("u2")


@pytest.mark.asyncio
async def test_non_approval_transactions_are_skipped(wallet, gateway, approval, price_addr):
    wallet.txs["pay"] = tx("pay", P2PKH_SCRIPT)
    wallet.txs["memo"] = tx("memo", update_script({"cid": "bafyx"}))
    wallet.add_history(price_addr, "pay", 300)
    wallet.add_history(price_addr, "memo", 250)
    expected, _ = publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)

    found = await approval.get_approval_tx(price_addr)

    assert found.approval_txid == expected


@pytest.mark.asyncio
async def test_filtered_txids_are_never_fetched(wallet, gateway, approval, price_addr):
    fake, _ = publish_approval(wallet, gateway, to=price_addr, tag="2", height=200, price=9.9)
    real, _ = publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)

    found = await approval.get_approval_tx(price_addr, [fake])

    assert found.approval_txid == real
    assert (fake,) not in wallet.fetched("get_tx_data")


@pytest.mark.asyncio
async def test_no_approval_returns_none(wallet, approval, price_addr):
    wallet.txs["pay"] = tx("pay", P2PKH_SCRIPT)
    wallet.add_history(price_addr, "pay", 10)

    assert await approval.get_approval_tx(price_addr) is None
    assert await approval.get_approval_tx(addr(42)) is None


@pytest.mark.asyncio
async def test_simpleledger_address_is_scanned_as_bitcoincash(wallet, gateway, approval, price_addr):
    expected, _ = publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)

    found = await approval.get_approval_tx(convert_prefix(price_addr, SLP_PREFIX))

    assert found.approval_txid == expected
    assert wallet.fetched("get_transactions") == [price_addr]


@pytest.mark.asyncio
async def test_invalid_address_prefix(approval):
    with pytest.raises(InvalidAddressError):
        await approval.get_approval_tx("bchtest:qr6m7j9njldwwzlg9v7v53unlr4jkmx6eylep8ekg2")


@pytest.mark.asyncio
async def test_history_must_be_newest_first(wallet, gateway, approval, price_addr):
    publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)
    publish_approval(wallet, gateway, to=price_addr, tag="2", height=200, price=0.2)

    with pytest.raises(HistoryOrderError):
        await approval.get_approval_tx(price_addr)


@pytest.mark.asyncio
async def test_unconfirmed_entries_do_not_break_ordering(wallet, gateway, approval, price_addr):
    pending, _ = publish_approval(wallet, gateway, to=price_addr, tag="3", height=None, price=0.3)
    publish_approval(wallet, gateway, to=price_addr, tag="2", height=200, price=0.2)

    found = await approval.get_approval_tx(price_addr)

    assert found.approval_txid == pending
    assert found.height is None


@pytest.mark.asyncio
async def test_all_approvals_newest_first(wallet, gateway, approval, price_addr):
    a2, _ = publish_approval(wallet, gateway, to=price_addr, tag="2", height=200, price=0.2)
    wallet.txs["pay"] = tx("pay", P2PKH_SCRIPT)
    wallet.add_history(price_addr, "pay", 150)
    a1, _ = publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)

    found = await approval.get_all_approval_txs(price_addr)

    assert [(a.approval_txid, a.height) for a in found] == [(a2, 200), (a1, 100)]


@pytest.mark.asyncio
async def test_all_approvals_require_heights(wallet, gateway, approval, price_addr):
    pending, _ = publish_approval(wallet, gateway, to=price_addr, tag="2", height=None, price=0.2)

    with pytest.raises(MissingHeightError) as ei:
        await approval.get_all_approval_txs(price_addr)
    assert ei.value.txid == pending


@pytest.mark.asyncio
async def test_update_tx_is_parsed(wallet, gateway, approval, price_addr):
    publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)

    update = await approval.get_update_tx(txid("u1"))

    assert update["cid"] == "bafy1"
    assert update["txid"] == txid("u1")
    assert update["txDetails"]["txid"] == txid("u1")


@pytest.mark.asyncio
async def test_update_tx_errors(wallet, approval):
    wallet.txs["garbage"] = tx("garbage", update_script(b"{not json"))
    wallet.txs["list"] = tx("list", update_script([1, 2]))
    wallet.txs["nocid"] = tx("nocid", update_script({"ts": 1}))
    wallet.txs["noout"] = {"txid": "noout", "vin": [], "vout": []}

    with pytest.raises(MissingTxidError):
        await approval.get_update_tx("")
    for bad in ("garbage", "list", "nocid", "noout"):
        with pytest.raises(MalformedUpdateError):
            await approval.get_update_tx(bad)


@pytest.mark.asyncio
async def test_approval_and_update_share_the_cache(wallet, gateway, approval, price_addr):
    publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)

    await approval.get_approval_tx(price_addr)
    await approval.get_approval_tx(price_addr)
    await approval.get_update_tx(txid("u1"))
    await approval.get_update_tx(txid("u1"))

    assert wallet.fetched("get_tx_data") == [(txid("a1"),), (txid("u1"),)]


def test_approval_script_offsets():
    script = approval_script(txid("u9"))
    raw = bytes.fromhex(script)
    assert raw[10:].decode("ascii") == txid("u9")


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["", "short", "Z" * 64, txid("x").upper(), txid("x") + "00"])
async def test_approve_without_update_txid_is_not_an_approval(wallet, gateway, approval, price_addr, payload):
    wallet.txs["junk"] = tx("junk", (b"\x6a\x07APPROVE" + bytes([len(payload)]) + payload.encode()).hex())
    wallet.add_history(price_addr, "junk", 300)
    real, _ = publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)

    assert (await approval.get_approval_tx(price_addr)).approval_txid == real
    assert [a.approval_txid for a in await approval.get_all_approval_txs(price_addr)] == [real]


@pytest.mark.asyncio
async def test_missing_update_tx_is_malformed(approval):
    with pytest.raises(MalformedUpdateError):
        await approval.get_update_tx("ff" * 32)
