import pytest

from fakes import COUNCIL_KEYS, addr, publish_approval
from multisig_approval.errors import MalformedPayloadError, MissingInputError


async def _inputs(approval, price_addr):
    approval_obj = await approval.get_approval_tx(price_addr)
    update_obj = await approval.get_update_tx(approval_obj.update_txid)
    update_data = await approval.get_cid_data(update_obj["cid"])
    return approval_obj, update_obj, update_data


@pytest.mark.asyncio
async def test_valid_approval(wallet, gateway, approval, price_addr):
    wallet.seat_council(COUNCIL_KEYS)
    publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1, keys=COUNCIL_KEYS)

    assert await approval.validate_approval(*await _inputs(approval, price_addr)) is True


@pytest.mark.asyncio
async def test_sender_mismatch_short_circuits(wallet, gateway, approval, price_addr):
    wallet.seat_council(COUNCIL_KEYS)
    publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1, sender=addr(66))

    assert await approval.validate_approval(*await _inputs(approval, price_addr)) is False
    # holder resolution is never reached
    assert wallet.fetched("get_token_data") == []
    assert wallet.fetched("get_pub_key") == []


@pytest.mark.asyncio
async def test_single_match_never_suffices(wallet, gateway, approval, price_addr):
    # 1-of-2 wallet where only one key belongs to the council
    outsider = "03" + "ee" * 32
    wallet.seat_council([COUNCIL_KEYS[0]])
    publish_approval(
        wallet, gateway, to=price_addr, tag="1", height=100, price=0.1,
        keys=[COUNCIL_KEYS[0], outsider], required=1,
    )

    assert await approval.validate_approval(*await _inputs(approval, price_addr)) is False


@pytest.mark.asyncio
async def test_two_matches_satisfy_low_threshold(wallet, gateway, approval, price_addr):
    wallet.seat_council(COUNCIL_KEYS[:2])
    publish_approval(
        wallet, gateway, to=price_addr, tag="1", height=100, price=0.1,
        keys=COUNCIL_KEYS[:2], required=1,
    )

    assert await approval.validate_approval(*await _inputs(approval, price_addr)) is True


@pytest.mark.asyncio
async def test_matches_below_required_signers(wallet, gateway, approval, price_addr):
    # 3-of-4 wallet, only two keys are current council members
    wallet.seat_council(COUNCIL_KEYS[:2])
    publish_approval(
        wallet, gateway, to=price_addr, tag="1", height=100, price=0.1,
        keys=COUNCIL_KEYS[:4], required=3,
    )

    assert await approval.validate_approval(*await _inputs(approval, price_addr)) is False


@pytest.mark.asyncio
async def test_holders_without_keys_do_not_match(wallet, gateway, approval, price_addr):
    wallet.seat_council(COUNCIL_KEYS[:1], missing=2)
    publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1, keys=COUNCIL_KEYS[:3])

    assert await approval.validate_approval(*await _inputs(approval, price_addr)) is False


@pytest.mark.asyncio
async def test_missing_inputs(wallet, gateway, approval, price_addr):
    publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)
    approval_obj, update_obj, update_data = await _inputs(approval, price_addr)

    for args, field in (
        ((None, update_obj, update_data), "approval_obj"),
        ((approval_obj, None, update_data), "update_obj"),
        ((approval_obj, update_obj, None), "update_data"),
    ):
        with pytest.raises(MissingInputError) as ei:
            await approval.validate_approval(*args)
        assert ei.value.field == field


@pytest.mark.asyncio
async def test_malformed_payload(wallet, gateway, approval, price_addr):
    publish_approval(wallet, gateway, to=price_addr, tag="1", height=100, price=0.1)
    approval_obj, update_obj, update_data = await _inputs(approval, price_addr)

    no_wallet = {k: v for k, v in update_data.items() if k != "walletObj"}
    with pytest.raises(MalformedPayloadError):
        await approval.validate_approval(approval_obj, update_obj, no_wallet)

    bad_keys = dict(update_data, walletObj=dict(update_data["walletObj"], publicKeys=["nothex"]))
    with pytest.raises(MalformedPayloadError):
        await approval.validate_approval(approval_obj, update_obj, bad_keys)


@pytest.mark.asyncio
async def test_context_manager_closes_gateway(wallet, gateway, approval):
    async with approval:
        pass
    assert gateway.closed
