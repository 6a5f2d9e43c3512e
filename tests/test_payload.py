import pytest

from fakes import COUNCIL_KEYS
from multisig_approval.errors import MalformedPayloadError
from multisig_approval.payload import UpdatePayload

WALLET_OBJ = {"publicKeys": COUNCIL_KEYS[:3], "requiredSigners": 2, "address": "bitcoincash:p..."}


def test_p2wdb_price_wins():
    p = UpdatePayload.parse({"walletObj": WALLET_OBJ, "p2wdbWritePrice": 0.08, "writePrice": 0.5})
    assert p.price == 0.08
    assert p.wallet_obj.public_keys == COUNCIL_KEYS[:3]
    assert p.wallet_obj.required_signers == 2


def test_write_price_fallback():
    assert UpdatePayload.parse({"walletObj": WALLET_OBJ, "writePrice": 0.5}).price == 0.5


def test_extra_fields_are_kept():
    p = UpdatePayload.parse({"walletObj": WALLET_OBJ, "writePrice": 1, "listOfHolders": ["a"]})
    assert p.model_extra == {"listOfHolders": ["a"]}


def test_parse_is_idempotent():
    p = UpdatePayload.parse({"walletObj": WALLET_OBJ, "writePrice": 1})
    assert UpdatePayload.parse(p) is p


@pytest.mark.parametrize(
    "data",
    [
        {"walletObj": WALLET_OBJ},
        {"writePrice": 0.5},
        {"walletObj": dict(WALLET_OBJ, publicKeys=[]), "writePrice": 0.5},
        {"walletObj": dict(WALLET_OBJ, requiredSigners=0), "writePrice": 0.5},
        {"walletObj": WALLET_OBJ, "writePrice": "cheap"},
        "not a dict",
        None,
    ],
)
def test_malformed(data):
    with pytest.raises(MalformedPayloadError):
        UpdatePayload.parse(data)
