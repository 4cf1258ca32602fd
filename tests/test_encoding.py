from datetime import date, datetime, timedelta

import pytest

from license_tool.config import LICENSE_EPOCH, LICENSE_HORIZON
from license_tool.encoding import MAX_NONCE, PAYLOAD_SIZE, LicensePayload, decode, encode
from license_tool.errors import MalformedPayload
from license_tool.tiers import Tier


def payload(**overrides):
    fields = dict(tier=Tier.MONTHLY, machine_id="ABC12345", activation_date=date(2026, 3, 1), nonce=7)
    fields.update(overrides)
    return LicensePayload(**fields)


@pytest.mark.parametrize("p", [
    payload(),
    payload(tier=Tier.QUARTERLY),
    payload(tier=Tier.YEARLY, machine_id="0123456789ABCDEF01234567"),
    payload(machine_id="AB-CD-EF"),
    payload(activation_date=LICENSE_EPOCH, nonce=0),
    payload(activation_date=LICENSE_HORIZON, nonce=MAX_NONCE),
])
def test_decode_inverts_encode(p):
    data = encode(p)
    assert len(data) == PAYLOAD_SIZE
    assert decode(data) == p


def test_encode_is_deterministic():
    assert encode(payload()) == encode(payload())


def test_distinct_payloads_encode_differently():
    seen = {
        encode(payload()),
        encode(payload(nonce=8)),
        encode(payload(tier=Tier.YEARLY)),
        encode(payload(machine_id="ABC123456")),
        encode(payload(activation_date=date(2026, 3, 2))),
    }
    assert len(seen) == 5


def test_expiration_is_derived_from_tier():
    p = payload(tier=Tier.QUARTERLY)
    assert p.days_valid == 90
    assert p.expiration_date == p.activation_date + timedelta(days=90)


@pytest.mark.parametrize("p", [
    payload(machine_id="abc12345"),
    payload(machine_id="ABC1234"),
    payload(machine_id="A" * 25),
    payload(machine_id="ABC_1234"),
    payload(machine_id="ÄBC12345"),
    payload(activation_date=LICENSE_EPOCH - timedelta(days=1)),
    payload(activation_date=LICENSE_HORIZON + timedelta(days=1)),
    payload(activation_date=datetime(2026, 3, 1, 12, 0)),
    payload(nonce=-1),
    payload(nonce=MAX_NONCE + 1),
    payload(tier="monthly"),
])
def test_encode_rejects_out_of_domain_fields(p):
    with pytest.raises(MalformedPayload):
        encode(p)


def _mutate(data, index, value):
    out = bytearray(data)
    out[index] = value
    return bytes(out)


@pytest.mark.parametrize("mutation", [
    lambda d: d[:-1],
    lambda d: d + b"\x00",
    lambda d: _mutate(d, 0, 3),
    lambda d: _mutate(d, 3, 0),
    lambda d: _mutate(d, 1, 0xFF),
    lambda d: _mutate(d, 1, ord("a")),
    lambda d: _mutate(_mutate(d, 25, 0xFF), 26, 0xFF),
])
def test_decode_rejects_malformed_bytes(mutation):
    with pytest.raises(MalformedPayload):
        decode(mutation(encode(payload())))


def test_decode_rejects_short_machine_id():
    data = bytearray(encode(payload()))
    data[5:9] = b"\x00\x00\x00\x00"
    with pytest.raises(MalformedPayload):
        decode(bytes(data))
