from __future__ import annotations

import pytest

from airsense.bme68x.codec import (
    FILTER_SIZES,
    decode_filter_size,
    decode_gas_wait,
    decode_oversampling,
    encode_filter_size,
    encode_gas_wait,
    encode_oversampling,
)


@pytest.mark.parametrize("factor", [1, 2, 4, 8, 16])
def test_oversampling_round_trip(factor: int) -> None:
    assert decode_oversampling(encode_oversampling(factor)) == factor


def test_oversampling_codes() -> None:
    assert [encode_oversampling(f) for f in (1, 2, 4, 8, 16)] == [1, 2, 3, 4, 5]
    assert decode_oversampling(0) == 0
    assert decode_oversampling(7) == 16


@pytest.mark.parametrize("factor", [0, 3, 32, -1, 2.5])
def test_oversampling_rejects_unsupported(factor) -> None:
    with pytest.raises(ValueError):
        encode_oversampling(factor)


@pytest.mark.parametrize("flag", [True, False])
def test_booleans_are_not_settings(flag: bool) -> None:
    with pytest.raises(ValueError):
        encode_oversampling(flag)
    with pytest.raises(ValueError):
        encode_filter_size(flag)
    with pytest.raises(ValueError):
        encode_gas_wait(flag)


def test_filter_size_round_trip_includes_disabled() -> None:
    for code, size in enumerate(FILTER_SIZES):
        assert encode_filter_size(size) == code
        assert decode_filter_size(encode_filter_size(size)) == size


def test_filter_size_rejects_unsupported() -> None:
    with pytest.raises(ValueError):
        encode_filter_size(2)
    with pytest.raises(ValueError):
        decode_filter_size(8)


def test_gas_wait_encoding() -> None:
    assert encode_gas_wait(0) == 0
    assert encode_gas_wait(63) == 63
    assert encode_gas_wait(64) == 0x50
    assert encode_gas_wait(150) == 0x65
    assert encode_gas_wait(4032) == 0xFF


def test_gas_wait_decoding() -> None:
    assert decode_gas_wait(0x65) == 148
    assert decode_gas_wait(0xFF) == 4032
    assert decode_gas_wait(encode_gas_wait(100)) == 100


def test_gas_wait_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        encode_gas_wait(4033)
    with pytest.raises(ValueError):
        encode_gas_wait(-1)
