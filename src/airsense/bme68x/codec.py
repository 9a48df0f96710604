from __future__ import annotations

OVERSAMPLING_FACTORS = (0, 1, 2, 4, 8, 16)
FILTER_SIZES = (0, 1, 3, 7, 15, 31, 63, 127)

GAS_WAIT_MAX_MS = 0xFC0
HEATER_MAX_DEGREES = 400


def encode_oversampling(factor: int) -> int:
    # 0 ("skipped") is only ever produced by decoding a register
    if isinstance(factor, bool) or factor not in OVERSAMPLING_FACTORS[1:]:
        raise ValueError(
            f"Invalid oversampling factor {factor!r}; expected one of {OVERSAMPLING_FACTORS[1:]}"
        )
    return OVERSAMPLING_FACTORS.index(factor)


def decode_oversampling(code: int) -> int:
    if not 0 <= code <= 7:
        raise ValueError(f"Oversampling code {code} does not fit 3 bits")
    return OVERSAMPLING_FACTORS[min(code, len(OVERSAMPLING_FACTORS) - 1)]


def encode_filter_size(size: int) -> int:
    if isinstance(size, bool) or size not in FILTER_SIZES:
        raise ValueError(f"Invalid filter size {size!r}; expected one of {FILTER_SIZES}")
    return FILTER_SIZES.index(size)


def decode_filter_size(code: int) -> int:
    if not 0 <= code < len(FILTER_SIZES):
        raise ValueError(f"Filter code {code} does not fit 3 bits")
    return FILTER_SIZES[code]


def encode_gas_wait(duration_ms: int) -> int:
    """
    Encode a heater soak time as ``mantissa * 4 ** exponent``.

    The exponent occupies the two top bits and the mantissa the low six, so
    durations above 63 ms lose resolution in steps of 4, 16 or 64 ms.
    """
    if isinstance(duration_ms, bool) or not 0 <= duration_ms <= GAS_WAIT_MAX_MS:
        raise ValueError(f"Heater duration must be within 0..{GAS_WAIT_MAX_MS} ms, got {duration_ms}")
    mantissa = int(duration_ms)
    exponent = 0
    while mantissa > 0x3F:
        mantissa //= 4
        exponent += 1
    return (exponent << 6) | mantissa


def decode_gas_wait(code: int) -> int:
    return (code & 0x3F) * (4 ** ((code >> 6) & 0x03))
