from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict

from .registers import (
    H1_LSB,
    H2_LSB,
    RANGE_SW_ERR,
    REG_RES_HEAT_VAL,
    RES_HEAT_RANGE,
    Registers,
    Variant,
    get_bits,
)

logger = logging.getLogger(__name__)


def twos_comp(value: int, bits: int) -> int:
    if value & (1 << (bits - 1)):
        value -= 1 << bits
    return value


@dataclass(frozen=True)
class Calibration:
    """Factory trimming coefficients, read once per power-on cycle."""

    par_t1: int
    par_t2: int
    par_t3: int
    par_p1: int
    par_p2: int
    par_p3: int
    par_p4: int
    par_p5: int
    par_p6: int
    par_p7: int
    par_p8: int
    par_p9: int
    par_p10: int
    par_h1: int
    par_h2: int
    par_h3: int
    par_h4: int
    par_h5: int
    par_h6: int
    par_h7: int
    par_gh1: int
    par_gh2: int
    par_gh3: int
    res_heat_range: int
    res_heat_val: int
    range_sw_err: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def read_calibration(registers: Registers, variant: Variant) -> Calibration:
    """
    Parse the calibration record from the device register image.

    Humidity coefficients 1 and 2 share register 0xE2: the low nibble extends
    ``par_h1`` and the high nibble extends ``par_h2``. The range switching
    error only exists on the gas-low variant.
    """

    def u8(register: int) -> int:
        return registers.read_u8(register)

    def i8(register: int) -> int:
        return twos_comp(registers.read_u8(register), 8)

    def u16(register: int) -> int:
        return registers.read_u16_le(register)

    def i16(register: int) -> int:
        return twos_comp(registers.read_u16_le(register), 16)

    range_sw_err = 0
    if variant is Variant.GAS_LOW:
        range_sw_err = twos_comp(get_bits(registers, RANGE_SW_ERR), 4)

    calibration = Calibration(
        par_t1=u16(0xE9),
        par_t2=i16(0x8A),
        par_t3=i8(0x8C),
        par_p1=u16(0x8E),
        par_p2=i16(0x90),
        par_p3=i8(0x92),
        par_p4=i16(0x94),
        par_p5=i16(0x96),
        par_p6=i8(0x99),
        par_p7=i8(0x98),
        par_p8=i16(0x9C),
        par_p9=i16(0x9E),
        par_p10=u8(0xA0),
        par_h1=(u8(0xE3) << 4) | get_bits(registers, H1_LSB),
        par_h2=(u8(0xE1) << 4) | get_bits(registers, H2_LSB),
        par_h3=i8(0xE4),
        par_h4=i8(0xE5),
        par_h5=i8(0xE6),
        par_h6=u8(0xE7),
        par_h7=i8(0xE8),
        par_gh1=i8(0xED),
        par_gh2=i16(0xEB),
        par_gh3=i8(0xEE),
        res_heat_range=get_bits(registers, RES_HEAT_RANGE),
        res_heat_val=i8(REG_RES_HEAT_VAL),
        range_sw_err=range_sw_err,
    )
    logger.debug("Loaded calibration for %s: %s", variant.name, calibration)
    return calibration
