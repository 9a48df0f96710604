from __future__ import annotations

import enum
import logging
import struct
from typing import NamedTuple, Protocol

try:
    import smbus2  # type: ignore[import]
except ImportError:  # pragma: no cover - handled when the bus is opened
    smbus2 = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

I2C_ADDR_PRIMARY = 0x76
I2C_ADDR_SECONDARY = 0x77

CHIP_ID = 0x61
SOFT_RESET_CMD = 0xB6

REG_RES_HEAT_VAL = 0x00
REG_RES_HEAT_RANGE = 0x02
REG_RANGE_SW_ERR = 0x04
REG_MEAS_STATUS = 0x1D
REG_PRESS = 0x1F
REG_TEMP = 0x22
REG_HUM = 0x25
REG_GAS_R_LOW = 0x2A
REG_GAS_R_HIGH = 0x2C
REG_RES_HEAT_0 = 0x5A
REG_GAS_WAIT_0 = 0x64
REG_CTRL_GAS_0 = 0x70
REG_CTRL_GAS_1 = 0x71
REG_CTRL_HUM = 0x72
REG_CTRL_MEAS = 0x74
REG_CONFIG = 0x75
REG_CHIP_ID = 0xD0
REG_SOFT_RESET = 0xE0
REG_VARIANT = 0xF0

MODE_SLEEP = 0
MODE_FORCED = 1


class Field(NamedTuple):
    """A masked bit-field inside a single byte register."""

    register: int
    mask: int


OSRS_T = Field(REG_CTRL_MEAS, 0xE0)
OSRS_P = Field(REG_CTRL_MEAS, 0x1C)
MODE = Field(REG_CTRL_MEAS, 0x03)
OSRS_H = Field(REG_CTRL_HUM, 0x07)
FILTER = Field(REG_CONFIG, 0x1C)
HEAT_OFF = Field(REG_CTRL_GAS_0, 0x08)
NB_CONV = Field(REG_CTRL_GAS_1, 0x0F)
RUN_GAS_LOW = Field(REG_CTRL_GAS_1, 0x10)
RUN_GAS_HIGH = Field(REG_CTRL_GAS_1, 0x20)
MEASURING = Field(REG_MEAS_STATUS, 0x20)
RES_HEAT_RANGE = Field(REG_RES_HEAT_RANGE, 0x30)
RANGE_SW_ERR = Field(REG_RANGE_SW_ERR, 0xF0)
H1_LSB = Field(0xE2, 0x0F)
H2_LSB = Field(0xE2, 0xF0)


class Variant(enum.IntEnum):
    """Hardware variant reported by the variant id register."""

    GAS_LOW = 0x00  # BME680
    GAS_HIGH = 0x01  # BME688


def run_gas_field(variant: Variant) -> Field:
    return RUN_GAS_HIGH if variant is Variant.GAS_HIGH else RUN_GAS_LOW


def gas_register(variant: Variant) -> int:
    return REG_GAS_R_HIGH if variant is Variant.GAS_HIGH else REG_GAS_R_LOW


class Registers(Protocol):
    def read_u8(self, register: int) -> int: ...

    def read_u16_be(self, register: int) -> int: ...

    def read_u16_le(self, register: int) -> int: ...

    def read_u24_be(self, register: int) -> int: ...

    def write_u8(self, register: int, value: int) -> None: ...


def _lowest_bit(mask: int) -> int:
    if mask == 0:
        raise ValueError("Bit-field mask must be non-zero")
    return (mask & -mask).bit_length() - 1


def set_bits(registers: Registers, field: Field, value: int) -> None:
    """Read-modify-write ``value`` into the bits selected by ``field.mask``."""
    shift = _lowest_bit(field.mask)
    current = registers.read_u8(field.register)
    updated = (current & ~field.mask & 0xFF) | ((value << shift) & field.mask)
    registers.write_u8(field.register, updated)


def get_bits(registers: Registers, field: Field) -> int:
    shift = _lowest_bit(field.mask)
    return (registers.read_u8(field.register) & field.mask) >> shift


class SMBusRegisters:
    """Register transport for a device on a Linux I2C bus."""

    def __init__(self, bus: int = 1, address: int = I2C_ADDR_PRIMARY) -> None:
        if smbus2 is None:
            raise ImportError("smbus2 is required but not installed. Install extra 'i2c'.")
        self.address = address
        self._bus = smbus2.SMBus(bus)
        logger.debug("Opened I2C bus %d for device 0x%02X", bus, address)

    def _read_block(self, register: int, length: int) -> bytes:
        return bytes(self._bus.read_i2c_block_data(self.address, register, length))

    def read_u8(self, register: int) -> int:
        return self._bus.read_byte_data(self.address, register)

    def read_u16_be(self, register: int) -> int:
        return struct.unpack(">H", self._read_block(register, 2))[0]

    def read_u16_le(self, register: int) -> int:
        return struct.unpack("<H", self._read_block(register, 2))[0]

    def read_u24_be(self, register: int) -> int:
        return int.from_bytes(self._read_block(register, 3), "big")

    def write_u8(self, register: int, value: int) -> None:
        self._bus.write_byte_data(self.address, register, value & 0xFF)

    def close(self) -> None:
        self._bus.close()
