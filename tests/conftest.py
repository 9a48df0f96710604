from __future__ import annotations

from typing import Callable, Dict, List

import pytest

from airsense.bme68x.registers import REG_MEAS_STATUS, Variant
from airsense.bme68x.sensor import BME68x

DEFAULT_CALIBRATION: Dict[str, int] = {
    "par_t1": 26180,
    "par_t2": 26254,
    "par_t3": 3,
    "par_p1": 36433,
    "par_p2": -10326,
    "par_p3": 88,
    "par_p4": 7340,
    "par_p5": -146,
    "par_p6": 30,
    "par_p7": 29,
    "par_p8": -234,
    "par_p9": -3207,
    "par_p10": 30,
    "par_h1": 784,
    "par_h2": 1018,
    "par_h3": 0,
    "par_h4": 45,
    "par_h5": 20,
    "par_h6": 120,
    "par_h7": -100,
    "par_gh1": -30,
    "par_gh2": -5000,
    "par_gh3": 18,
    "res_heat_range": 1,
    "res_heat_val": 40,
    "range_sw_err": -2,
}


class FakeRegisters:
    """Register image standing in for the I2C device."""

    def __init__(self) -> None:
        self.memory = bytearray(256)
        self.writes: List[tuple[int, int]] = []
        self.measuring_polls = 0
        self.stuck = False

    def read_u8(self, register: int) -> int:
        if register == REG_MEAS_STATUS:
            value = self.memory[register] & ~0x20
            if self.stuck or self.measuring_polls > 0:
                self.measuring_polls = max(self.measuring_polls - 1, 0)
                value |= 0x20
            return value
        return self.memory[register]

    def read_u16_be(self, register: int) -> int:
        return (self.memory[register] << 8) | self.memory[register + 1]

    def read_u16_le(self, register: int) -> int:
        return self.memory[register] | (self.memory[register + 1] << 8)

    def read_u24_be(self, register: int) -> int:
        m = self.memory
        return (m[register] << 16) | (m[register + 1] << 8) | m[register + 2]

    def write_u8(self, register: int, value: int) -> None:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte out of range: {value}")
        self.writes.append((register, value))
        self.memory[register] = value

    # helpers for building images

    def put_le16(self, register: int, value: int) -> None:
        value &= 0xFFFF
        self.memory[register] = value & 0xFF
        self.memory[register + 1] = value >> 8

    def put_u8(self, register: int, value: int) -> None:
        self.memory[register] = value & 0xFF

    def load_calibration(self, **overrides: int) -> Dict[str, int]:
        cal = {**DEFAULT_CALIBRATION, **overrides}
        self.put_le16(0xE9, cal["par_t1"])
        self.put_le16(0x8A, cal["par_t2"])
        self.put_u8(0x8C, cal["par_t3"])
        self.put_le16(0x8E, cal["par_p1"])
        self.put_le16(0x90, cal["par_p2"])
        self.put_u8(0x92, cal["par_p3"])
        self.put_le16(0x94, cal["par_p4"])
        self.put_le16(0x96, cal["par_p5"])
        self.put_u8(0x99, cal["par_p6"])
        self.put_u8(0x98, cal["par_p7"])
        self.put_le16(0x9C, cal["par_p8"])
        self.put_le16(0x9E, cal["par_p9"])
        self.put_u8(0xA0, cal["par_p10"])
        self.put_u8(0xE3, cal["par_h1"] >> 4)
        self.put_u8(0xE1, cal["par_h2"] >> 4)
        self.put_u8(0xE2, ((cal["par_h2"] & 0x0F) << 4) | (cal["par_h1"] & 0x0F))
        self.put_u8(0xE4, cal["par_h3"])
        self.put_u8(0xE5, cal["par_h4"])
        self.put_u8(0xE6, cal["par_h5"])
        self.put_u8(0xE7, cal["par_h6"])
        self.put_u8(0xE8, cal["par_h7"])
        self.put_u8(0xED, cal["par_gh1"])
        self.put_le16(0xEB, cal["par_gh2"])
        self.put_u8(0xEE, cal["par_gh3"])
        # unrelated bits set around the packed fields
        self.put_u8(0x02, 0xC5 | (cal["res_heat_range"] << 4))
        self.put_u8(0x00, cal["res_heat_val"])
        self.put_u8(0x04, ((cal["range_sw_err"] & 0x0F) << 4) | 0x0A)
        return cal

    def load_fields(
        self,
        *,
        variant: Variant = Variant.GAS_LOW,
        temperature: int = 419430,
        pressure: int = 400000,
        humidity: int = 20000,
        gas_adc: int = 512,
        gas_range: int = 0,
        valid: bool = True,
        stable: bool = True,
    ) -> None:
        for register, raw in ((0x22, temperature), (0x1F, pressure)):
            word = raw << 4
            self.memory[register : register + 3] = word.to_bytes(3, "big")
        self.memory[0x25:0x27] = humidity.to_bytes(2, "big")
        gas_word = (gas_adc << 6) | gas_range
        if valid:
            gas_word |= 0x20
        if stable:
            gas_word |= 0x10
        register = 0x2C if variant is Variant.GAS_HIGH else 0x2A
        self.memory[register : register + 2] = gas_word.to_bytes(2, "big")


def make_device(variant: Variant = Variant.GAS_LOW) -> FakeRegisters:
    registers = FakeRegisters()
    registers.put_u8(0xD0, 0x61)
    registers.put_u8(0xF0, int(variant))
    registers.load_calibration()
    registers.load_fields(variant=variant)
    return registers


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, duration_ms: float) -> None:
        self.calls.append(duration_ms)


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def device_factory(sleeps: SleepRecorder) -> Callable[..., tuple[BME68x, FakeRegisters]]:
    def factory(variant: Variant = Variant.GAS_LOW, power_on: bool = True) -> tuple[BME68x, FakeRegisters]:
        registers = make_device(variant)
        sensor = BME68x(registers, sleep_ms=sleeps)
        if power_on:
            sensor.power_on()
            sleeps.calls.clear()
        return sensor, registers

    return factory
