from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Optional

from .codec import decode_gas_wait
from .registers import (
    MEASURING,
    MODE,
    MODE_FORCED,
    REG_GAS_WAIT_0,
    REG_HUM,
    REG_PRESS,
    REG_TEMP,
    Registers,
    Variant,
    gas_register,
    get_bits,
    run_gas_field,
    set_bits,
)

logger = logging.getLogger(__name__)

POLL_ATTEMPTS = 100

GAS_VALID_MSK = 0x20
HEAT_STAB_MSK = 0x10
GAS_RANGE_MSK = 0x0F


@dataclass(frozen=True)
class Measurement:
    """One compensated sample."""

    temperature: float
    pressure: float
    humidity: float
    gas_resistance: Optional[float] = None

    def as_dict(self) -> Dict[str, Optional[float]]:
        return asdict(self)


@dataclass(frozen=True)
class GasSample:
    adc: int
    gas_range: int
    valid: bool
    heat_stable: bool


def read_raw_temperature(registers: Registers) -> int:
    return registers.read_u24_be(REG_TEMP) >> 4


def read_raw_pressure(registers: Registers) -> int:
    return registers.read_u24_be(REG_PRESS) >> 4


def read_raw_humidity(registers: Registers) -> int:
    return registers.read_u16_be(REG_HUM)


def read_raw_gas(registers: Registers, variant: Variant) -> GasSample:
    """Split the 16-bit gas register into ADC value, range and status flags."""
    word = registers.read_u16_be(gas_register(variant))
    return GasSample(
        adc=word >> 6,
        gas_range=word & GAS_RANGE_MSK,
        valid=bool(word & GAS_VALID_MSK),
        heat_stable=bool(word & HEAT_STAB_MSK),
    )


def trigger_and_wait(
    registers: Registers,
    variant: Variant,
    *,
    gas_enabled: bool,
    skip_gas: bool,
    sleep_ms: Callable[[float], None],
) -> None:
    """
    Start a forced-mode conversion and block until the device reports idle.

    When ``skip_gas`` is set while the heater is configured, the run-gas bit is
    cleared for this conversion only so the device does not spend the heater
    soak time; it is put back before returning, whatever the outcome.
    """
    run_gas = run_gas_field(variant)
    gas_suspended = skip_gas and gas_enabled
    if gas_suspended:
        set_bits(registers, run_gas, 0)
    try:
        set_bits(registers, MODE, MODE_FORCED)
        logger.debug("Forced conversion started (gas=%s)", gas_enabled and not gas_suspended)
        if gas_enabled and not gas_suspended:
            sleep_ms(decode_gas_wait(registers.read_u8(REG_GAS_WAIT_0)))
        for attempt in range(POLL_ATTEMPTS):
            sleep_ms(attempt + 1)
            if not get_bits(registers, MEASURING):
                logger.debug("Conversion complete after %d polls", attempt + 1)
                return
        raise TimeoutError(f"Measurement did not complete after {POLL_ATTEMPTS} polls")
    finally:
        if gas_suspended:
            set_bits(registers, run_gas, 1)
