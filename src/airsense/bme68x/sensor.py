from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .calibration import Calibration, read_calibration
from .codec import (
    decode_filter_size,
    decode_gas_wait,
    decode_oversampling,
    encode_filter_size,
    encode_gas_wait,
    encode_oversampling,
)
from .compensation import (
    compensate_gas,
    compensate_humidity,
    compensate_pressure,
    compensate_temperature,
    heater_resistance,
    heater_temperature,
)
from .config import SensorConfig
from .measurement import (
    GasSample,
    Measurement,
    read_raw_gas,
    read_raw_humidity,
    read_raw_pressure,
    read_raw_temperature,
    trigger_and_wait,
)
from .registers import (
    CHIP_ID,
    FILTER,
    HEAT_OFF,
    MODE,
    MODE_SLEEP,
    NB_CONV,
    OSRS_H,
    OSRS_P,
    OSRS_T,
    REG_CHIP_ID,
    REG_GAS_WAIT_0,
    REG_RES_HEAT_0,
    REG_SOFT_RESET,
    REG_VARIANT,
    SOFT_RESET_CMD,
    Field,
    Registers,
    Variant,
    get_bits,
    run_gas_field,
    set_bits,
)

logger = logging.getLogger(__name__)

RESET_PERIOD_MS = 10


def _sleep_ms(duration_ms: float) -> None:
    time.sleep(duration_ms / 1000.0)


@dataclass(frozen=True)
class HeaterSetting:
    target_degrees: int
    soak_ms: int


class BME68x:
    """
    Driver for one BME680/BME688 sensor behind a register transport.

    The device registers are the source of truth for configuration; only the
    variant, the calibration record and whether the gas heater is configured
    are kept on the instance. No locking is done, so a transport shared with
    other devices must be serialised by the caller.
    """

    def __init__(self, registers: Registers, *, sleep_ms: Optional[Callable[[float], None]] = None) -> None:
        self._registers = registers
        self._sleep_ms = sleep_ms or _sleep_ms
        self._on = False
        self._variant: Optional[Variant] = None
        self._calibration: Optional[Calibration] = None
        self._gas_enabled = False

    @property
    def is_on(self) -> bool:
        return self._on

    @property
    def variant(self) -> Variant:
        self._require_on()
        assert self._variant is not None
        return self._variant

    @property
    def calibration(self) -> Calibration:
        self._require_on()
        assert self._calibration is not None
        return self._calibration

    @property
    def gas_enabled(self) -> bool:
        return self._gas_enabled

    def power_on(self, config: Optional[SensorConfig] = None) -> None:
        if self._on:
            raise RuntimeError("BME68x is already powered on")
        config = config or SensorConfig()
        config.validate()

        self._registers.write_u8(REG_SOFT_RESET, SOFT_RESET_CMD)
        self._sleep_ms(RESET_PERIOD_MS)
        chip_id = self._registers.read_u8(REG_CHIP_ID)
        if chip_id != CHIP_ID:
            raise RuntimeError(f"BME68x not found (chip id 0x{chip_id:02X}, expected 0x{CHIP_ID:02X})")
        variant = self._detect_variant()
        self._calibration = read_calibration(self._registers, variant)
        self._variant = variant
        self._on = True
        try:
            self.temperature_oversampling = config.oversampling.temperature
            self.pressure_oversampling = config.oversampling.pressure
            self.humidity_oversampling = config.oversampling.humidity
            self.filter_size = config.filter_size
            self.set_heater(config.heater.temperature, config.heater.duration_ms)
        except Exception:
            self._forget()
            raise
        logger.info("BME68x powered on (variant=%s)", variant.name)

    def power_off(self) -> None:
        self._require_on()
        try:
            self._disable_gas()
            set_bits(self._registers, MODE, MODE_SLEEP)
        finally:
            self._forget()
        logger.info("BME68x powered off")

    def _detect_variant(self) -> Variant:
        code = self._registers.read_u8(REG_VARIANT)
        try:
            return Variant(code)
        except ValueError:
            logger.warning("Unknown variant id 0x%02X, assuming %s", code, Variant.GAS_LOW.name)
            return Variant.GAS_LOW

    def _forget(self) -> None:
        self._on = False
        self._variant = None
        self._calibration = None
        self._gas_enabled = False

    def _require_on(self) -> None:
        if not self._on:
            raise RuntimeError("BME68x is not powered on")

    # Configuration

    def _get_oversampling(self, field: Field) -> int:
        self._require_on()
        return decode_oversampling(get_bits(self._registers, field))

    def _set_oversampling(self, field: Field, factor: int) -> None:
        code = encode_oversampling(factor)
        self._require_on()
        set_bits(self._registers, field, code)

    @property
    def temperature_oversampling(self) -> int:
        return self._get_oversampling(OSRS_T)

    @temperature_oversampling.setter
    def temperature_oversampling(self, factor: int) -> None:
        self._set_oversampling(OSRS_T, factor)

    @property
    def pressure_oversampling(self) -> int:
        return self._get_oversampling(OSRS_P)

    @pressure_oversampling.setter
    def pressure_oversampling(self, factor: int) -> None:
        self._set_oversampling(OSRS_P, factor)

    @property
    def humidity_oversampling(self) -> int:
        return self._get_oversampling(OSRS_H)

    @humidity_oversampling.setter
    def humidity_oversampling(self, factor: int) -> None:
        self._set_oversampling(OSRS_H, factor)

    @property
    def filter_size(self) -> int:
        self._require_on()
        return decode_filter_size(get_bits(self._registers, FILTER))

    @filter_size.setter
    def filter_size(self, size: int) -> None:
        code = encode_filter_size(size)
        self._require_on()
        set_bits(self._registers, FILTER, code)

    def set_heater(self, target_degrees: int, soak_ms: int) -> None:
        """
        Program heater set-point 0; a zero temperature or duration disables gas.

        The target resistance is computed for an ambient temperature of 25 C
        rather than the measured one.
        """
        if isinstance(target_degrees, bool) or not 0 <= target_degrees <= 400:
            raise ValueError(f"Heater temperature must be within 0..400, got {target_degrees}")
        wait_code = encode_gas_wait(soak_ms)
        self._require_on()
        if target_degrees == 0 or soak_ms == 0:
            self._disable_gas()
            logger.debug("Gas heater disabled")
            return
        res_code = heater_resistance(target_degrees, self.calibration)
        registers = self._registers
        set_bits(registers, NB_CONV, 0)
        registers.write_u8(REG_RES_HEAT_0, res_code)
        registers.write_u8(REG_GAS_WAIT_0, wait_code)
        set_bits(registers, run_gas_field(self.variant), 1)
        set_bits(registers, HEAT_OFF, 0)
        self._gas_enabled = True
        logger.debug(
            "Gas heater set to %d C for %d ms (res_heat=0x%02X gas_wait=0x%02X)",
            target_degrees,
            soak_ms,
            res_code,
            wait_code,
        )

    def _disable_gas(self) -> None:
        set_bits(self._registers, run_gas_field(self.variant), 0)
        set_bits(self._registers, HEAT_OFF, 1)
        self._gas_enabled = False

    @property
    def heater(self) -> Optional[HeaterSetting]:
        """Heater set-point as read back from the device, ``None`` when off."""
        self._require_on()
        if get_bits(self._registers, HEAT_OFF) or not get_bits(self._registers, run_gas_field(self.variant)):
            return None
        res_code = self._registers.read_u8(REG_RES_HEAT_0)
        wait_code = self._registers.read_u8(REG_GAS_WAIT_0)
        return HeaterSetting(
            target_degrees=round(heater_temperature(res_code, self.calibration)),
            soak_ms=decode_gas_wait(wait_code),
        )

    # Measurements

    def _measure(self, *, skip_gas: bool) -> None:
        trigger_and_wait(
            self._registers,
            self.variant,
            gas_enabled=self._gas_enabled,
            skip_gas=skip_gas,
            sleep_ms=self._sleep_ms,
        )

    def _temperature(self) -> float:
        return compensate_temperature(read_raw_temperature(self._registers), self.calibration)

    def _gas_sample(self) -> GasSample:
        if not self._gas_enabled:
            raise RuntimeError("Gas measurement is disabled; configure the heater first")
        sample = read_raw_gas(self._registers, self.variant)
        if not sample.valid:
            raise RuntimeError("Gas measurement not valid")
        if not sample.heat_stable:
            raise RuntimeError("Gas heater not stabilized")
        return sample

    def read_all(self) -> Measurement:
        self._require_on()
        self._measure(skip_gas=False)
        cal = self.calibration
        temperature = self._temperature()
        gas_resistance = None
        if self._gas_enabled:
            sample = self._gas_sample()
            gas_resistance = compensate_gas(sample.adc, sample.gas_range, cal, self.variant)
        return Measurement(
            temperature=temperature,
            pressure=compensate_pressure(read_raw_pressure(self._registers), temperature, cal),
            humidity=compensate_humidity(read_raw_humidity(self._registers), temperature, cal),
            gas_resistance=gas_resistance,
        )

    def read_temperature(self, raw: bool = False) -> float | int:
        """Degrees Celsius, or the 20-bit ADC value when ``raw`` is set."""
        self._require_on()
        self._measure(skip_gas=True)
        if raw:
            return read_raw_temperature(self._registers)
        return self._temperature()

    def read_pressure(self, raw: bool = False) -> float | int:
        """Pascal, or the 20-bit ADC value when ``raw`` is set."""
        self._require_on()
        self._measure(skip_gas=True)
        if raw:
            return read_raw_pressure(self._registers)
        return compensate_pressure(read_raw_pressure(self._registers), self._temperature(), self.calibration)

    def read_humidity(self, raw: bool = False) -> float | int:
        """Relative humidity in percent, or the 16-bit ADC value when ``raw`` is set."""
        self._require_on()
        self._measure(skip_gas=True)
        if raw:
            return read_raw_humidity(self._registers)
        return compensate_humidity(read_raw_humidity(self._registers), self._temperature(), self.calibration)

    def read_gas_resistance(self, raw: bool = False) -> float | int:
        """Ohms, or the 10-bit ADC value when ``raw`` is set."""
        self._require_on()
        if not self._gas_enabled:
            raise RuntimeError("Gas measurement is disabled; configure the heater first")
        self._measure(skip_gas=False)
        sample = self._gas_sample()
        if raw:
            return sample.adc
        return compensate_gas(sample.adc, sample.gas_range, self.calibration, self.variant)
