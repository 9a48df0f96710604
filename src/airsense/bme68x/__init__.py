"""
Driver for Bosch BME680/BME688 temperature, pressure, humidity and gas sensors.

The subpackage splits the register map and bit-field accessors, calibration
parsing, configuration encoding, the forced-mode measurement cycle and the
compensation formulas into separate modules; :class:`BME68x` ties them to one
device instance.
"""

from .calibration import Calibration, read_calibration
from .compensation import (
    compensate_gas,
    compensate_humidity,
    compensate_pressure,
    compensate_temperature,
    heater_resistance,
)
from .config import SensorConfig, load_config
from .measurement import Measurement, trigger_and_wait
from .registers import I2C_ADDR_PRIMARY, I2C_ADDR_SECONDARY, SMBusRegisters, Variant
from .sensor import BME68x, HeaterSetting

__all__ = [
    "BME68x",
    "HeaterSetting",
    "Calibration",
    "read_calibration",
    "compensate_gas",
    "compensate_humidity",
    "compensate_pressure",
    "compensate_temperature",
    "heater_resistance",
    "SensorConfig",
    "load_config",
    "Measurement",
    "trigger_and_wait",
    "I2C_ADDR_PRIMARY",
    "I2C_ADDR_SECONDARY",
    "SMBusRegisters",
    "Variant",
]
