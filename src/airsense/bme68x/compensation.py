from __future__ import annotations

from .calibration import Calibration
from .registers import Variant

# Heater targets assume this ambient temperature instead of the measured one.
AMBIENT_TEMPERATURE = 25.0

FINE_TEMPERATURE_SCALE = 5120.0

GAS_RANGE_LOOKUP_1 = (
    2147483647.0,
    2147483647.0,
    2147483647.0,
    2147483647.0,
    2147483647.0,
    2126008810.0,
    2147483647.0,
    2130303777.0,
    2147483647.0,
    2147483647.0,
    2143188679.0,
    2136746228.0,
    2147483647.0,
    2126008810.0,
    2147483647.0,
    2147483647.0,
)

GAS_RANGE_LOOKUP_2 = (
    4096000000.0,
    2048000000.0,
    1024000000.0,
    512000000.0,
    255744255.0,
    127110228.0,
    64000000.0,
    32258064.0,
    16016016.0,
    8000000.0,
    4000000.0,
    2000000.0,
    1000000.0,
    500000.0,
    250000.0,
    125000.0,
)


def fine_temperature(raw: int, cal: Calibration) -> float:
    var1 = ((raw / 16384.0) - (cal.par_t1 / 1024.0)) * cal.par_t2
    var2 = ((raw / 131072.0) - (cal.par_t1 / 8192.0)) * ((raw / 131072.0) - (cal.par_t1 / 8192.0))
    var2 = var2 * (cal.par_t3 * 16.0)
    return var1 + var2


def compensate_temperature(raw: int, cal: Calibration) -> float:
    """Degrees Celsius from the 20-bit temperature ADC value."""
    return fine_temperature(raw, cal) / FINE_TEMPERATURE_SCALE


def compensate_pressure(raw: int, temperature: float, cal: Calibration) -> float:
    """
    Pascal from the 20-bit pressure ADC value.

    Follows the reference sequence of reassignments verbatim; reordering the
    terms changes the floating point result in the last digits.
    """
    t_fine = temperature * FINE_TEMPERATURE_SCALE
    var1 = (t_fine / 2.0) - 64000.0
    var2 = var1 * var1 * (cal.par_p6 / 131072.0)
    var2 = var2 + (var1 * cal.par_p5 * 2.0)
    var2 = (var2 / 4.0) + (cal.par_p4 * 65536.0)
    var1 = (((cal.par_p3 * var1 * var1) / 16384.0) + (cal.par_p2 * var1)) / 524288.0
    var1 = (1.0 + (var1 / 32768.0)) * cal.par_p1
    calc_pres = 1048576.0 - raw
    if var1 == 0:
        return 0.0
    calc_pres = ((calc_pres - (var2 / 4096.0)) * 6250.0) / var1
    var1 = (cal.par_p9 * calc_pres * calc_pres) / 2147483648.0
    var2 = calc_pres * (cal.par_p8 / 32768.0)
    var3 = (calc_pres / 256.0) * (calc_pres / 256.0) * (calc_pres / 256.0) * (cal.par_p10 / 131072.0)
    calc_pres = calc_pres + (var1 + var2 + var3 + (cal.par_p7 * 128.0)) / 16.0
    return calc_pres


def compensate_humidity(raw: int, temperature: float, cal: Calibration) -> float:
    """Relative humidity in percent, clamped to 0..100."""
    var1 = raw - ((cal.par_h1 * 16.0) + ((cal.par_h3 / 2.0) * temperature))
    var2 = var1 * (
        (cal.par_h2 / 262144.0)
        * (
            1.0
            + ((cal.par_h4 / 16384.0) * temperature)
            + ((cal.par_h5 / 1048576.0) * temperature * temperature)
        )
    )
    var3 = cal.par_h6 / 16384.0
    var4 = cal.par_h7 / 2097152.0
    calc_hum = var2 + ((var3 + (var4 * temperature)) * var2 * var2)
    return min(max(calc_hum, 0.0), 100.0)


def _gas_resistance_low(adc: int, gas_range: int, cal: Calibration) -> float:
    var1 = ((1340.0 + (5.0 * cal.range_sw_err)) * GAS_RANGE_LOOKUP_1[gas_range]) / 65536.0
    var2 = ((adc * 32768.0) - 16777216.0) + var1
    var3 = (GAS_RANGE_LOOKUP_2[gas_range] * var1) / 512.0
    return (var3 + (var2 / 2.0)) / var2


def _gas_resistance_high(adc: int, gas_range: int) -> float:
    var1 = 262144 >> gas_range
    var2 = 4096 + (adc - 512) * 3
    return float(((10000 * var1) // var2) * 100)


def compensate_gas(adc: int, gas_range: int, cal: Calibration, variant: Variant) -> float:
    """Gas resistance in ohms; the two variants use unrelated formulas."""
    if not 0 <= gas_range <= 0x0F:
        raise ValueError(f"Gas range {gas_range} does not fit 4 bits")
    if variant is Variant.GAS_HIGH:
        return _gas_resistance_high(adc, gas_range)
    return _gas_resistance_low(adc, gas_range, cal)


def _heater_terms(cal: Calibration, ambient: float) -> tuple[float, float, float, float]:
    var1 = (cal.par_gh1 / 16.0) + 49.0
    var2 = ((cal.par_gh2 / 32768.0) * 0.0005) + 0.00235
    var3 = cal.par_gh3 / 1024.0
    scale = (4.0 / (4.0 + cal.res_heat_range)) * (1.0 / (1.0 + (cal.res_heat_val * 0.002)))
    return var1, var2, var3 * ambient, scale


def heater_resistance(target: float, cal: Calibration, ambient: float = AMBIENT_TEMPERATURE) -> int:
    """Register value that makes the heater settle at ``target`` degrees Celsius."""
    var1, var2, ambient_term, scale = _heater_terms(cal, ambient)
    var4 = var1 * (1.0 + (var2 * target))
    var5 = var4 + ambient_term
    return int(3.4 * ((var5 * scale) - 25.0))


def heater_temperature(code: int, cal: Calibration, ambient: float = AMBIENT_TEMPERATURE) -> float:
    """Approximate inverse of :func:`heater_resistance` (the forward path truncates)."""
    var1, var2, ambient_term, scale = _heater_terms(cal, ambient)
    var5 = ((code / 3.4) + 25.0) / scale
    var4 = var5 - ambient_term
    return ((var4 / var1) - 1.0) / var2
