from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Sequence

from .codec import encode_filter_size, encode_gas_wait, encode_oversampling
from .registers import I2C_ADDR_PRIMARY


@dataclass
class BusConfig:
    bus: int = 1
    address: int = I2C_ADDR_PRIMARY


@dataclass
class OversamplingConfig:
    temperature: int = 8
    pressure: int = 4
    humidity: int = 2


@dataclass
class HeaterConfig:
    temperature: int = 320
    duration_ms: int = 150


@dataclass
class SensorConfig:
    bus: BusConfig = field(default_factory=BusConfig)
    oversampling: OversamplingConfig = field(default_factory=OversamplingConfig)
    filter_size: int = 3
    heater: HeaterConfig = field(default_factory=HeaterConfig)

    def validate(self) -> None:
        """Reject values the device cannot encode before anything touches the bus."""
        encode_oversampling(self.oversampling.temperature)
        encode_oversampling(self.oversampling.pressure)
        encode_oversampling(self.oversampling.humidity)
        encode_filter_size(self.filter_size)
        encode_gas_wait(self.heater.duration_ms)
        if not 0 <= self.heater.temperature <= 400:
            raise ValueError(f"heater.temperature must be within 0..400, got {self.heater.temperature}")


def _load_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: sensor config must be a JSON object")
    return data


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {**base}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge(base[key], value)  # type: ignore[index]
        else:
            merged[key] = value
    return merged


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a section, got {section!r}")
    return section


def _integer(key: str, value: Any) -> int:
    """
    Accept exact integers only.

    Strings are parsed with their base prefix so addresses can be written as
    ``"0x77"``; booleans and fractional numbers are rejected instead of being
    truncated into a different, valid setting.
    """
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 0)
        except ValueError:
            pass
    raise ValueError(f"'{key}' must be an integer, got {value!r}")


def config_from_mapping(data: Dict[str, Any]) -> SensorConfig:
    bus_data = _section(data, "bus")
    os_data = _section(data, "oversampling")
    heater_data = _section(data, "heater")
    config = SensorConfig(
        bus=BusConfig(
            bus=_integer("bus.bus", bus_data.get("bus", 1)),
            address=_integer("bus.address", bus_data.get("address", I2C_ADDR_PRIMARY)),
        ),
        oversampling=OversamplingConfig(
            temperature=_integer("oversampling.temperature", os_data.get("temperature", 8)),
            pressure=_integer("oversampling.pressure", os_data.get("pressure", 4)),
            humidity=_integer("oversampling.humidity", os_data.get("humidity", 2)),
        ),
        filter_size=_integer("filter_size", data.get("filter_size", 3)),
        heater=HeaterConfig(
            temperature=_integer("heater.temperature", heater_data.get("temperature", 320)),
            duration_ms=_integer("heater.duration_ms", heater_data.get("duration_ms", 150)),
        ),
    )
    config.validate()
    return config


def load_config(path: Path | str | None = None, overrides: Sequence[str] | None = None) -> SensorConfig:
    """
    Load a sensor configuration from JSON and apply CLI-style overrides.

    Overrides are expressed as dotted `key=value` pairs, e.g.:
        ["oversampling.temperature=16", "bus.address=0x77"]
    Without a path the built-in defaults are the base.
    """
    data = _load_json(Path(path)) if path is not None else {}
    override_data: Dict[str, Any] = {}
    for override in overrides or []:
        key, value = _parse_override(override)
        _assign_nested(override_data, key, value)
    return config_from_mapping(_merge(data, override_data))


def _parse_override(item: str) -> tuple[str, Any]:
    key, sep, raw_value = item.partition("=")
    key = key.strip()
    if not sep:
        raise ValueError(f"Override '{item}' must use key=value syntax")
    if not key or any(not part for part in key.split(".")):
        raise ValueError(f"Override '{item}' has an empty key segment")
    return key, _coerce_value(raw_value.strip())


def _coerce_value(raw: str) -> Any:
    # hex and other prefixed integers stay text; _integer parses them
    if raw.lower() in {"true", "false"}:
        return raw.lower() == "true"
    try:
        if "." in raw or "e" in raw.lower():
            return float(raw)
        return int(raw)
    except ValueError:
        return raw


def _assign_nested(target: Dict[str, Any], dotted_key: str, value: Any) -> None:
    *sections, leaf = dotted_key.split(".")
    cursor = target
    for part in sections:
        cursor = cursor.setdefault(part, {})
        if not isinstance(cursor, dict):
            raise ValueError(f"Override '{dotted_key}' nests under non-section '{part}'")
    cursor[leaf] = value
