from __future__ import annotations

from pathlib import Path

import pytest

from airsense.bme68x.config import SensorConfig, config_from_mapping, load_config

SAMPLE_CONFIG = Path(__file__).resolve().parents[1] / "host_pi" / "config.json"


def test_load_config_overrides(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(
        """
        {
          "bus": {"bus": 0, "address": "0x77"},
          "oversampling": {"temperature": 2, "pressure": 16, "humidity": 1},
          "filter_size": 0,
          "heater": {"temperature": 300, "duration_ms": 100}
        }
        """,
        encoding="utf-8",
    )
    cfg = load_config(cfg_path, overrides=["oversampling.temperature=16", "heater.duration_ms=200"])
    assert isinstance(cfg, SensorConfig)
    assert cfg.bus.bus == 0
    assert cfg.bus.address == 0x77
    assert cfg.oversampling.temperature == 16
    assert cfg.oversampling.pressure == 16
    assert cfg.filter_size == 0
    assert cfg.heater.temperature == 300
    assert cfg.heater.duration_ms == 200


def test_sample_config_matches_defaults() -> None:
    assert load_config(SAMPLE_CONFIG) == SensorConfig()


def test_defaults_without_file() -> None:
    cfg = load_config(overrides=["bus.address=0x77"])
    assert cfg.bus.address == 0x77
    assert cfg.heater.temperature == 320


@pytest.mark.parametrize(
    "override",
    [
        "oversampling.humidity=3",
        "filter_size=4",
        "heater.temperature=450",
        "heater.duration_ms=5000",
        "oversampling.temperature=2.5",
        "heater.temperature=320.9",
        "filter_size=true",
        "bus.address=seventy",
        "heater=5",
        "filter_size.extra=1",
    ],
)
def test_invalid_values_rejected(override: str) -> None:
    with pytest.raises(ValueError):
        load_config(overrides=[override])


def test_override_requires_key_value() -> None:
    with pytest.raises(ValueError):
        load_config(overrides=["filter_size"])


def test_mapping_accepts_integer_address() -> None:
    cfg = config_from_mapping({"bus": {"address": 118}})
    assert cfg.bus.address == 0x76


@pytest.mark.parametrize(
    "data",
    [
        {"oversampling": {"pressure": 4.5}},
        {"oversampling": {"humidity": True}},
        {"filter_size": False},
        {"heater": {"duration_ms": "150ms"}},
    ],
)
def test_mapping_rejects_inexact_integers(data) -> None:
    with pytest.raises(ValueError):
        config_from_mapping(data)


def test_mapping_accepts_integral_numbers_and_text() -> None:
    cfg = config_from_mapping({"oversampling": {"temperature": 16.0}, "heater": {"duration_ms": "100"}})
    assert cfg.oversampling.temperature == 16
    assert isinstance(cfg.oversampling.temperature, int)
    assert cfg.heater.duration_ms == 100


def test_json_root_must_be_object(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(cfg_path)
