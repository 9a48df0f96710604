"""Command line interface for the airsense package."""
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd
import typer

from .bme68x.config import SensorConfig, load_config
from .bme68x.measurement import Measurement
from .bme68x.registers import SMBusRegisters
from .bme68x.sensor import BME68x

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="BME68x environmental sensor utilities.",
)

ConfigOption = typer.Option(None, "--config", "-c", help="Path to sensor config JSON.")
OverrideOption = typer.Option(
    None,
    "--set",
    help="Override config keys, e.g. --set oversampling.temperature=16 --set bus.address=0x77",
)


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level (DEBUG, INFO, ...)."),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(config_path: Optional[Path], override: Optional[List[str]]) -> SensorConfig:
    try:
        return load_config(config_path, override or None)
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(f"Invalid sensor configuration: {exc}") from exc


def _open(cfg: SensorConfig) -> tuple[SMBusRegisters, BME68x]:
    registers = SMBusRegisters(cfg.bus.bus, cfg.bus.address)
    sensor = BME68x(registers)
    try:
        sensor.power_on(cfg)
    except Exception:
        registers.close()
        raise
    return registers, sensor


def _shutdown(registers: SMBusRegisters, sensor: BME68x) -> None:
    try:
        if sensor.is_on:
            sensor.power_off()
    finally:
        registers.close()


def _format(measurement: Measurement) -> str:
    gas = "n/a" if measurement.gas_resistance is None else f"{measurement.gas_resistance:.0f} Ohm"
    return (
        f"T={measurement.temperature:.2f} C  "
        f"P={measurement.pressure / 100.0:.2f} hPa  "
        f"RH={measurement.humidity:.2f} %  "
        f"gas={gas}"
    )


@app.command()
def read(
    config_path: Optional[Path] = ConfigOption,
    override: Optional[List[str]] = OverrideOption,
    as_json: bool = typer.Option(False, "--json", help="Emit the measurement as JSON."),
) -> None:
    """Take a single forced-mode measurement."""

    cfg = _load(config_path, override)
    registers, sensor = _open(cfg)
    try:
        measurement = sensor.read_all()
    except (RuntimeError, TimeoutError) as exc:
        typer.echo(f"Measurement failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        _shutdown(registers, sensor)
    if as_json:
        typer.echo(json.dumps(measurement.as_dict()))
    else:
        typer.echo(_format(measurement))


@app.command()
def watch(
    config_path: Optional[Path] = ConfigOption,
    override: Optional[List[str]] = OverrideOption,
    count: int = typer.Option(10, "--count", "-n", min=1, help="Number of samples to take."),
    interval: float = typer.Option(1.0, "--interval", help="Seconds between samples."),
) -> None:
    """Sample repeatedly and print a summary table at the end."""

    cfg = _load(config_path, override)
    registers, sensor = _open(cfg)
    rows = []
    try:
        for index in range(count):
            if index:
                time.sleep(interval)
            try:
                measurement = sensor.read_all()
            except RuntimeError as exc:
                # gas flags may lag the heater on the first cycles
                logger.warning("Sample %d skipped: %s", index, exc)
                continue
            typer.echo(_format(measurement))
            row = measurement.as_dict()
            if row["gas_resistance"] is None:
                row["gas_resistance"] = np.nan
            rows.append(row)
    except KeyboardInterrupt:
        logger.info("Stopping (Ctrl+C)")
    finally:
        _shutdown(registers, sensor)
    if not rows:
        typer.echo("No valid samples collected", err=True)
        raise typer.Exit(code=1)
    summary = pd.DataFrame(rows).describe().loc[["mean", "std", "min", "max"]]
    typer.echo(summary.to_string())


@app.command()
def calibration(
    config_path: Optional[Path] = ConfigOption,
    override: Optional[List[str]] = OverrideOption,
) -> None:
    """Print the factory calibration coefficients as JSON."""

    cfg = _load(config_path, override)
    registers, sensor = _open(cfg)
    try:
        data = {"variant": sensor.variant.name, **sensor.calibration.as_dict()}
    finally:
        _shutdown(registers, sensor)
    typer.echo(json.dumps(data, indent=2))


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
