"""Shared pytest fixtures for the UPS-MIB probe tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict

import pytest

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

MIB = "1.3.6.1.2.1.33.1"
UPTIME = 10_000_000


def add_output_lines(values: Dict[str, str], loads) -> Dict[str, str]:
    """Add one output table row per entry in *loads* (percent values)."""
    values[f"{MIB}.4.3.0"] = str(len(loads))
    for n, load in enumerate(loads, start=1):
        values[f"{MIB}.4.4.1.2.{n}"] = "2300"
        values[f"{MIB}.4.4.1.3.{n}"] = "52"
        values[f"{MIB}.4.4.1.4.{n}"] = "1100"
        values[f"{MIB}.4.4.1.5.{n}"] = str(load)
    return values


def add_alarms(values: Dict[str, str], alarms) -> Dict[str, str]:
    """Add alarm rows from ``(well-known number or OID, activation ticks)`` pairs."""
    values[f"{MIB}.6.1.0"] = str(len(alarms))
    for n, (alarm, since) in enumerate(alarms, start=1):
        oid = f"{MIB}.6.3.{alarm}" if isinstance(alarm, int) else alarm
        values[f"{MIB}.6.2.1.2.{n}"] = oid
        values[f"{MIB}.6.2.1.3.{n}"] = str(since)
    return values


@pytest.fixture
def ups_values() -> Dict[str, str]:
    """A healthy single-phase UPS without output rows, alarms or self-test."""
    return {
        "1.3.6.1.2.1.1.3.0": str(UPTIME),
        f"{MIB}.1.1.0": "ACME",
        f"{MIB}.1.2.0": "Smart 3000",
        # battery
        f"{MIB}.2.1.0": "2",
        f"{MIB}.2.2.0": "0",
        f"{MIB}.2.3.0": "45",
        f"{MIB}.2.4.0": "80",
        f"{MIB}.2.5.0": "545",
        f"{MIB}.2.6.0": "-12",
        f"{MIB}.2.7.0": "24",
        # input
        f"{MIB}.3.1.0": "3",
        f"{MIB}.3.2.0": "1",
        f"{MIB}.3.3.1.2.1": "500",
        f"{MIB}.3.3.1.3.1": "2310",
        f"{MIB}.3.3.1.4.1": "48",
        f"{MIB}.3.3.1.5.1": "1050",
        # output
        f"{MIB}.4.1.0": "3",
        f"{MIB}.4.2.0": "500",
        f"{MIB}.4.3.0": "0",
        # bypass
        f"{MIB}.5.1.0": "499",
        f"{MIB}.5.2.0": "0",
        # alarms
        f"{MIB}.6.1.0": "0",
        # self-test
        f"{MIB}.7.1.0": f"{MIB}.7.7.1",
        f"{MIB}.7.3.0": "6",
        f"{MIB}.7.5.0": "0",
    }


@pytest.fixture
def probe_cfg() -> dict:
    """Minimal probe configuration for testing."""
    return {
        "snmp": {"port": 161, "protocol": "2c", "community": "public", "timeout_s": 1, "retries": 0},
        "report": {"head_placeholder": "UPS"},
        "logging": {"level": "DEBUG", "file": None},
    }
