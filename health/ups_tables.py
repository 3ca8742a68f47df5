"""UPS-MIB (RFC 1628) object identifiers and code tables.

The tables only translate codes into labels for the report; evaluation
logic branches on the numeric codes themselves.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from core.value_store import normalize_oid

SYS_UPTIME = "1.3.6.1.2.1.1.3.0"

UPS_MIB = "1.3.6.1.2.1.33.1"


def ups_oid(suffix: str, index: Optional[int] = None) -> str:
    """Return the full OID of a UPS-MIB object, optionally for a table row."""
    oid = f"{UPS_MIB}.{suffix}"
    return oid if index is None else f"{oid}.{index}"


# upsIdent
IDENT_MANUFACTURER = ups_oid("1.1.0")
IDENT_MODEL = ups_oid("1.2.0")

# upsBattery
BATTERY_STATUS = ups_oid("2.1.0")
BATTERY_SECONDS_ON = ups_oid("2.2.0")
BATTERY_MINUTES_REMAINING = ups_oid("2.3.0")
BATTERY_CHARGE = ups_oid("2.4.0")
BATTERY_VOLTAGE = ups_oid("2.5.0")
BATTERY_CURRENT = ups_oid("2.6.0")
BATTERY_TEMPERATURE = ups_oid("2.7.0")

# upsInput
INPUT_LINE_BADS = ups_oid("3.1.0")
INPUT_NUM_LINES = ups_oid("3.2.0")
INPUT_FREQUENCY = "3.3.1.2"
INPUT_VOLTAGE = "3.3.1.3"
INPUT_CURRENT = "3.3.1.4"
INPUT_TRUE_POWER = "3.3.1.5"

# upsOutput
OUTPUT_SOURCE = ups_oid("4.1.0")
OUTPUT_FREQUENCY = ups_oid("4.2.0")
OUTPUT_NUM_LINES = ups_oid("4.3.0")
OUTPUT_VOLTAGE = "4.4.1.2"
OUTPUT_CURRENT = "4.4.1.3"
OUTPUT_POWER = "4.4.1.4"
OUTPUT_PERCENT_LOAD = "4.4.1.5"

# upsBypass
BYPASS_FREQUENCY = ups_oid("5.1.0")
BYPASS_NUM_LINES = ups_oid("5.2.0")
BYPASS_VOLTAGE = "5.3.1.2"
BYPASS_CURRENT = "5.3.1.3"
BYPASS_POWER = "5.3.1.4"

# upsAlarm
ALARMS_PRESENT = ups_oid("6.1.0")
ALARM_DESCR = "6.2.1.2"
ALARM_TIME = "6.2.1.3"
WELL_KNOWN_ALARMS = ups_oid("6.3")

# upsTest
TEST_ID = ups_oid("7.1.0")
TEST_RESULTS_SUMMARY = ups_oid("7.3.0")
TEST_START_TIME = ups_oid("7.5.0")
WELL_KNOWN_TESTS = ups_oid("7.7")


# ---------------------------------------------------------------------------
# Code tables
# ---------------------------------------------------------------------------

BATTERY_NORMAL = 2

BATTERY_STATUS_NAMES: Mapping[int, str] = MappingProxyType({
    1: "unknown",
    2: "normal",
    3: "low",
    4: "depleted",
})

OUTPUT_SOURCE_NORMAL = 3

OUTPUT_SOURCE_NAMES: Mapping[int, str] = MappingProxyType({
    1: "other",
    2: "none",
    3: "normal",
    4: "bypass",
    5: "battery",
    6: "booster",
    7: "reducer",
})

TEST_PASSED = 1
TEST_WARNING = 2
TEST_ERROR = 3
TEST_ABORTED = 4
TEST_IN_PROGRESS = 5
TEST_NONE = 6

TEST_RESULT_NAMES: Mapping[int, str] = MappingProxyType({
    TEST_PASSED: "passed",
    TEST_WARNING: "warning",
    TEST_ERROR: "error",
    TEST_ABORTED: "aborted",
    TEST_IN_PROGRESS: "inProgress",
    TEST_NONE: "noTestsInitiated",
})

# upsWellKnownAlarms, indexed by the last sub-identifier
_ALARM_NAMES = (
    "BatteryBad",
    "OnBattery",
    "LowBattery",
    "DepletedBattery",
    "TempBad",
    "InputBad",
    "OutputBad",
    "OutputOverload",
    "OnBypass",
    "BypassBad",
    "OutputOffAsRequested",
    "UpsOffAsRequested",
    "ChargerFailed",
    "UpsOutputOff",
    "UpsSystemOff",
    "FanFailure",
    "FuseFailure",
    "GeneralFault",
    "DiagnosticTestFailed",
    "CommunicationsLost",
    "AwaitingPower",
    "ShutdownPending",
    "ShutdownImminent",
    "TestInProgress",
)

ALARM_NAMES: Mapping[str, str] = MappingProxyType({
    f"{WELL_KNOWN_ALARMS}.{i}": name for i, name in enumerate(_ALARM_NAMES, start=1)
})

ALARM_COUNT = len(_ALARM_NAMES)

TEST_NO_TESTS_INITIATED = "NoTestsInitiated"

# upsWellKnownTests
TEST_NAMES: Mapping[str, str] = MappingProxyType({
    f"{WELL_KNOWN_TESTS}.1": TEST_NO_TESTS_INITIATED,
    f"{WELL_KNOWN_TESTS}.2": "AbortTestInProgress",
    f"{WELL_KNOWN_TESTS}.3": "GeneralSystemsTest",
    f"{WELL_KNOWN_TESTS}.4": "QuickBatteryTest",
    f"{WELL_KNOWN_TESTS}.5": "DeepBatteryCalibration",
})


def alarm_oid(number: int) -> str:
    """OID of the well-known alarm with the given 1-based number."""
    return f"{WELL_KNOWN_ALARMS}.{number}"


def resolve_alarm_name(oid: str) -> str:
    """Well-known alarm name for *oid*, or the OID itself when unknown."""
    key = normalize_oid(oid)
    return ALARM_NAMES.get(key, key)


def resolve_test_name(oid: str) -> str:
    """Well-known test name for *oid*, or the OID itself when unknown."""
    key = normalize_oid(oid)
    return TEST_NAMES.get(key, key)
