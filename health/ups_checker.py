"""UPS health checker: turns fetched UPS-MIB values into a report.

Sections run in a fixed order (battery, input, output, bypass, alarms,
self-test) and all write into the same :class:`Report`.  Input and bypass
only contribute metrics; the other sections also add report fragments and
may raise the overall severity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence

from core.exceptions import ConfigError
from core.timeticks import elapsed
from core.value_store import (
    ValueStore,
    parse_enum,
    parse_int,
    parse_oid,
    parse_text,
    parse_unsigned,
)
from health import ups_tables as mib
from health.report import Report, Severity
from health.thresholds import ThresholdSpec, resolve_specs

logger = logging.getLogger(__name__)

_ALARM_PREFIX = "upsalarm"


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CheckOptions:
    """User settings that influence the evaluation."""
    ignored_alarms: FrozenSet[str] = frozenset()
    load_thresholds: Sequence[ThresholdSpec] = ()
    suppress_test_results: bool = False
    head_placeholder: str = "UPS"


def parse_ignore_list(text: Optional[str]) -> FrozenSet[str]:
    """Resolve a comma-separated alarm ignore list to a set of alarm OIDs.

    Accepted tokens are well-known alarm names (case-insensitive, with or
    without the ``upsAlarm`` prefix), alarm numbers 1-24 of the well-known
    alarm table, and full dotted OIDs.

    Raises
    ------
    ConfigError
        For any other token.
    """
    if not text:
        return frozenset()

    by_name = {name.lower(): oid for oid, name in mib.ALARM_NAMES.items()}
    resolved = set()
    for token in (t.strip() for t in text.split(",")):
        if not token:
            continue
        as_oid = parse_oid(token)
        if token.isascii() and token.isdigit():
            number = int(token)
            if not 1 <= number <= mib.ALARM_COUNT:
                raise ConfigError(
                    f"alarm number {number} is outside the well-known range 1-{mib.ALARM_COUNT}"
                )
            resolved.add(mib.alarm_oid(number))
        elif as_oid.ok:
            resolved.add(as_oid.value)
        else:
            key = token.lower()
            if key.startswith(_ALARM_PREFIX):
                key = key[len(_ALARM_PREFIX):]
            if key not in by_name:
                raise ConfigError(f"unsupported alarm to ignore: {token!r}")
            resolved.add(by_name[key])
    return frozenset(resolved)


@dataclass
class AlarmEntry:
    oid: str
    name: str
    since: int
    ignored: bool = False


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _tenths(raw: int) -> float:
    return raw / 10


# ---------------------------------------------------------------------------
# Checker
# ---------------------------------------------------------------------------

class UpsHealthChecker:
    """Evaluate every section of the UPS-MIB against one value store.

    Parameters
    ----------
    store : ValueStore
        Values fetched from the device.
    options : CheckOptions
        Thresholds, ignored alarms and self-test settings.
    """

    def __init__(self, store: ValueStore, options: Optional[CheckOptions] = None):
        self._store = store
        self._options = options or CheckOptions()
        self._uptime: Optional[int] = None

    def run_all_checks(self) -> Report:
        """Run all sections once and return the filled report."""
        report = Report(head=self._head())
        self._check_battery(report)
        self._check_input(report)
        self._check_output(report)
        self._check_bypass(report)
        self._check_alarms(report)
        self._check_self_test(report)
        logger.debug(
            "Evaluation done: %s (%d ok, %d warning, %d critical fragments)",
            report.severity.name,
            len(report.ok_fragments),
            len(report.warning_fragments),
            len(report.critical_fragments),
        )
        return report

    # -- helpers -------------------------------------------------------------

    def _head(self) -> str:
        parts = [
            self._store.get_optional(mib.IDENT_MANUFACTURER, parse_text, ""),
            self._store.get_optional(mib.IDENT_MODEL, parse_text, ""),
        ]
        head = " ".join(p for p in parts if p)
        return head or self._options.head_placeholder

    def _uptime_ticks(self) -> int:
        if self._uptime is None:
            self._uptime = self._store.get(mib.SYS_UPTIME, parse_unsigned, "system uptime")
        return self._uptime

    def _line_count(self, oid: str, what: str) -> int:
        return self._store.get(oid, parse_unsigned, f"number of {what} lines")

    # -- individual checks ---------------------------------------------------

    def _check_battery(self, report: Report) -> None:
        get = self._store.get
        status = get(mib.BATTERY_STATUS, parse_enum(mib.BATTERY_STATUS_NAMES), "battery status")
        seconds_on = get(mib.BATTERY_SECONDS_ON, parse_unsigned, "seconds on battery")
        minutes = get(mib.BATTERY_MINUTES_REMAINING, parse_unsigned, "estimated minutes remaining")
        charge = get(mib.BATTERY_CHARGE, parse_unsigned, "estimated charge remaining")
        voltage = get(mib.BATTERY_VOLTAGE, parse_unsigned, "battery voltage")
        current = get(mib.BATTERY_CURRENT, parse_int, "battery current")
        temperature = get(mib.BATTERY_TEMPERATURE, parse_int, "battery temperature")

        report.metric("battery_seconds", seconds_on, "s")
        report.metric("battery_minutes_remaining", minutes)
        report.metric("battery_charge", charge, "%", maximum=100)
        report.metric("battery_voltage", _tenths(voltage), "V")
        report.metric("battery_current", _tenths(current), "A", minimum=None)
        report.metric("battery_temperature", temperature, "C", minimum=None)

        text = f"battery {mib.BATTERY_STATUS_NAMES[status]} ({charge}%; {minutes}min)"
        if status != mib.BATTERY_NORMAL:
            report.critical(text)
        else:
            report.ok(text)

    def _check_input(self, report: Report) -> None:
        get = self._store.get
        line_bads = get(mib.INPUT_LINE_BADS, parse_unsigned, "input line bads")
        report.metric("input_line_bads", line_bads, "c")

        for n in range(1, self._line_count(mib.INPUT_NUM_LINES, "input") + 1):
            frequency = get(mib.ups_oid(mib.INPUT_FREQUENCY, n), parse_unsigned, f"input {n} frequency")
            voltage = get(mib.ups_oid(mib.INPUT_VOLTAGE, n), parse_unsigned, f"input {n} voltage")
            current = get(mib.ups_oid(mib.INPUT_CURRENT, n), parse_unsigned, f"input {n} current")
            power = get(mib.ups_oid(mib.INPUT_TRUE_POWER, n), parse_unsigned, f"input {n} true power")
            report.metric(f"input{n}_frequency", _tenths(frequency), "Hz")
            report.metric(f"input{n}_voltage", _tenths(voltage), "V")
            report.metric(f"input{n}_current", _tenths(current), "A")
            report.metric(f"input{n}_power", power, "W")

    def _check_output(self, report: Report) -> None:
        get = self._store.get
        frequency = get(mib.OUTPUT_FREQUENCY, parse_unsigned, "output frequency")
        source = get(mib.OUTPUT_SOURCE, parse_enum(mib.OUTPUT_SOURCE_NAMES), "output source")
        line_count = self._line_count(mib.OUTPUT_NUM_LINES, "output")
        specs = resolve_specs(self._options.load_thresholds, line_count)

        report.metric("output_frequency", _tenths(frequency), "Hz")

        max_load: Optional[int] = None
        for n, spec in enumerate(specs, start=1):
            voltage = get(mib.ups_oid(mib.OUTPUT_VOLTAGE, n), parse_unsigned, f"output {n} voltage")
            current = get(mib.ups_oid(mib.OUTPUT_CURRENT, n), parse_unsigned, f"output {n} current")
            power = get(mib.ups_oid(mib.OUTPUT_POWER, n), parse_unsigned, f"output {n} power")
            load = get(mib.ups_oid(mib.OUTPUT_PERCENT_LOAD, n), parse_unsigned, f"output {n} load")
            max_load = load if max_load is None else max(max_load, load)

            report.metric(f"output{n}_voltage", _tenths(voltage), "V")
            report.metric(f"output{n}_current", _tenths(current), "A")
            report.metric(f"output{n}_power", power, "W")

            if spec is None:
                report.metric(f"output{n}_load", load, "%", maximum=100)
                continue

            report.metric(
                f"output{n}_load", load, "%", maximum=100,
                warning=spec.warning_text, critical=spec.critical_text,
            )
            state = spec.classify(load)
            if state != Severity.OK:
                report.add(state, f"output line {n} load {load}%")

        text = f"output {mib.OUTPUT_SOURCE_NAMES[source]}"
        if max_load is not None:
            text += f" (max load {max_load}%)"
        if source != mib.OUTPUT_SOURCE_NORMAL:
            report.critical(text)
        else:
            report.ok(text)

    def _check_bypass(self, report: Report) -> None:
        get = self._store.get
        frequency = get(mib.BYPASS_FREQUENCY, parse_unsigned, "bypass frequency")
        report.metric("bypass_frequency", _tenths(frequency), "Hz")

        for n in range(1, self._line_count(mib.BYPASS_NUM_LINES, "bypass") + 1):
            voltage = get(mib.ups_oid(mib.BYPASS_VOLTAGE, n), parse_unsigned, f"bypass {n} voltage")
            current = get(mib.ups_oid(mib.BYPASS_CURRENT, n), parse_unsigned, f"bypass {n} current")
            power = get(mib.ups_oid(mib.BYPASS_POWER, n), parse_unsigned, f"bypass {n} power")
            report.metric(f"bypass{n}_voltage", _tenths(voltage), "V")
            report.metric(f"bypass{n}_current", _tenths(current), "A")
            report.metric(f"bypass{n}_power", power, "W")

    def _read_alarms(self) -> List[AlarmEntry]:
        get = self._store.get
        count = get(mib.ALARMS_PRESENT, parse_unsigned, "number of active alarms")
        alarms = []
        for n in range(1, count + 1):
            oid = get(mib.ups_oid(mib.ALARM_DESCR, n), parse_oid, f"alarm {n} description")
            since = get(mib.ups_oid(mib.ALARM_TIME, n), parse_unsigned, f"alarm {n} time")
            alarms.append(AlarmEntry(
                oid=oid,
                name=mib.resolve_alarm_name(oid),
                since=since,
                ignored=oid in self._options.ignored_alarms,
            ))
        return alarms

    def _check_alarms(self, report: Report) -> None:
        alarms = self._read_alarms()
        report.metric("alarms", len(alarms), "c")

        active = [a for a in alarms if not a.ignored]
        ignored = len(alarms) - len(active)
        for alarm in alarms:
            if alarm.ignored:
                logger.info("Ignoring alarm %s (%s)", alarm.name, alarm.oid)

        if active:
            names = []
            for pos, alarm in enumerate(active):
                following = active[pos + 1] if pos + 1 < len(active) else None
                if following is None or following.since != alarm.since:
                    names.append(f"{alarm.name}({elapsed(self._uptime_ticks(), alarm.since)})")
                else:
                    names.append(alarm.name)
            report.critical("alarms: " + ", ".join(names))
            if ignored:
                report.critical(f"{_plural(ignored, 'alarm')} ignored")
        elif ignored:
            report.ok(f"{_plural(ignored, 'alarm')} ignored")
        else:
            report.ok("no alarms")

    def _check_self_test(self, report: Report) -> None:
        get = self._store.get
        name = mib.resolve_test_name(get(mib.TEST_ID, parse_oid, "self-test id"))
        summary = get(mib.TEST_RESULTS_SUMMARY, parse_int, "self-test result summary")

        if summary == mib.TEST_NONE or name == mib.TEST_NO_TESTS_INITIATED:
            report.ok("no test")
        elif summary == mib.TEST_IN_PROGRESS:
            started = get(mib.TEST_START_TIME, parse_unsigned, "self-test start time")
            report.ok(f"test running: {name} ({elapsed(self._uptime_ticks(), started)})")
        elif summary == mib.TEST_PASSED:
            report.ok(f"test passed: {name}")
        elif self._options.suppress_test_results:
            logger.info("Self-test result %s for %s not reported", summary, name)
        elif summary == mib.TEST_WARNING:
            report.warning(f"test warning: {name}")
        elif summary == mib.TEST_ERROR:
            report.critical(f"test failed: {name}")
        elif summary == mib.TEST_ABORTED:
            report.warning(f"test aborted: {name}")
        else:
            logger.warning("Unrecognized self-test result code %s", summary)
