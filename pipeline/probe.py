"""Probe run – fetches UPS-MIB values in two rounds and evaluates them.

Round one requests a fixed set of scalars, including the input, output
and bypass line counts and the number of active alarms.  Round two
requests the table rows those counts call for.  Every request is capped at
:data:`MAX_OIDS_PER_REQUEST` identifiers to keep response PDUs small.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Sequence

from core.value_store import ValueStore, parse_unsigned
from health import ups_tables as mib
from health.report import Metric, Report, Severity
from health.ups_checker import CheckOptions, UpsHealthChecker

logger = logging.getLogger(__name__)

MAX_OIDS_PER_REQUEST = 40

INITIAL_OIDS = (
    mib.SYS_UPTIME,
    mib.IDENT_MANUFACTURER,
    mib.IDENT_MODEL,
    mib.BATTERY_STATUS,
    mib.BATTERY_SECONDS_ON,
    mib.BATTERY_MINUTES_REMAINING,
    mib.BATTERY_CHARGE,
    mib.BATTERY_VOLTAGE,
    mib.BATTERY_CURRENT,
    mib.BATTERY_TEMPERATURE,
    mib.INPUT_LINE_BADS,
    mib.INPUT_NUM_LINES,
    mib.OUTPUT_SOURCE,
    mib.OUTPUT_FREQUENCY,
    mib.OUTPUT_NUM_LINES,
    mib.BYPASS_FREQUENCY,
    mib.BYPASS_NUM_LINES,
    mib.ALARMS_PRESENT,
    mib.TEST_ID,
    mib.TEST_RESULTS_SUMMARY,
    mib.TEST_START_TIME,
)

# (line count OID, row columns, description)
_LINE_TABLES = (
    (mib.INPUT_NUM_LINES, (mib.INPUT_FREQUENCY, mib.INPUT_VOLTAGE, mib.INPUT_CURRENT, mib.INPUT_TRUE_POWER), "input"),
    (mib.OUTPUT_NUM_LINES, (mib.OUTPUT_VOLTAGE, mib.OUTPUT_CURRENT, mib.OUTPUT_POWER, mib.OUTPUT_PERCENT_LOAD), "output"),
    (mib.BYPASS_NUM_LINES, (mib.BYPASS_VOLTAGE, mib.BYPASS_CURRENT, mib.BYPASS_POWER), "bypass"),
)


class Session(Protocol):
    def fetch(self, oids: Sequence[str]) -> Dict[str, Any]:
        ...


@dataclass
class ProbeResult:
    """Final verdict, summary text and metrics of one run."""
    severity: Severity
    text: str
    metrics: List[Metric]


def fetch_batched(session: Session, oids: Sequence[str], store: ValueStore) -> None:
    """Fetch *oids* in requests of at most :data:`MAX_OIDS_PER_REQUEST`."""
    for start in range(0, len(oids), MAX_OIDS_PER_REQUEST):
        batch = list(oids[start: start + MAX_OIDS_PER_REQUEST])
        logger.debug("Fetching %d oids (batch %d)", len(batch), start // MAX_OIDS_PER_REQUEST + 1)
        store.update(session.fetch(batch))


def follow_up_oids(store: ValueStore) -> List[str]:
    """Compute the table-row OIDs that depend on the round-one counts."""
    oids: List[str] = []
    for count_oid, columns, what in _LINE_TABLES:
        count = store.get(count_oid, parse_unsigned, f"number of {what} lines")
        for n in range(1, count + 1):
            oids.extend(mib.ups_oid(column, n) for column in columns)

    alarms = store.get(mib.ALARMS_PRESENT, parse_unsigned, "number of active alarms")
    for n in range(1, alarms + 1):
        oids.append(mib.ups_oid(mib.ALARM_DESCR, n))
        oids.append(mib.ups_oid(mib.ALARM_TIME, n))
    return oids


class UpsProbe:
    """One evaluation pass against a single UPS.

    Parameters
    ----------
    session : Session
        Transport returning raw values for a list of OIDs.
    options : CheckOptions
        Evaluation settings.
    """

    def __init__(self, session: Session, options: CheckOptions):
        self._session = session
        self._options = options

    def collect(self) -> ValueStore:
        """Run both fetch rounds and return the populated value store."""
        store = ValueStore()
        fetch_batched(self._session, INITIAL_OIDS, store)
        follow_up = follow_up_oids(store)
        if follow_up:
            fetch_batched(self._session, follow_up, store)
        logger.info("Collected %d values", len(store))
        return store

    def run(self) -> ProbeResult:
        store = self.collect()
        report: Report = UpsHealthChecker(store, self._options).run_all_checks()
        return ProbeResult(severity=report.severity, text=report.render(), metrics=report.metrics)
