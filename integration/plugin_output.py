"""Plugin output – status line and performance data for the monitoring host."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from health.report import Metric, Severity

logger = logging.getLogger(__name__)

PREFIX = "UPS"


def format_number(value: Optional[float]) -> str:
    """Render a number without a trailing ``.0``; ``None`` becomes empty."""
    if value is None:
        return ""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(round(value, 3))
    return str(value)


def format_metric(metric: Metric) -> str:
    """Render one metric as ``'label'=value[unit];warn;crit;min;max``."""
    fields = [
        f"{format_number(metric.value)}{metric.unit}",
        metric.warning,
        metric.critical,
        format_number(metric.minimum),
        format_number(metric.maximum),
    ]
    label = metric.label.replace("'", "''")
    return f"'{label}'=" + ";".join(fields).rstrip(";")


def format_perfdata(metrics: Iterable[Metric]) -> str:
    return " ".join(format_metric(m) for m in metrics)


def status_line(severity: Severity, text: str, metrics: Iterable[Metric] = (),
                perfdata: bool = True) -> str:
    """Build the single line printed on stdout."""
    line = f"{PREFIX} {severity.name} - {text}"
    if perfdata:
        perf = format_perfdata(metrics)
        if perf:
            line += " | " + perf
    return line


def emit(severity: Severity, text: str, metrics: Iterable[Metric] = (),
         perfdata: bool = True) -> int:
    """Print the status line and return the matching exit code."""
    print(status_line(severity, text, metrics, perfdata))
    logger.debug("Exiting with %s (%d)", severity.name, int(severity))
    return int(severity)
