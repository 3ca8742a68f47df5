"""Nagios-style warning/critical ranges for output load.

Range syntax (https://nagios-plugins.org/doc/guidelines.html#THRESHOLDFORMAT):
``10``, ``10:``, ``~:10``, ``10:20`` or ``@10:20``.  Without ``@`` a value
alerts when it lies outside ``[start, end]``; with ``@`` it alerts when it
lies inside.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from core.exceptions import ConfigError
from health.report import Severity

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(
    r"^(?P<inside>@)?"
    r"(?:(?P<start>~|[-+]?\d+(?:\.\d+)?):)?"
    r"(?P<end>[-+]?\d+(?:\.\d+)?)?$"
)


@dataclass(frozen=True)
class NagiosRange:
    """One parsed threshold range."""
    raw: str
    start: float
    end: float
    inside: bool = False

    @classmethod
    def parse(cls, raw: str) -> "NagiosRange":
        text = raw.strip()
        matcher = _RANGE_RE.match(text)
        if not text or matcher is None or (matcher["end"] is None and not text.endswith(":")):
            raise ConfigError(f"cannot parse threshold range {raw!r}")

        start_text = matcher["start"]
        if start_text is None:
            start = 0.0
        elif start_text == "~":
            start = float("-inf")
        else:
            start = float(start_text)
        end = float(matcher["end"]) if matcher["end"] is not None else float("inf")
        if start > end:
            raise ConfigError(f"threshold range {raw!r} has start greater than end")
        return cls(raw=text, start=start, end=end, inside=bool(matcher["inside"]))

    def alerts(self, value: float) -> bool:
        """Return True if *value* violates this range."""
        within = self.start <= value <= self.end
        return within if self.inside else not within


@dataclass(frozen=True)
class ThresholdSpec:
    """A warning/critical range pair; either side may be absent."""
    warning: Optional[NagiosRange] = None
    critical: Optional[NagiosRange] = None

    def classify(self, value: float) -> Severity:
        if self.critical is not None and self.critical.alerts(value):
            return Severity.CRITICAL
        if self.warning is not None and self.warning.alerts(value):
            return Severity.WARNING
        return Severity.OK

    @property
    def warning_text(self) -> str:
        return self.warning.raw if self.warning else ""

    @property
    def critical_text(self) -> str:
        return self.critical.raw if self.critical else ""


def _split(values: Optional[str]) -> List[str]:
    if values is None or not values.strip():
        return []
    return [item.strip() for item in values.split(",")]


def parse_threshold_specs(warning: Optional[str], critical: Optional[str]) -> List[ThresholdSpec]:
    """Parse comma-separated warning and critical range lists.

    Both lists must have the same length when both are given.  An empty
    result means no thresholds are configured.

    Raises
    ------
    ConfigError
        On unparseable ranges or mismatched list lengths.
    """
    warnings = _split(warning)
    criticals = _split(critical)
    if warnings and criticals and len(warnings) != len(criticals):
        raise ConfigError(
            f"got {len(warnings)} warning and {len(criticals)} critical thresholds, counts must match"
        )
    count = max(len(warnings), len(criticals))
    specs = []
    for i in range(count):
        specs.append(ThresholdSpec(
            warning=NagiosRange.parse(warnings[i]) if warnings else None,
            critical=NagiosRange.parse(criticals[i]) if criticals else None,
        ))
    if specs:
        logger.debug("Parsed %d load threshold spec(s)", len(specs))
    return specs


def resolve_specs(specs: Sequence[ThresholdSpec], line_count: int) -> List[Optional[ThresholdSpec]]:
    """Map threshold specs onto output lines.

    One spec applies to every line; otherwise there must be exactly one
    spec per line.  Returns one entry per line (``None`` when no thresholds
    are configured).
    """
    if not specs:
        return [None] * line_count
    if len(specs) == 1:
        return [specs[0]] * line_count
    if len(specs) != line_count:
        raise ConfigError(
            f"got {len(specs)} load thresholds for {line_count} output lines, "
            f"give either one or {line_count}"
        )
    return list(specs)
