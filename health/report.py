"""Report accumulator: severity buckets, running verdict and metrics.

Every section evaluator writes into one :class:`Report`.  Fragments are
appended to exactly one of three ordered buckets and the running severity
only ever goes up, so a CRITICAL result can never be lowered by a later
section.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)


class Severity(enum.IntEnum):
    """Plugin states; the integer value is the process exit code."""
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


@dataclass(frozen=True)
class Metric:
    """A single performance-data observation."""
    label: str
    value: float
    unit: str = ""
    minimum: Optional[float] = 0
    maximum: Optional[float] = None
    warning: str = ""
    critical: str = ""


@dataclass
class Report:
    """Ordered fragment buckets plus the running severity.

    Parameters
    ----------
    head : str
        Device identification shown in front of an all-OK summary.
    """
    head: str = "UPS"
    severity: Severity = Severity.OK
    ok_fragments: List[str] = field(default_factory=list)
    warning_fragments: List[str] = field(default_factory=list)
    critical_fragments: List[str] = field(default_factory=list)
    metrics: List[Metric] = field(default_factory=list)

    # -- fragments -----------------------------------------------------------

    def ok(self, text: str) -> None:
        self.ok_fragments.append(text)

    def warning(self, text: str) -> None:
        self.warning_fragments.append(text)
        self._escalate(Severity.WARNING, text)

    def critical(self, text: str) -> None:
        self.critical_fragments.append(text)
        self._escalate(Severity.CRITICAL, text)

    def add(self, severity: Severity, text: str) -> None:
        """Add *text* to the bucket matching *severity*."""
        if severity == Severity.CRITICAL:
            self.critical(text)
        elif severity == Severity.WARNING:
            self.warning(text)
        else:
            self.ok(text)

    def _escalate(self, level: Severity, text: str) -> None:
        if level > self.severity:
            logger.info("Severity %s -> %s: %s", self.severity.name, level.name, text)
            self.severity = level

    # -- metrics -------------------------------------------------------------

    def metric(self, label: str, value: float, unit: str = "", **kwargs) -> Metric:
        m = Metric(label=label, value=value, unit=unit, **kwargs)
        self.metrics.append(m)
        return m

    # -- rendering -----------------------------------------------------------

    def render(self) -> str:
        """Assemble the summary text for the current severity."""
        ok_text = ", ".join(self.ok_fragments)
        if self.severity == Severity.OK:
            return f"{self.head}: {ok_text}" if ok_text else self.head

        if self.severity == Severity.WARNING:
            parts = [", ".join(self.warning_fragments)]
        else:
            parts = [", ".join(self.critical_fragments)]
            if self.warning_fragments:
                parts.append("WARNING: " + ", ".join(self.warning_fragments))
        if self.ok_fragments:
            parts.append("OK: " + ok_text)
        return ", ".join(parts)
