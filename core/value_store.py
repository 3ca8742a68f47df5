"""Value store and typed field accessor.

The value store holds the raw strings fetched from the device, keyed by
dotted OID.  Every mandatory field is read through :meth:`ValueStore.get`
together with a typed parser; a missing or malformed value aborts the run
with :class:`FieldError` so the probe never reports a healthy state it
could not actually read.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, Mapping, NamedTuple, Optional

from core.exceptions import FieldError

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^-?\d+$")
_OID_RE = re.compile(r"^\.?\d+(\.\d+)+$")


class Parsed(NamedTuple):
    """Outcome of a typed parse: ``ok`` with a ``value``, or a ``reason``."""
    ok: bool
    value: Any = None
    reason: str = ""


Parser = Callable[[str], Parsed]


def normalize_oid(oid: str) -> str:
    """Strip surrounding whitespace and a leading dot from an OID string."""
    return oid.strip().lstrip(".")


# ---------------------------------------------------------------------------
# Typed parsers
# ---------------------------------------------------------------------------

def parse_int(raw: str) -> Parsed:
    text = raw.strip()
    if not _INT_RE.match(text):
        return Parsed(False, reason=f"not an integer: {raw!r}")
    return Parsed(True, int(text))


def parse_unsigned(raw: str) -> Parsed:
    result = parse_int(raw)
    if result.ok and result.value < 0:
        return Parsed(False, reason=f"negative value: {raw!r}")
    return result


def parse_enum(domain: Iterable[int]) -> Parser:
    """Build a parser accepting only integer codes from *domain*."""
    allowed = frozenset(domain)

    def _parse(raw: str) -> Parsed:
        result = parse_int(raw)
        if not result.ok:
            return result
        if result.value not in allowed:
            return Parsed(False, reason=f"unexpected code {result.value}")
        return result

    return _parse


def parse_oid(raw: str) -> Parsed:
    text = raw.strip()
    if not _OID_RE.match(text):
        return Parsed(False, reason=f"not an object identifier: {raw!r}")
    return Parsed(True, normalize_oid(text))


def parse_text(raw: str) -> Parsed:
    return Parsed(True, raw.strip())


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class ValueStore:
    """Write-once mapping of OID -> raw value.

    Parameters
    ----------
    values : mapping, optional
        Initial content, typically the result of a transport fetch.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, str] = {}
        if values:
            self.update(values)

    def __contains__(self, oid: str) -> bool:
        return normalize_oid(oid) in self._values

    def __len__(self) -> int:
        return len(self._values)

    def update(self, values: Mapping[str, Any]) -> None:
        """Merge fetched values; an OID that is already present keeps its value."""
        for oid, value in values.items():
            key = normalize_oid(oid)
            if key in self._values:
                logger.debug("Ignoring duplicate value for %s", key)
                continue
            self._values[key] = str(value)

    def raw(self, oid: str) -> Optional[str]:
        return self._values.get(normalize_oid(oid))

    def get(self, oid: str, parser: Parser, description: str) -> Any:
        """Return the parsed value of a mandatory field.

        Raises
        ------
        FieldError
            If *oid* is absent or its value is rejected by *parser*.
        """
        raw = self.raw(oid)
        if raw is None:
            raise FieldError(f"missing value for {description} ({normalize_oid(oid)})")
        result = parser(raw)
        if not result.ok:
            raise FieldError(f"invalid value for {description}: {result.reason}")
        return result.value

    def get_optional(self, oid: str, parser: Parser, default: Any = None) -> Any:
        """Return the parsed value of an optional field, or *default*."""
        raw = self.raw(oid)
        if raw is None:
            return default
        result = parser(raw)
        return result.value if result.ok else default
