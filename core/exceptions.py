"""Custom exception classes for the UPS-MIB probe.

Every exception here is fatal for the current run: the probe reports the
UNKNOWN state and never emits a partial health report.
"""


class ProbeError(Exception):
    """Base exception for all probe errors."""


class ConfigError(ProbeError):
    """Raised when command-line options or the YAML config are invalid."""


class TransportError(ProbeError):
    """Raised when the SNMP session cannot be established or a request fails."""


class FieldError(ProbeError):
    """Raised when a mandatory field is missing or fails validation."""
