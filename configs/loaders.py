"""YAML configuration loaders for the UPS-MIB probe."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.exceptions import ConfigError

_BASE_DIR = Path(__file__).resolve().parent

DEFAULT_CONFIG = "probe.yaml"
_SECTIONS = ("snmp", "report", "logging")


def load_yaml(path: str | Path, required: bool = False) -> Dict[str, Any]:
    """Load a YAML file and return its content as a dictionary.

    If *path* is relative it is resolved against the configs/ directory.
    A missing or unreadable file yields an empty dict so the caller can
    proceed with built-in defaults, unless *required* is set, in which
    case :class:`ConfigError` is raised.  A file that is not a YAML
    mapping is always an error.
    """
    p = Path(path)
    if not p.is_absolute() and not p.exists():
        p = _BASE_DIR / p
    try:
        with open(p, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        if required:
            raise ConfigError(f"cannot read config file {p}: {exc}") from exc
        return {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"malformed config file {p}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {p} must contain a mapping")
    return data


def load_probe_config(path: Optional[str | Path] = None) -> Dict[str, Any]:
    """Load the probe configuration.

    The bundled ``probe.yaml`` is optional; an explicitly given *path*
    must exist.  The ``snmp``, ``report`` and ``logging`` sections must be
    mappings when present; an empty section is treated as absent.
    """
    if path is None:
        cfg = load_yaml(DEFAULT_CONFIG)
    else:
        cfg = load_yaml(path, required=True)

    for section in _SECTIONS:
        value = cfg.get(section)
        if value is None:
            cfg[section] = {}
        elif not isinstance(value, dict):
            raise ConfigError(f"config section {section!r} must be a mapping")
    if not isinstance(cfg["logging"].get("rotate") or {}, dict):
        raise ConfigError("config section 'logging.rotate' must be a mapping")
    return cfg
