#!/usr/bin/env python3
"""UPS-MIB probe – monitoring plugin for RFC 1628 UPS devices.

Queries one UPS over SNMP, prints a single status line with performance
data and exits with the plugin state (0 OK, 1 WARNING, 2 CRITICAL,
3 UNKNOWN).

Usage
-----
    python main.py -H ups1.example.net
    python main.py -H ups1 -C private -w 80 -c 90
    python main.py -H ups1 -P 3 -U monitor -A secret --ignore-alarms OnBypass,2
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(PROJECT_ROOT))

from configs.loaders import load_probe_config
from core.exceptions import ConfigError, ProbeError
from core.logging_setup import setup_logging
from core.snmp_session import AUTH_PROTOCOLS, PRIV_PROTOCOLS, PROTOCOLS, open_session
from health.report import Severity
from health.thresholds import parse_threshold_specs
from health.ups_checker import CheckOptions, parse_ignore_list
from integration.plugin_output import emit
from pipeline.probe import UpsProbe

logger = logging.getLogger("ups_probe")


class PluginArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose errors end the run as UNKNOWN instead of exit 2."""

    def error(self, message: str) -> NoReturn:
        raise ConfigError(f"bad arguments (see --help): {message}")


def build_parser() -> PluginArgumentParser:
    parser = PluginArgumentParser(description="Check the health of an RFC 1628 UPS over SNMP")
    parser.add_argument("-H", "--host", required=True, help="UPS address or hostname")
    parser.add_argument("-p", "--port", type=int, help="SNMP port (default 161)")
    parser.add_argument("-P", "--protocol", choices=PROTOCOLS, help="SNMP version (default 2c)")
    parser.add_argument("-C", "--community", help="SNMP v1/v2c community (default public)")
    parser.add_argument("-U", "--username", help="SNMPv3 user name")
    parser.add_argument("-a", "--authproto", type=str.upper, choices=AUTH_PROTOCOLS,
                        help="SNMPv3 authentication protocol")
    parser.add_argument("-A", "--authpassword", help="SNMPv3 authentication passphrase")
    parser.add_argument("-x", "--privproto", type=str.upper, choices=PRIV_PROTOCOLS,
                        help="SNMPv3 privacy protocol")
    parser.add_argument("-X", "--privpassword", help="SNMPv3 privacy passphrase")
    parser.add_argument("-t", "--timeout", type=float, help="seconds per SNMP request")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="more log output on stderr (repeatable)")
    parser.add_argument("--config", help="alternative YAML configuration file")
    parser.add_argument("--no-perfdata", action="store_true", help="omit performance data")
    parser.add_argument("--ignore-alarms", metavar="LIST",
                        help="comma-separated alarm names, numbers 1-24 or OIDs to ignore")
    parser.add_argument("--no-test-warnings", action="store_true",
                        help="do not report failed or aborted self-tests")
    parser.add_argument("-w", "--warning", metavar="RANGES",
                        help="output load warning range(s), one or one per output line")
    parser.add_argument("-c", "--critical", metavar="RANGES",
                        help="output load critical range(s), one or one per output line")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def snmp_settings(snmp_cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Merge YAML ``snmp`` defaults with command-line overrides."""
    merged = dict(snmp_cfg)
    overrides = {
        "host": args.host,
        "port": args.port,
        "protocol": args.protocol,
        "community": args.community,
        "username": args.username,
        "auth_protocol": args.authproto,
        "auth_password": args.authpassword,
        "priv_protocol": args.privproto,
        "priv_password": args.privpassword,
        "timeout_s": args.timeout,
    }
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return merged


def build_options(args: argparse.Namespace, cfg: Dict[str, Any]) -> CheckOptions:
    return CheckOptions(
        ignored_alarms=parse_ignore_list(args.ignore_alarms),
        load_thresholds=tuple(parse_threshold_specs(args.warning, args.critical)),
        suppress_test_results=args.no_test_warnings,
        head_placeholder=str(cfg.get("report", {}).get("head_placeholder") or "UPS"),
    )


def main(argv: Optional[List[str]] = None) -> int:
    perfdata = True
    try:
        args = parse_args(argv)
        perfdata = not args.no_perfdata
        cfg = load_probe_config(args.config)
        setup_logging(cfg.get("logging", {}), args.verbose)
        options = build_options(args, cfg)
        session = open_session(snmp_settings(cfg.get("snmp", {}), args))
        logger.info("Checking UPS %s", args.host)
        result = UpsProbe(session, options).run()
    except ProbeError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return emit(Severity.UNKNOWN, str(exc))

    return emit(result.severity, result.text, result.metrics, perfdata=perfdata)


if __name__ == "__main__":
    sys.exit(main())
