"""SNMP transport for the probe.

A session offers a single operation, ``fetch(oids) -> {oid: value}``.  The
real implementation sends one SNMP GET per call through pysnmp; the mock
serves a static mapping for tests and offline runs.  Request batching is
the caller's job (see :mod:`pipeline.probe`).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    UsmUserData,
    get_cmd,
    usmAesCfb128Protocol,
    usmAesCfb192Protocol,
    usmAesCfb256Protocol,
    usmDESPrivProtocol,
    usmHMAC192SHA256AuthProtocol,
    usmHMAC384SHA512AuthProtocol,
    usmHMACMD5AuthProtocol,
    usmHMACSHAAuthProtocol,
)
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from core.exceptions import ConfigError, TransportError
from core.value_store import normalize_oid

logger = logging.getLogger(__name__)

PROTOCOLS = ("1", "2c", "3")

_AUTH_PROTOCOLS = {
    "MD5": usmHMACMD5AuthProtocol,
    "SHA": usmHMACSHAAuthProtocol,
    "SHA256": usmHMAC192SHA256AuthProtocol,
    "SHA512": usmHMAC384SHA512AuthProtocol,
}
_PRIV_PROTOCOLS = {
    "DES": usmDESPrivProtocol,
    "AES": usmAesCfb128Protocol,
    "AES192": usmAesCfb192Protocol,
    "AES256": usmAesCfb256Protocol,
}
AUTH_PROTOCOLS = tuple(_AUTH_PROTOCOLS)
PRIV_PROTOCOLS = tuple(_PRIV_PROTOCOLS)


def decode_var_binds(var_binds: Iterable[Tuple[Any, Any]]) -> Dict[str, str]:
    """Map unresolved var-binds to ``{dotted oid: printable value}``.

    Objects the agent reports as absent (noSuchObject, noSuchInstance,
    endOfMibView) are left out.
    """
    result: Dict[str, str] = {}
    for name, value in var_binds:
        if isinstance(value, (NoSuchObject, NoSuchInstance, EndOfMibView)):
            continue
        result[normalize_oid(str(name))] = value.prettyPrint()
    return result


# ---------------------------------------------------------------------------
# pysnmp session
# ---------------------------------------------------------------------------

class SnmpSession:
    """SNMP GET session against one agent.

    Parameters
    ----------
    host : str
        Agent address.
    port : int
        UDP port of the agent.
    protocol : str
        ``"1"``, ``"2c"`` or ``"3"``.
    community : str
        Community string for v1/v2c.
    username, auth_protocol, auth_password, priv_protocol, priv_password
        SNMPv3 USM credentials.  Authentication and privacy are enabled by
        giving the corresponding password.
    timeout : float
        Per-request timeout in seconds.
    retries : int
        Retransmissions per request, handled by pysnmp.
    """

    def __init__(
        self,
        host: str,
        port: int = 161,
        protocol: str = "2c",
        community: str = "public",
        username: Optional[str] = None,
        auth_protocol: str = "SHA",
        auth_password: Optional[str] = None,
        priv_protocol: str = "AES",
        priv_password: Optional[str] = None,
        timeout: float = 5.0,
        retries: int = 1,
    ):
        if protocol not in PROTOCOLS:
            raise ConfigError(f"unsupported SNMP protocol version: {protocol}")
        if protocol == "3" and not username:
            raise ConfigError("SNMPv3 requires a username")
        if auth_protocol.upper() not in AUTH_PROTOCOLS:
            raise ConfigError(f"unsupported authentication protocol: {auth_protocol}")
        if priv_protocol.upper() not in PRIV_PROTOCOLS:
            raise ConfigError(f"unsupported privacy protocol: {priv_protocol}")
        if priv_password and not auth_password:
            raise ConfigError("SNMPv3 privacy requires an authentication password")

        self.host = host
        self.port = port
        self.protocol = protocol
        self.community = community
        self.username = username
        self.auth_protocol = auth_protocol.upper()
        self.auth_password = auth_password
        self.priv_protocol = priv_protocol.upper()
        self.priv_password = priv_password
        self.timeout = timeout
        self.retries = retries

    def fetch(self, oids: Sequence[str]) -> Dict[str, str]:
        """Send one GET for *oids* and return the values the agent has.

        Objects the agent does not implement are left out of the result.

        Raises
        ------
        TransportError
            On timeouts, unreachable agents, or an SNMP error status.
        """
        if not oids:
            return {}
        try:
            return asyncio.run(self._get(list(oids)))
        except TransportError:
            raise
        except Exception as exc:
            raise TransportError(f"SNMP request to {self.host}:{self.port} failed: {exc}") from exc

    async def _get(self, oids: List[str]) -> Dict[str, str]:
        engine = SnmpEngine()
        try:
            transport = await UdpTransportTarget.create(
                (self.host, self.port), timeout=self.timeout, retries=self.retries
            )
            # lookupMib=False keeps names as dotted OIDs
            error_indication, error_status, error_index, var_binds = await get_cmd(
                engine,
                self._auth_data(),
                transport,
                ContextData(),
                *[ObjectType(ObjectIdentity(oid)) for oid in oids],
                lookupMib=False,
            )
        finally:
            engine.close_dispatcher()

        if error_indication:
            raise TransportError(f"SNMP error from {self.host}: {error_indication}")
        if error_status:
            where = ""
            if error_index and int(error_index) <= len(var_binds):
                where = f" at {var_binds[int(error_index) - 1][0]}"
            raise TransportError(
                f"SNMP error status from {self.host}: {error_status.prettyPrint()}{where}"
            )

        result = decode_var_binds(var_binds)
        logger.debug("GET %d oids from %s -> %d values", len(oids), self.host, len(result))
        return result

    def _auth_data(self) -> Any:
        if self.protocol == "1":
            return CommunityData(self.community, mpModel=0)
        if self.protocol == "2c":
            return CommunityData(self.community, mpModel=1)

        kwargs: Dict[str, Any] = {}
        if self.auth_password:
            kwargs["authKey"] = self.auth_password
            kwargs["authProtocol"] = _AUTH_PROTOCOLS[self.auth_protocol]
        if self.priv_password:
            kwargs["privKey"] = self.priv_password
            kwargs["privProtocol"] = _PRIV_PROTOCOLS[self.priv_protocol]
        return UsmUserData(self.username, **kwargs)


# ---------------------------------------------------------------------------
# Mock session for development / testing
# ---------------------------------------------------------------------------

class MockSession:
    """Serves values from a static mapping and records every request."""

    def __init__(self, values: Mapping[str, Any], fail: bool = False):
        self._values = {k.lstrip("."): str(v) for k, v in values.items()}
        self._fail = fail
        self.requests: List[List[str]] = []

    def fetch(self, oids: Sequence[str]) -> Dict[str, str]:
        self.requests.append(list(oids))
        if self._fail:
            raise TransportError("mock session unavailable")
        return {oid: self._values[oid] for oid in oids if oid in self._values}


def open_session(snmp_cfg: Dict[str, Any]) -> SnmpSession:
    """Build an :class:`SnmpSession` from the merged ``snmp`` settings.

    Raises
    ------
    ConfigError
        When the host is missing or a setting has the wrong type.
    """
    host = snmp_cfg.get("host")
    if not host:
        raise ConfigError("no host given")
    try:
        port = int(snmp_cfg.get("port", 161))
        timeout = float(snmp_cfg.get("timeout_s", 5))
        retries = int(snmp_cfg.get("retries", 1))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid snmp setting: {exc}") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"invalid snmp port: {port}")
    return SnmpSession(
        host=str(host),
        port=port,
        protocol=str(snmp_cfg.get("protocol", "2c")),
        community=str(snmp_cfg.get("community") or "public"),
        username=snmp_cfg.get("username"),
        auth_protocol=str(snmp_cfg.get("auth_protocol") or "SHA"),
        auth_password=snmp_cfg.get("auth_password"),
        priv_protocol=str(snmp_cfg.get("priv_protocol") or "AES"),
        priv_password=snmp_cfg.get("priv_password"),
        timeout=timeout,
        retries=retries,
    )
