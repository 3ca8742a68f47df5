"""Unit tests for core.snmp_session module (pysnmp calls replaced)."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from pysnmp.hlapi.v3arch.asyncio import CommunityData, UsmUserData
from pysnmp.proto import rfc1905
from pysnmp.proto.rfc1902 import Integer32, ObjectIdentifier, ObjectName, OctetString, TimeTicks

from core import snmp_session
from core.exceptions import ConfigError, TransportError
from core.snmp_session import SnmpSession, decode_var_binds, open_session

UPTIME_OID = "1.3.6.1.2.1.1.3.0"
MANUFACTURER_OID = "1.3.6.1.2.1.33.1.1.1.0"
ALARM_DESCR_OID = "1.3.6.1.2.1.33.1.6.2.1.2.1"


class _FakeEngine:
    instances = []

    def __init__(self):
        self.closed = False
        _FakeEngine.instances.append(self)

    def close_dispatcher(self):
        self.closed = True


class _FakeTarget:
    calls = []

    @classmethod
    async def create(cls, address, timeout, retries):
        cls.calls.append((address, timeout, retries))
        return "transport"


@pytest.fixture
def agent(monkeypatch):
    """Replace pysnmp's engine, transport and GET with in-memory fakes.

    Set ``agent["response"]`` to the tuple ``get_cmd`` should return; the
    keyword options of the last call land in ``agent["options"]``.
    """
    state = {"response": (None, 0, 0, []), "options": None, "var_binds": None}

    async def fake_get_cmd(engine, auth, transport, context, *var_binds, **options):
        state["options"] = options
        state["var_binds"] = var_binds
        state["auth"] = auth
        return state["response"]

    _FakeEngine.instances = []
    _FakeTarget.calls = []
    monkeypatch.setattr(snmp_session, "SnmpEngine", _FakeEngine)
    monkeypatch.setattr(snmp_session, "UdpTransportTarget", _FakeTarget)
    monkeypatch.setattr(snmp_session, "get_cmd", fake_get_cmd)
    return state


class TestDecodeVarBinds:
    def test_keys_are_dotted_oids(self):
        result = decode_var_binds([
            (ObjectName(UPTIME_OID), TimeTicks(1234)),
            (ObjectName(MANUFACTURER_OID), OctetString("ACME")),
            (ObjectName(ALARM_DESCR_OID), ObjectIdentifier("1.3.6.1.2.1.33.1.6.3.2")),
        ])
        assert result == {
            UPTIME_OID: "1234",
            MANUFACTURER_OID: "ACME",
            ALARM_DESCR_OID: "1.3.6.1.2.1.33.1.6.3.2",
        }

    def test_absent_objects_are_skipped(self):
        result = decode_var_binds([
            (ObjectName(UPTIME_OID), rfc1905.noSuchObject),
            (ObjectName(MANUFACTURER_OID), rfc1905.noSuchInstance),
            (ObjectName(ALARM_DESCR_OID), rfc1905.endOfMibView),
        ])
        assert result == {}


class TestSnmpSessionFetch:
    def test_results_keyed_by_requested_oid(self, agent):
        agent["response"] = (None, 0, 0, [(ObjectName(UPTIME_OID), TimeTicks(42))])
        session = SnmpSession("ups1", port=16161, timeout=2.0, retries=0)
        result = session.fetch([UPTIME_OID])
        assert UPTIME_OID in result
        assert result == {UPTIME_OID: "42"}
        assert agent["options"].get("lookupMib") is False
        assert len(agent["var_binds"]) == 1
        assert _FakeTarget.calls == [(("ups1", 16161), 2.0, 0)]
        assert _FakeEngine.instances[0].closed

    def test_empty_request_skips_network(self, agent):
        assert SnmpSession("ups1").fetch([]) == {}
        assert agent["options"] is None

    def test_error_indication(self, agent):
        agent["response"] = ("requestTimedOut", 0, 0, [])
        with pytest.raises(TransportError, match="requestTimedOut"):
            SnmpSession("ups1").fetch([UPTIME_OID])
        assert _FakeEngine.instances[0].closed

    def test_error_status_names_the_oid(self, agent):
        agent["response"] = (None, Integer32(5), Integer32(1), [(ObjectName(UPTIME_OID), Integer32(0))])
        with pytest.raises(TransportError, match=f"at {UPTIME_OID}"):
            SnmpSession("ups1").fetch([UPTIME_OID])

    def test_unexpected_failure_becomes_transport_error(self, agent, monkeypatch):
        async def broken_create(address, timeout, retries):
            raise OSError("name resolution failed")

        monkeypatch.setattr(_FakeTarget, "create", broken_create)
        with pytest.raises(TransportError, match="name resolution failed"):
            SnmpSession("ups1").fetch([UPTIME_OID])


class TestAuthData:
    def test_community_versions(self):
        assert isinstance(SnmpSession("ups1", protocol="1")._auth_data(), CommunityData)
        assert isinstance(SnmpSession("ups1", protocol="2c")._auth_data(), CommunityData)

    def test_usm_user(self):
        session = SnmpSession(
            "ups1", protocol="3", username="monitor",
            auth_protocol="sha256", auth_password="authsecret",
            priv_protocol="aes", priv_password="privsecret",
        )
        assert isinstance(session._auth_data(), UsmUserData)
        assert session.auth_protocol == "SHA256"

    @pytest.mark.parametrize("kwargs", [
        {"protocol": "4"},
        {"protocol": "3"},
        {"auth_protocol": "SHA1024"},
        {"priv_protocol": "ROT13"},
        {"protocol": "3", "username": "monitor", "priv_password": "x"},
    ])
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ConfigError):
            SnmpSession("ups1", **kwargs)


class TestOpenSession:
    def test_defaults(self):
        session = open_session({"host": "ups1"})
        assert (session.port, session.protocol, session.community) == (161, "2c", "public")

    def test_missing_host(self):
        with pytest.raises(ConfigError, match="no host"):
            open_session({})

    @pytest.mark.parametrize("setting", [
        {"port": "abc"},
        {"port": 70000},
        {"timeout_s": "soon"},
        {"retries": [1]},
    ])
    def test_bad_values_are_config_errors(self, setting):
        with pytest.raises(ConfigError):
            open_session({"host": "ups1", **setting})
