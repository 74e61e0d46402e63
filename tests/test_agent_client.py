import json

import pytest
import requests

from hubconsole.errors import AgentError
from hubconsole.models.config import ConfigPayload, default_ports
from hubconsole.services.agent_client import AgentClient


def response(body, status=200):
    r = requests.Response()
    r.status_code = status
    r.reason = "OK" if status < 400 else "Internal Server Error"
    r.url = "http://agent.test"
    r._content = body if isinstance(body, bytes) else json.dumps(body).encode()
    return r


class FakeSession:
    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, timeout, kwargs))
        result = self.routes[(method, url.split("agent.test", 1)[1])]
        if isinstance(result, Exception):
            raise result
        return result

    def close(self):
        pass


def client(routes, timeout=None):
    return AgentClient(base_url="http://agent.test/", timeout=timeout, session=FakeSession(routes))


def test_parses_interface_snapshot():
    c = client({("GET", "/api/interfaces"): response({"eth0": {"ipv4": ["10.0.0.2"], "ipv6": [], "mac": "aa:bb"}})})
    snap = c.get_interfaces()
    assert snap["eth0"].hardware_address == "aa:bb"
    assert snap["eth0"].ipv4 == ["10.0.0.2"]


def test_parses_devices_and_null_list():
    body = [{"busid": "3-1.3.4", "vendorId": "046d", "productId": "c52b", "name": "Logitech Receiver", "port": 3, "occupied": True}]
    c = client({("GET", "/api/usb/devices"): response(body)})
    [dev] = c.get_devices()
    assert dev.vendor_id == "046d"
    assert dev.port == 3
    assert dev.occupied

    c = client({("GET", "/api/usb/devices"): response(b"null")})
    assert c.get_devices() == []


def test_errors_and_version():
    c = client({
        ("GET", "/api/errors"): response([{"message": "wg-quick: exit status 1"}]),
        ("GET", "/api/version"): response({"version": "v0.3.1"}),
    })
    assert [e.message for e in c.get_errors()] == ["wg-quick: exit status 1"]
    assert c.get_version() == "v0.3.1"


def test_put_config_sends_complete_body():
    session = FakeSession({("PUT", "/api/config"): response(b"")})
    c = AgentClient(base_url="http://agent.test", session=session, timeout=2.5)
    payload = ConfigPayload(
        ports=default_ports(),
        ethernet={"mode": "dhcp"},
        wifi={"enabled": False},
        wireguard={"blocked": False, "enabled": False, "config": ""},
        tailscale={"blocked": False, "enabled": False, "preauthkey": "", "exitNode": False, "serverUrl": ""},
    )
    c.put_config(payload)
    method, url, timeout, kwargs = session.calls[0]
    assert (method, url, timeout) == ("PUT", "http://agent.test/api/config", 2.5)
    body = json.loads(kwargs["data"])
    assert body["ports"][2] == {"id": 3, "power": False}
    assert set(body) == {"ports", "ethernet", "wifi", "wireguard", "tailscale"}


def test_transport_failure_raises_agent_error():
    c = client({("GET", "/api/metrics"): requests.ConnectionError("refused")})
    with pytest.raises(AgentError) as exc:
        c.get_metrics()
    assert exc.value.path == "/api/metrics"


def test_http_error_raises_agent_error():
    c = client({("GET", "/api/network"): response({"error": "boom"}, status=500)})
    with pytest.raises(AgentError):
        c.get_network()


def test_bad_payload_raises_agent_error():
    c = client({("GET", "/api/metrics"): response(b"<html>")})
    with pytest.raises(AgentError):
        c.get_metrics()


def test_requests_carry_a_finite_timeout_by_default():
    session = FakeSession({("GET", "/api/network"): response({"rx": 0.5, "tx": 0.1})})
    c = AgentClient(base_url="http://agent.test", session=session)
    c.get_network()
    _, _, timeout, _ = session.calls[0]
    assert timeout is not None and timeout > 0
