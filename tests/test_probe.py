import socket

import pytest
from scapy.all import ICMP, IP

from hostscan import probe
from hostscan.probe import DeviceRecord, probe_host, resolve_hostname


class FakeConnection:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def echo_reply(address, icmp_type=0):
    return IP(src=address) / ICMP(type=icmp_type)


@pytest.fixture
def no_dns(monkeypatch):
    def fail(address):
        raise socket.herror(1, "Unknown host")

    monkeypatch.setattr(probe.socket, "gethostbyaddr", fail)


@pytest.fixture
def no_tcp(monkeypatch):
    def fail(address, timeout=None):
        raise AssertionError("TCP fallback should not be used")

    monkeypatch.setattr(probe.socket, "create_connection", fail)


def test_icmp_echo_reply_is_reachable(monkeypatch, no_dns, no_tcp):
    monkeypatch.setattr(probe, "sr1", lambda pkt, timeout, verbose: echo_reply("10.0.0.5"))

    record = probe_host("10.0.0.5", 300, "icmp")

    assert record.reachable is True
    assert record.latency_ms >= 0
    assert record.hostname == "unknown"


def test_icmp_timeout_is_unreachable(monkeypatch, no_dns, no_tcp):
    seen = {}

    def sr1(pkt, timeout, verbose):
        seen["timeout"] = timeout
        return None

    monkeypatch.setattr(probe, "sr1", sr1)

    record = probe_host("10.0.0.5", 250, "icmp")

    assert record == DeviceRecord("10.0.0.5", "unknown", -1, False)
    assert seen["timeout"] == pytest.approx(0.25)


def test_icmp_non_echo_reply_is_unreachable(monkeypatch, no_dns, no_tcp):
    # Destination unreachable from a router
    monkeypatch.setattr(probe, "sr1", lambda pkt, timeout, verbose: echo_reply("10.0.0.1", icmp_type=3))

    assert probe_host("10.0.0.5", 300, "icmp").reachable is False


def test_auto_falls_back_to_tcp_without_raw_sockets(monkeypatch, no_dns):
    def sr1(pkt, timeout, verbose):
        raise PermissionError(1, "Operation not permitted")

    def refused(address, timeout=None):
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr(probe, "sr1", sr1)
    monkeypatch.setattr(probe.socket, "create_connection", refused)

    record = probe_host("10.0.0.5", 300, "auto")

    assert record.reachable is True
    assert record.latency_ms >= 0


def test_icmp_only_without_raw_sockets_is_unreachable(monkeypatch, no_dns, no_tcp):
    def sr1(pkt, timeout, verbose):
        raise PermissionError(1, "Operation not permitted")

    monkeypatch.setattr(probe, "sr1", sr1)

    record = probe_host("10.0.0.5", 300, "icmp")

    assert record.reachable is False
    assert record.latency_ms == -1


def test_tcp_connect_accepted(monkeypatch, no_dns):
    attempts = []

    def connect(address, timeout=None):
        attempts.append((address, timeout))
        return FakeConnection()

    monkeypatch.setattr(probe.socket, "create_connection", connect)

    record = probe_host("10.0.0.9", 300, "tcp")

    assert record.reachable is True
    assert attempts == [(("10.0.0.9", 80), pytest.approx(0.1))]


def test_tcp_timeouts_on_every_port(monkeypatch, no_dns):
    attempts = []

    def connect(address, timeout=None):
        attempts.append(address[1])
        raise socket.timeout("timed out")

    monkeypatch.setattr(probe.socket, "create_connection", connect)

    record = probe_host("10.0.0.9", 300, "tcp")

    assert record.reachable is False
    assert record.latency_ms == -1
    assert attempts == list(probe.TCP_PROBE_PORTS)


def test_tcp_host_unreachable_stops_early(monkeypatch, no_dns):
    attempts = []

    def connect(address, timeout=None):
        attempts.append(address[1])
        raise OSError(113, "No route to host")

    monkeypatch.setattr(probe.socket, "create_connection", connect)

    assert probe_host("10.0.0.9", 300, "tcp").reachable is False
    assert len(attempts) == 1


def test_hostname_resolved_even_when_unreachable(monkeypatch):
    monkeypatch.setattr(probe, "sr1", lambda pkt, timeout, verbose: None)
    monkeypatch.setattr(probe.socket, "gethostbyaddr", lambda address: ("printer.lan", [], [address]))

    record = probe_host("10.0.0.7", 300, "icmp")

    assert record.reachable is False
    assert record.hostname == "printer.lan"


@pytest.mark.parametrize("answer, expected", [
    (("nas.local", [], ["10.0.0.3"]), "nas.local"),
    (("10.0.0.3", [], ["10.0.0.3"]), "unknown"),
    (("", [], ["10.0.0.3"]), "unknown"),
])
def test_resolve_hostname(monkeypatch, answer, expected):
    monkeypatch.setattr(probe.socket, "gethostbyaddr", lambda address: answer)

    assert resolve_hostname("10.0.0.3") == expected


def test_resolve_hostname_failure(monkeypatch, no_dns):
    assert resolve_hostname("10.0.0.3") == "unknown"


def test_unexpected_error_never_escapes(monkeypatch, no_dns):
    def sr1(pkt, timeout, verbose):
        raise RuntimeError("scapy exploded")

    monkeypatch.setattr(probe, "sr1", sr1)

    record = probe_host("10.0.0.5", 300, "auto")

    assert record == DeviceRecord.unreachable("10.0.0.5")


def test_unknown_method_is_rejected_by_check():
    with pytest.raises(ValueError):
        probe.check_reachable("10.0.0.5", 300, "arp")


def test_record_wire_form():
    record = DeviceRecord("10.0.0.5", "nas.local", 3, True)

    assert record.to_dict() == {"ip": "10.0.0.5", "hostname": "nas.local", "latency_ms": 3, "reachable": True}
