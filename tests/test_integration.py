"""
Integration tests for dnswire.
Starts a real UDP relay on a random port in front of a fake upstream server
and sends actual DNS queries over the network.
"""

import asyncio
import socket
import threading
import time
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dnswire.builder import MessageBuilder, QuestionBuilder
from dnswire.config import _parse_config
from dnswire.enums import RCode, Type
from dnswire.handler import make_response
from dnswire.protocol import Message, decode
from dnswire.records import A, AAAA, CNAME, ResourceRecord
from dnswire.server import RelayServer


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

UPSTREAM_RECORDS = {
    "web.lan": [A("192.168.0.10"), A("192.168.0.11")],
    "ipv6.lan": [AAAA("fd00::10")],
    "api.lan": [CNAME("web.lan"), A("192.168.0.10")],
}

# www.northeastern.edu A response, answer name compressed (C0 0C)
COMPRESSED_REPLY = bytes.fromhex(
    "db42 8180 0001 0001 0000 0000"
    " 03777777 0c6e6f7274686561737465726e 03656475 00 0001 0001"
    " c00c 0001 0001 00000258 0004 9b211144"
)


def relay_config(upstream_port: int, **overrides) -> dict:
    server = {
        "host": "127.0.0.1",
        "port": 0,   # random port assigned by OS
        "upstream": ["127.0.0.1"],
        "upstream_port": upstream_port,
        "upstream_timeout": 0.5,
        "log_level": "WARNING",
        "log_messages": False,
        "hot_reload": False,
    }
    server.update(overrides)
    return {"server": server}


def send_udp_query(host: str, port: int, name: str, q_type: Type = Type.A,
                   msg_id: int = 1, timeout: float = 3.0) -> Message:
    """Send a DNS query over UDP and return the parsed response."""
    msg = (
        MessageBuilder()
        .id(msg_id)
        .rd(True)
        .question(QuestionBuilder().name(name).q_type(q_type).build())
        .build()
    )
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.settimeout(timeout)
        s.sendto(msg.to_wire(), (host, port))
        data, _ = s.recvfrom(4096)

    return decode(data)


# ═══════════════════════════════════════════════════════════════════════════════
# Fake upstream — answers from UPSTREAM_RECORDS in a background thread
# ═══════════════════════════════════════════════════════════════════════════════

class FakeUpstream:
    def __init__(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(0.1)
        self.port = self.sock.getsockname()[1]
        self.received = []
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)

    def start(self):
        self._thread.start()

    def _run(self):
        while not self._stop.is_set():
            try:
                data, addr = self.sock.recvfrom(4096)
            except socket.timeout:
                continue
            except OSError:
                return
            query = decode(data)
            self.received.append(query)
            reply = self._answer(query)
            if reply is not None:
                self.sock.sendto(reply, addr)

    def _answer(self, query: Message):
        name = query.questions[0].q_name
        if name == "silent.lan":
            return None
        if name == "garbage.lan":
            return b"\x00\x01\x02"
        if name == "www.northeastern.edu":
            return query.header.id.to_bytes(2, "big") + COMPRESSED_REPLY[2:]
        if name not in UPSTREAM_RECORDS:
            return make_response(query, RCode.NXDOMAIN).to_wire()
        reply = make_response(query)
        reply.answers = [ResourceRecord(name, data, ttl=300) for data in UPSTREAM_RECORDS[name]]
        return reply.to_wire()

    def stop(self):
        self._stop.set()
        self._thread.join(timeout=2)
        self.sock.close()


# ═══════════════════════════════════════════════════════════════════════════════
# Relay fixture — a RelayServer on an ephemeral port, on its own event loop
# ═══════════════════════════════════════════════════════════════════════════════

class LiveServer:
    def __init__(self, config: dict):
        self.relay = RelayServer(_parse_config(config, None))
        self.host = self.relay.config.server.host
        self.port = None
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._serving = None

    def __enter__(self):
        self._thread.start()
        self._serving = asyncio.run_coroutine_threadsafe(self.relay.start(), self._loop)
        deadline = time.monotonic() + 5
        while self.port is None:
            assert time.monotonic() < deadline, "Relay did not start in time"
            assert not self._serving.done(), "Relay exited during startup"
            protocol = self.relay.protocol
            if protocol is not None and protocol.transport is not None:
                self.port = protocol.transport.get_extra_info("sockname")[1]
            else:
                time.sleep(0.01)
        return self

    def __exit__(self, *exc):
        self._serving.cancel()
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)


@pytest.fixture(scope="module")
def upstream():
    fake = FakeUpstream()
    fake.start()
    yield fake
    fake.stop()


@pytest.fixture(scope="module")
def server(upstream):
    with LiveServer(relay_config(upstream.port)) as srv:
        yield srv


@pytest.fixture(scope="module")
def sinkhole_server(upstream):
    with LiveServer(relay_config(upstream.port, sinkhole="0.0.0.0")) as srv:
        yield srv


def query(server, name: str, q_type: Type = Type.A, msg_id: int = 1) -> Message:
    return send_udp_query(server.host, server.port, name, q_type, msg_id)


# ═══════════════════════════════════════════════════════════════════════════════
# Integration: relaying answers
# ═══════════════════════════════════════════════════════════════════════════════

class TestIntegrationRelay:

    def test_server_starts(self, server):
        assert server.port is not None
        assert server.port > 0

    def test_a_records(self, server):
        resp = query(server, "web.lan")
        assert resp.header.qr
        assert resp.header.rcode == RCode.NOERROR
        assert [rr.data for rr in resp.answers] == [A("192.168.0.10"), A("192.168.0.11")]
        assert all(rr.ttl == 300 for rr in resp.answers)

    def test_aaaa_record(self, server):
        resp = query(server, "ipv6.lan", Type.AAAA)
        assert resp.answers[0].data == AAAA("fd00::10")

    def test_cname_then_a(self, server):
        resp = query(server, "api.lan")
        assert resp.answers[0].data == CNAME("web.lan")
        assert resp.answers[1].data == A("192.168.0.10")

    def test_compressed_upstream_reply(self, server):
        resp = query(server, "www.northeastern.edu")
        assert resp.answers[0].name == "www.northeastern.edu"
        assert resp.answers[0].data == A("155.33.17.68")
        assert resp.answers[0].ttl == 600

    def test_nxdomain_passed_through(self, server):
        resp = query(server, "ghost.lan")
        assert resp.header.rcode == RCode.NXDOMAIN
        assert resp.answers == []

    def test_msg_id_echoed(self, server):
        resp = query(server, "web.lan", msg_id=12345)
        assert resp.header.id == 12345

    def test_upstream_sees_query(self, server, upstream):
        query(server, "ipv6.lan", Type.AAAA, msg_id=777)
        seen = [q for q in upstream.received if q.header.id == 777]
        assert seen
        assert seen[-1].questions[0].q_type == Type.AAAA
        assert seen[-1].header.rd


class TestIntegrationFailures:

    def test_upstream_timeout_gives_servfail(self, server):
        resp = query(server, "silent.lan", msg_id=4242)
        assert resp.header.id == 4242
        assert resp.header.rcode == RCode.SERVFAIL
        assert resp.questions[0].q_name == "silent.lan"

    def test_garbage_upstream_reply_gives_servfail(self, server):
        resp = query(server, "garbage.lan")
        assert resp.header.rcode == RCode.SERVFAIL

    def test_malformed_query_dropped(self, server):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.settimeout(0.5)
            s.sendto(b"\x00\x01\x02", (server.host, server.port))
            with pytest.raises(socket.timeout):
                s.recvfrom(4096)
        # still serving afterwards
        assert query(server, "web.lan").answers


class TestIntegrationSinkhole:

    def test_a_answers_rewritten(self, sinkhole_server):
        resp = query(sinkhole_server, "web.lan")
        assert [rr.data for rr in resp.answers] == [A("0.0.0.0"), A("0.0.0.0")]

    def test_other_answers_untouched(self, sinkhole_server):
        resp = query(sinkhole_server, "api.lan")
        assert resp.answers[0].data == CNAME("web.lan")
        assert resp.answers[1].data == A("0.0.0.0")

    def test_aaaa_untouched(self, sinkhole_server):
        resp = query(sinkhole_server, "ipv6.lan", Type.AAAA)
        assert resp.answers[0].data == AAAA("fd00::10")


class TestIntegrationConcurrency:

    def test_concurrent_queries(self, server):
        """Fire multiple queries concurrently from different threads."""
        import concurrent.futures
        queries = [
            ("web.lan",   Type.A),
            ("ipv6.lan",  Type.AAAA),
            ("api.lan",   Type.A),
            ("ghost.lan", Type.A),
        ]

        def run(args):
            i, (name, q_type) = args
            return i, send_udp_query(server.host, server.port, name, q_type, msg_id=1000 + i)

        with concurrent.futures.ThreadPoolExecutor(max_workers=4) as ex:
            results = list(ex.map(run, enumerate(queries * 3)))   # 12 total queries

        assert len(results) == 12
        for i, r in results:
            assert r.header.qr
            assert r.header.id == 1000 + i

    def test_rapid_sequential_queries(self, server):
        """Send 50 queries in rapid succession."""
        for i in range(50):
            resp = query(server, "web.lan", msg_id=i)
            assert resp.header.id == i
