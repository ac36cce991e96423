"""
Shared fixtures: SIP trace message and RTCP record builders.
"""

from datetime import datetime, timedelta, timezone

import pytest

BASE_TIME = datetime(2026, 2, 16, 10, 0, 0, tzinfo=timezone.utc)

CALLER = ("192.168.1.100", 5060)
SWITCH = ("10.0.0.1", 5060)

INVITE_SDP = (
    "INVITE sip:44123456789@sip.example.com SIP/2.0\r\n"
    "Content-Type: application/sdp\r\n\r\n"
    "v=0\r\n"
    "m=audio 10000 RTP/AVP 0 8 101\r\n"
    "a=rtpmap:0 PCMU/8000\r\n"
    "a=rtpmap:8 PCMA/8000\r\n"
    "a=rtpmap:101 telephone-event/8000\r\n"
)


def iso(offset_ms: float) -> str:
    ts = BASE_TIME + timedelta(milliseconds=offset_ms)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def sip(method, at_ms=0, reason="", src=CALLER, dst=SWITCH, msg=None, **extra):
    """Build one trace record the way the platform returns it."""
    record = {
        "id": extra.pop("id", 1),
        "date": iso(at_ms),
        "callid": "test-call-id-123@example.com",
        "method": method,
        "reply_reason": reason,
        "from_user": "44987654321",
        "to_user": "44123456789",
        "source_ip": src[0],
        "source_port": src[1],
        "destination_ip": dst[0],
        "destination_port": dst[1],
        "protocol": "UDP",
        "msg": msg if msg is not None else f"{method} sip:44123456789@sip.example.com SIP/2.0",
    }
    record.update(extra)
    return record


@pytest.fixture
def connected_call():
    """INVITE -> 100 -> 180 -> 200 -> ACK -> BYE -> 200, switch answering the caller."""
    return [
        sip("INVITE", 0, msg=INVITE_SDP),
        sip("100", 100, "Trying", src=SWITCH, dst=CALLER, delta=100000),
        sip("180", 1000, "Ringing", src=SWITCH, dst=CALLER, delta=900000),
        sip("200", 1400, "OK", src=SWITCH, dst=CALLER, delta=400000,
            msg="SIP/2.0 200 OK\r\n\r\nv=0\r\nm=audio 20000 RTP/AVP 8\r\na=rtpmap:8 PCMA/8000\r\n"),
        sip("ACK", 1450, delta=50000),
        sip("BYE", 60000, delta=58550000),
        sip("200", 60020, "OK", src=SWITCH, dst=CALLER, delta=20000),
    ]


@pytest.fixture
def rtcp_records():
    return [
        {"mos": 4.2, "jitter": 10, "packet_loss": 0.1, "rtt": 80},
        {"mos": 4.0, "jitter": 14, "packet_loss": 0.3, "rtt": 120},
        {"mos": 4.4, "jitter": None, "packet_loss": 0.2, "rtt": 100},
    ]


class StubClient:
    """Returns canned records; an Exception instance is raised instead."""

    def __init__(self, trace=None, class5=None, rtcp=None):
        self.trace = trace if trace is not None else []
        self.class5 = class5 if class5 is not None else []
        self.rtcp = rtcp if rtcp is not None else []
        self.calls = []

    def _answer(self, value):
        if isinstance(value, Exception):
            raise value
        return value

    def get_sip_trace(self, callid, callidb=None):
        self.calls.append(("trace", callid, callidb))
        return self._answer(self.trace)

    def get_class5_logs(self, callid):
        self.calls.append(("class5", callid))
        return self._answer(self.class5)

    def get_rtcp_quality(self, callid):
        self.calls.append(("rtcp", callid))
        return self._answer(self.rtcp)
