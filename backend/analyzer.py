from collections import Counter
from typing import List, Optional

from logging_config import get_logger
from models import (SipMessage, TraceAnalysis, CallFlowEntry, FinalResponse,
                    NO_TRACE_DATA, coerce_records)
from parser import (status_code, flow_label, socket, date_text, parse_timestamp, elapsed_ms,
                    has_nat_marker, anyedge_host, sdp_codecs)

PDD_WARNING_MS = 5000
RING_CODES     = (180, 183)
AUTH_CODES     = (401, 407)

log = get_logger(__name__)


def analyze(messages) -> TraceAnalysis:
    """Reduce one call's ordered SIP messages into a ``TraceAnalysis``.

    Messages are taken in the order given; arrival order is the call's
    chronology and is never re-sorted. A message whose ``date`` does not
    parse stays in the call flow but never anchors INVITE, ring or connect
    timing.
    """
    msgs: List[SipMessage] = coerce_records(messages, SipMessage, "messages")
    if not msgs:
        return TraceAnalysis(message_count=0, error=NO_TRACE_DATA)

    first, last = msgs[0], msgs[-1]
    call_flow: List[CallFlowEntry] = []
    protocols, participants, codecs = set(), set(), set()
    tally = Counter()

    invite_ts = ring_ts = connect_ts = None
    pdd_ms = setup_ms = None
    connected = terminated = auth = nat = False
    final: Optional[FinalResponse] = None
    edge_host: Optional[str] = None

    for msg in msgs:
        call_flow.append(_flow_entry(msg))

        ts = parse_timestamp(msg.date)
        if ts is None:
            log.warning("malformed_timestamp", callid=msg.callid,
                        message_id=msg.id, date=msg.date)

        if msg.protocol:
            protocols.add(msg.protocol)
        participants.add(socket(msg.source_ip, msg.source_port))
        participants.add(socket(msg.destination_ip, msg.destination_port))
        tally[(msg.method, msg.source_ip, msg.destination_ip)] += 1

        code = status_code(msg.method)

        # first-match latches, only from messages with a usable timestamp
        if msg.method == "INVITE" and invite_ts is None and ts:
            invite_ts = ts
        if code in RING_CODES and ring_ts is None and invite_ts and ts:
            ring_ts = ts
            pdd_ms  = elapsed_ms(invite_ts, ring_ts)
        if code == 200 and connect_ts is None and invite_ts and ts:
            connect_ts = ts
            connected  = True
            setup_ms   = elapsed_ms(invite_ts, connect_ts)

        # sticky flags
        if code in AUTH_CODES:
            auth = True
        if msg.method == "BYE":
            terminated = True
        if has_nat_marker(msg.msg):
            nat = True

        # last failure wins
        if code is not None and code >= 400:
            final = FinalResponse(code=code, reason=msg.reply_reason or "")

        if edge_host is None:
            edge_host = anyedge_host(msg.msg)
        codecs.update(sdp_codecs(msg.msg))

    start_ts, end_ts = parse_timestamp(first.date), parse_timestamp(last.date)
    duration = elapsed_ms(start_ts, end_ts) if start_ts and end_ts else 0

    issues = _issues(pdd_ms, connected, final, tally, nat)
    log.debug("trace_analyzed", callid=first.callid, message_count=len(msgs),
              connected=connected, issues=len(issues))

    return TraceAnalysis(
        message_count   = len(msgs),
        call_id         = first.callid or None,
        from_user       = first.from_user or None,
        to_user         = first.to_user or None,
        start_time      = date_text(first.date),
        end_time        = date_text(last.date),
        duration_ms     = duration,
        call_connected  = connected,
        call_terminated = terminated,
        final_response  = final,
        pdd_ms          = pdd_ms,
        setup_time_ms   = setup_ms,
        auth_required   = auth,
        nat_detected    = nat,
        anyedge_host    = edge_host,
        protocols_used  = sorted(protocols),
        participants    = sorted(participants),
        codecs          = sorted(codecs),
        call_flow       = call_flow,
        issues          = issues,
    )


def retransmissions(messages) -> dict:
    """Copies per ``(method, source_ip, destination_ip)`` for keys seen more than once."""
    msgs = coerce_records(messages, SipMessage, "messages")
    tally = Counter((m.method, m.source_ip, m.destination_ip) for m in msgs)
    return {k: n for k, n in tally.items() if n > 1}


def _flow_entry(msg: SipMessage) -> CallFlowEntry:
    return CallFlowEntry(
        time        = date_text(msg.date),
        label       = flow_label(msg.method, msg.reply_reason),
        source      = socket(msg.source_ip, msg.source_port),
        destination = socket(msg.destination_ip, msg.destination_port),
        from_user   = msg.from_user,
        to_user     = msg.to_user,
        protocol    = msg.protocol,
        delta_ms    = round(msg.delta / 1000, 1) if msg.delta else 0,
    )


def _issues(pdd_ms, connected, final, tally, nat) -> List[str]:
    issues = []
    if pdd_ms is not None and pdd_ms > PDD_WARNING_MS:
        issues.append(f"High Post-Dial Delay: {pdd_ms}ms (>5s)")
    if not connected and final:
        issues.append(f"Call failed: {final.code} {final.reason}".rstrip())
    for (method, _, _), count in tally.items():
        if count > 1 and method.startswith("INVITE"):
            issues.append(f"INVITE retransmission detected ({count} copies) - possible network issue")
    if nat:
        issues.append("NAT detected - verify media path and Far-End NAT Traversal configuration")
    return issues
