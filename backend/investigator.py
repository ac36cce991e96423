"""
Investigation layer: fetch raw records, run the reducers, merge findings.

Sub-fetch failures are recorded on the affected section so one unavailable
endpoint never aborts the whole investigation.
"""

from typing import Any, Dict, List, Optional

from analyzer import analyze
from client import PlatformClient, validate_callid
from errors import InvalidInput, PlatformError
from logging_config import get_logger
from models import TraceAnalysis, QualitySummary, NO_QUALITY_ISSUES
from quality import summarize

TRACE_SUGGESTIONS = [
    "Verify the Call-ID is correct (check for typos)",
    "Traces are retained for 7 days only - call may be too old",
    "Call may not have reached the platform",
    "Search the call logs by phone number or IP to find the right Call-ID",
]

log = get_logger(__name__)


def get_sip_trace(client: PlatformClient, callid: str, callidb: Optional[str] = None) -> Dict[str, Any]:
    callid = validate_callid(callid)
    messages = client.get_sip_trace(callid, callidb)
    if not messages:
        return {
            "success": False,
            "callid": callid,
            "trace_available": False,
            "message": "No SIP trace data found for this Call-ID",
            "suggestions": TRACE_SUGGESTIONS,
        }
    return {
        "success": True,
        "callid": callid,
        "trace_available": True,
        "analysis": analyze(messages).model_dump(by_alias=True),
        "raw_message_count": len(messages),
    }


def get_call_quality(client: PlatformClient, callid: str) -> Dict[str, Any]:
    callid = validate_callid(callid)
    summary = summarize(client.get_rtcp_quality(callid))
    result = {
        "success": True,
        "callid": callid,
        "has_rtcp": summary is not None,
        "quality": summary.model_dump() if summary else None,
    }
    if summary is None:
        result["message"] = "No RTCP data - RTCP may not have been enabled on both endpoints"
    return result


def investigate_call(client: PlatformClient, callid: str, callidb: Optional[str] = None) -> Dict[str, Any]:
    """Trace + class 5 + RTCP in one report with a merged issue list."""
    callid = validate_callid(callid)
    log.info("investigation_started", callid=callid)

    trace_analysis: Optional[TraceAnalysis] = None
    summary: Optional[QualitySummary] = None

    trace: Dict[str, Any] = {"available": False}
    try:
        messages = client.get_sip_trace(callid, callidb)
        trace_analysis = analyze(messages)
        trace.update(available=bool(messages), raw_message_count=len(messages),
                     analysis=trace_analysis.model_dump(by_alias=True))
    except (PlatformError, InvalidInput) as e:
        log.warning("trace_fetch_failed", callid=callid, error=str(e))
        trace["error"] = str(e)

    class5: Dict[str, Any] = {"available": False}
    try:
        logs = client.get_class5_logs(callid)
        class5.update(available=bool(logs), log_count=len(logs), logs=logs)
    except PlatformError as e:
        log.warning("class5_fetch_failed", callid=callid, error=str(e))
        class5["error"] = str(e)

    rtcp: Dict[str, Any] = {"available": False}
    try:
        summary = summarize(client.get_rtcp_quality(callid))
        rtcp.update(available=summary is not None,
                    quality=summary.model_dump() if summary else None)
    except (PlatformError, InvalidInput) as e:
        log.warning("rtcp_fetch_failed", callid=callid, error=str(e))
        rtcp["error"] = str(e)

    call_type = "Class 5" if class5["available"] else "Class 4"
    issues = merge_issues(trace_analysis, summary)

    log.info("investigation_finished", callid=callid, call_type=call_type, issues=len(issues))
    return {
        "success": True,
        "callid": callid,
        "call_type": call_type,
        "trace": trace,
        "class5": class5,
        "rtcp": rtcp,
        "issues": issues,
        "debug_summary": build_debug_summary(call_type, trace_analysis, summary, issues),
    }


def merge_issues(trace: Optional[TraceAnalysis], quality: Optional[QualitySummary]) -> List[str]:
    issues = []
    if trace is not None:
        issues.extend(trace.issues)
    if quality is not None:
        issues.extend(i for i in quality.issues if i != NO_QUALITY_ISSUES)
    return issues


def build_debug_summary(call_type: str, trace: Optional[TraceAnalysis],
                        quality: Optional[QualitySummary], issues: List[str]) -> str:
    lines = [f"Call type: {call_type}"]

    if trace is None or not trace.has_data:
        lines.append("Connection: no SIP trace data")
    elif trace.call_connected:
        status = "connected, terminated with BYE" if trace.call_terminated else "connected"
        lines.append(f"Connection: {status}")
    elif trace.final_response:
        fr = trace.final_response
        lines.append(f"Connection: failed ({fr.code} {fr.reason})".replace(" )", ")"))
    else:
        lines.append("Connection: no final response")

    if trace is not None and trace.has_data:
        if trace.setup_time_ms is not None:
            lines.append(f"Setup time: {trace.setup_time_ms}ms")
        if trace.pdd_ms is not None:
            lines.append(f"Post-dial delay: {trace.pdd_ms}ms")
        lines.append(f"Codecs: {', '.join(trace.codecs) if trace.codecs else 'none negotiated'}")

    if quality is not None:
        lines.append(f"Quality: {quality.overall_quality} ({quality.sample_count} RTCP samples)")
    else:
        lines.append("Quality: no RTCP data")

    if issues:
        lines.append("Issues:")
        lines.extend(f"  {n}. {issue}" for n, issue in enumerate(issues, 1))
    else:
        lines.append("No issues detected")
    return "\n".join(lines)
