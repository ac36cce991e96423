import re
from datetime import datetime, timezone
from typing import List, Optional

NAT_MARKER  = "X-CX-NAT"
STATUS_RE   = re.compile(r"^\s*(\d+)")
ANYEDGE_RE  = re.compile(r"X-AnyEdge-Host:[ \t]*([^\r\n]+)", re.IGNORECASE)
RTPMAP_RE   = re.compile(r"a=rtpmap:\d+ ([^\r\n/]+)")
FRACTION_RE = re.compile(r"\.(\d+)")


def status_code(method: Optional[str]) -> Optional[int]:
    """Numeric response code carried in ``method``, or None for requests."""
    m = STATUS_RE.match(method or "")
    return int(m.group(1)) if m else None


def flow_label(method: str, reply_reason: Optional[str]) -> str:
    return f"{method} {reply_reason}" if reply_reason else method


def socket(ip, port) -> str:
    return f"{ip}:{port}"


def date_text(value) -> Optional[str]:
    return None if value is None else str(value)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO-8601 capture timestamp; naive values are taken as UTC.

    Anything that is not a non-empty string (None, epoch numbers) gives None.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat on 3.10 takes only 3 or 6 fractional digits
    text = FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def elapsed_ms(start: datetime, end: datetime) -> int:
    return int(round((end - start).total_seconds() * 1000))


def has_nat_marker(raw: Optional[str]) -> bool:
    return bool(raw) and NAT_MARKER in raw


def anyedge_host(raw: Optional[str]) -> Optional[str]:
    m = ANYEDGE_RE.search(raw or "")
    if not m:
        return None
    return m.group(1).strip() or None


def sdp_codecs(raw: Optional[str]) -> List[str]:
    """Codec names from every ``a=rtpmap:<pt> <codec>/<rate>`` line."""
    return [c.strip() for c in RTPMAP_RE.findall(raw or "") if c.strip()]
