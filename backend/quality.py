from typing import List, Optional

from logging_config import get_logger
from models import RtcpMetric, MetricStats, QualitySummary, NO_QUALITY_ISSUES, coerce_records

METRICS = ("mos", "jitter", "packet_loss", "rtt")

MOS_MIN         = 3.5
JITTER_MAX_MS   = 30
PACKET_LOSS_MAX = 1
RTT_MAX_MS      = 300

log = get_logger(__name__)


def summarize(metrics) -> Optional[QualitySummary]:
    """Min/max/avg per RTCP metric plus a threshold verdict; None for no samples.

    Absent values are left out of a metric's statistics, never counted as zero.
    """
    records: List[RtcpMetric] = coerce_records(metrics, RtcpMetric, "metrics")
    if not records:
        return None

    stats = {name: _stats([getattr(r, name) for r in records]) for name in METRICS}
    issues = _issues(**stats)

    if not issues:
        quality = "good"
    elif len(issues) == 1:
        quality = "fair"
    else:
        quality = "poor"

    log.debug("rtcp_summarized", sample_count=len(records), overall_quality=quality)

    return QualitySummary(
        **stats,
        overall_quality = quality,
        issues          = issues or [NO_QUALITY_ISSUES],
        sample_count    = len(records),
    )


def _stats(values) -> Optional[MetricStats]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return MetricStats(
        min     = min(present),
        max     = max(present),
        avg     = round(sum(present) / len(present), 2),
        samples = len(present),
    )


def _issues(mos, jitter, packet_loss, rtt) -> List[str]:
    issues = []
    if mos is not None and mos.avg < MOS_MIN:
        issues.append(f"Low MOS score: {mos.avg} (<{MOS_MIN}) - poor audio quality")
    if jitter is not None and jitter.avg > JITTER_MAX_MS:
        issues.append(f"High jitter: {jitter.avg}ms (>{JITTER_MAX_MS}ms) - choppy audio likely")
    if packet_loss is not None and packet_loss.avg > PACKET_LOSS_MAX:
        issues.append(f"Packet loss: {packet_loss.avg}% (>{PACKET_LOSS_MAX}%) - audio gaps likely")
    if rtt is not None and rtt.avg > RTT_MAX_MS:
        issues.append(f"High RTT: {rtt.avg}ms (>{RTT_MAX_MS}ms) - noticeable delay")
    return issues
