from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_serializer
from typing import Any, Optional, List

from errors import InvalidInput

NO_TRACE_DATA = "No trace data available"
NO_QUALITY_ISSUES = "No quality issues detected"


def coerce_records(records, model, what: str) -> list:
    """Validate a list/tuple of records (models or mappings) into ``model`` instances."""
    if not isinstance(records, (list, tuple)):
        raise InvalidInput(f"{what} must be a list, got {type(records).__name__}")
    result = []
    for i, rec in enumerate(records):
        if isinstance(rec, model):
            result.append(rec)
            continue
        try:
            result.append(model.model_validate(rec))
        except ValidationError as e:
            raise InvalidInput(f"{what}[{i}] is not a valid {model.__name__} "
                               f"({e.error_count()} error(s))") from e
    return result


class SipMessage(BaseModel):
    id: Optional[int] = None
    date: Any = None
    micro_ts: Optional[int] = None
    callid: Optional[str] = None
    method: str
    reply_reason: Optional[str] = None
    ruri: Optional[str] = None
    ruri_user: Optional[str] = None
    from_user: Optional[str] = None
    to_user: Optional[str] = None
    user_agent: Optional[str] = None
    source_ip: Optional[str] = None
    source_port: Optional[int] = None
    destination_ip: Optional[str] = None
    destination_port: Optional[int] = None
    protocol: Optional[str] = None
    msg: Optional[str] = None
    delta: Optional[float] = None

class RtcpMetric(BaseModel):
    mos: Optional[float] = None
    jitter: Optional[float] = None
    packet_loss: Optional[float] = None
    rtt: Optional[float] = None

class CallFlowEntry(BaseModel):
    # serialized as "from"/"to"
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    time: Optional[str] = None
    label: str
    source: str = Field(alias="from")
    destination: str = Field(alias="to")
    from_user: Optional[str] = None
    to_user: Optional[str] = None
    protocol: Optional[str] = None
    delta_ms: float = 0

class FinalResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: int
    reason: str = ""

class TraceAnalysis(BaseModel):
    """Diagnostic summary of one call's SIP trace.

    An empty trace yields ``message_count == 0`` with ``error`` set to
    ``NO_TRACE_DATA`` and serializes as just those two keys.
    """
    model_config = ConfigDict(frozen=True)

    message_count: int = 0
    error: Optional[str] = None
    call_id: Optional[str] = None
    from_user: Optional[str] = None
    to_user: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_ms: int = 0
    call_connected: bool = False
    call_terminated: bool = False
    final_response: Optional[FinalResponse] = None
    pdd_ms: Optional[int] = None
    setup_time_ms: Optional[int] = None
    auth_required: bool = False
    nat_detected: bool = False
    anyedge_host: Optional[str] = None
    protocols_used: List[str] = []
    participants: List[str] = []
    codecs: List[str] = []
    call_flow: List[CallFlowEntry] = []
    issues: List[str] = []

    @property
    def has_data(self) -> bool:
        return self.message_count > 0

    @model_serializer(mode="wrap")
    def _serialize(self, handler):
        data = handler(self)
        if not self.has_data:
            return {"message_count": self.message_count, "error": self.error}
        return data

class MetricStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    avg: float
    samples: int

class QualitySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    mos: Optional[MetricStats] = None
    jitter: Optional[MetricStats] = None
    packet_loss: Optional[MetricStats] = None
    rtt: Optional[MetricStats] = None
    overall_quality: str
    issues: List[str] = []
    sample_count: int = 0

class TraceRequest(BaseModel):
    messages: List[SipMessage] = []

class QualityRequest(BaseModel):
    metrics: List[RtcpMetric] = []

class ExportRequest(BaseModel):
    messages: List[SipMessage] = []
    metrics: Optional[List[RtcpMetric]] = None
