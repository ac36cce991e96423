import csv, io
from xml.sax.saxutils import escape
from typing import Optional
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.units import cm
from models import TraceAnalysis, QualitySummary, NO_QUALITY_ISSUES

METRIC_LABELS = [("mos","MOS"),("jitter","Jitter (ms)"),("packet_loss","Packet Loss (%)"),("rtt","RTT (ms)")]

def _ms(v) -> str:
    return f"{v}ms" if v is not None else "N/A"

def _final(a: TraceAnalysis) -> str:
    return f"{a.final_response.code} {a.final_response.reason}".strip() if a.final_response else "None"

def _timing_rows(a: TraceAnalysis):
    return [["Post-Dial Delay", _ms(a.pdd_ms)],
            ["Setup Time", _ms(a.setup_time_ms)],
            ["Total Duration", _ms(a.duration_ms)]]

def _summary_rows(a: TraceAnalysis):
    return [["Call-ID", a.call_id or ""], ["From", a.from_user or ""], ["To", a.to_user or ""],
            ["Start", a.start_time or ""], ["End", a.end_time or ""],
            ["Connected", "Yes" if a.call_connected else "No"],
            ["Terminated (BYE)", "Yes" if a.call_terminated else "No"],
            ["Final Error Response", _final(a)],
            ["Auth Challenge", "Yes" if a.auth_required else "No"],
            ["NAT Detected", "Yes" if a.nat_detected else "No"],
            ["AnyEdge Host", a.anyedge_host or "None"],
            ["Transports", ", ".join(a.protocols_used)]]

def _quality_rows(q: QualitySummary):
    rows = []
    for field, label in METRIC_LABELS:
        s = getattr(q, field)
        rows.append([label, s.min, s.max, s.avg, s.samples] if s else [label, "N/A", "N/A", "N/A", 0])
    return rows

def to_csv(data: TraceAnalysis, quality: Optional[QualitySummary] = None) -> bytes:
    buf = io.StringIO(); w = csv.writer(buf)
    w.writerow(["=== CALL TIMING ==="])
    for row in _timing_rows(data): w.writerow(row)
    w.writerow([]); w.writerow(["=== CALL SUMMARY ==="])
    for row in _summary_rows(data): w.writerow(row)
    w.writerow([]); w.writerow(["=== PARTICIPANTS ==="])
    for p in data.participants: w.writerow([p])
    w.writerow([]); w.writerow(["=== CALL FLOW ==="])
    w.writerow(["Time","Message","From","To","Protocol","Delta (ms)"])
    for e in data.call_flow: w.writerow([e.time or "",e.label,e.source,e.destination,e.protocol or "",e.delta_ms])
    w.writerow([]); w.writerow(["=== CODECS ==="])
    w.writerow([", ".join(data.codecs) or "None"])
    if quality:
        w.writerow([]); w.writerow(["=== RTCP QUALITY ==="])
        w.writerow(["Overall", quality.overall_quality, "Samples", quality.sample_count])
        w.writerow(["Metric","Min","Max","Avg","Samples"])
        for row in _quality_rows(quality): w.writerow(row)
    issues = _issues(data, quality)
    if issues:
        w.writerow([]); w.writerow(["=== ISSUES ==="])
        for i in issues: w.writerow([i])
    return buf.getvalue().encode("utf-8")

def to_pdf(data: TraceAnalysis, quality: Optional[QualitySummary] = None) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(A4),
                            leftMargin=1*cm, rightMargin=1*cm,
                            topMargin=1.5*cm, bottomMargin=1.5*cm)
    styles = getSampleStyleSheet()
    mono = ParagraphStyle("mono", fontName="Courier", fontSize=7, leading=10)
    story = []
    story.append(Paragraph("SIP Call Trace Analysis Report", styles["Heading1"]))
    story.append(Spacer(1, 0.3*cm))
    story.append(Paragraph("Call Timing", styles["Heading2"]))
    story.append(_tbl([["Metric","Value"]] + _timing_rows(data), col_widths=[8*cm,6*cm]))
    story.append(Spacer(1,0.5*cm))
    story.append(Paragraph("Call Summary", styles["Heading2"]))
    story.append(_tbl([["Field","Value"]] + _summary_rows(data), col_widths=[6*cm,22*cm]))
    story.append(Spacer(1,0.5*cm))
    story.append(Paragraph("Participants", styles["Heading2"]))
    story.append(_tbl([["Endpoint"]] + ([[p] for p in data.participants] or [["None"]]), col_widths=[10*cm]))
    story.append(Spacer(1,0.5*cm))
    story.append(Paragraph("Call Flow", styles["Heading2"]))
    rows = [["Time","Message","From","To","Proto","Delta (ms)"]]
    for e in data.call_flow:
        rows.append([Paragraph(escape(e.time or ""),mono),Paragraph(escape(e.label[:80]),mono),e.source,e.destination,e.protocol or "",e.delta_ms])
    story.append(_tbl(rows, col_widths=[5.5*cm,6*cm,5*cm,5*cm,2*cm,3*cm])); story.append(Spacer(1,0.5*cm))
    story.append(Paragraph(escape(f"Codecs: {', '.join(data.codecs) or 'None'}"), styles["Normal"]))
    story.append(Spacer(1,0.5*cm))
    if quality:
        story.append(Paragraph(f"RTCP Quality: {quality.overall_quality} ({quality.sample_count} samples)", styles["Heading2"]))
        story.append(_tbl([["Metric","Min","Max","Avg","Samples"]] + _quality_rows(quality)))
        story.append(Spacer(1,0.5*cm))
    issues = _issues(data, quality)
    if issues:
        story.append(Paragraph("Issues", styles["Heading2"]))
        for i in issues: story.append(Paragraph(f"• {escape(i)}", styles["Normal"]))
    doc.build(story)
    return buf.getvalue()

def _tbl(data, col_widths=None):
    t = Table(data, colWidths=col_widths, repeatRows=1)
    t.setStyle(TableStyle([
        ("BACKGROUND",(0,0),(-1,0),colors.HexColor("#1e3a5f")),
        ("TEXTCOLOR",(0,0),(-1,0),colors.white),
        ("FONTNAME",(0,0),(-1,0),"Helvetica-Bold"),
        ("FONTSIZE",(0,0),(-1,-1),8),
        ("ROWBACKGROUNDS",(0,1),(-1,-1),[colors.white,colors.HexColor("#f0f4f8")]),
        ("GRID",(0,0),(-1,-1),0.3,colors.HexColor("#cccccc")),
        ("VALIGN",(0,0),(-1,-1),"TOP"),
        ("LEFTPADDING",(0,0),(-1,-1),4),
        ("RIGHTPADDING",(0,0),(-1,-1),4),
    ]))
    return t

def _issues(data: TraceAnalysis, quality: Optional[QualitySummary]):
    extra = [i for i in quality.issues if i != NO_QUALITY_ISSUES] if quality else []
    return list(data.issues) + extra
