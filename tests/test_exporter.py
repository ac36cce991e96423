"""
CSV / PDF report export tests.
"""

import csv
import io

from analyzer import analyze
from exporter import to_csv, to_pdf
from quality import summarize
from conftest import sip


def read_rows(data: bytes):
    return list(csv.reader(io.StringIO(data.decode("utf-8"))))


class TestCsvExport:

    def test_sections_and_timing(self, connected_call):
        rows = read_rows(to_csv(analyze(connected_call)))

        assert ["=== CALL TIMING ==="] in rows
        assert ["Post-Dial Delay", "1000ms"] in rows
        assert ["Setup Time", "1400ms"] in rows
        assert ["Total Duration", "60020ms"] in rows
        assert ["Connected", "Yes"] in rows
        assert ["=== ISSUES ==="] not in rows

    def test_call_flow_rows(self, connected_call):
        rows = read_rows(to_csv(analyze(connected_call)))

        header = rows.index(["Time", "Message", "From", "To", "Protocol", "Delta (ms)"])
        first = rows[header + 1]
        assert first[1] == "INVITE"
        assert first[2] == "192.168.1.100:5060"
        assert rows[header + 3][1] == "180 Ringing"

    def test_failed_call_with_quality(self):
        analysis = analyze([sip("INVITE", 0), sip("503", 200, "Service Unavailable")])
        quality = summarize([{"mos": 3.1, "rtt": 120}])

        rows = read_rows(to_csv(analysis, quality))

        assert ["Post-Dial Delay", "N/A"] in rows
        assert ["Final Error Response", "503 Service Unavailable"] in rows
        assert ["=== RTCP QUALITY ==="] in rows
        assert ["Jitter (ms)", "N/A", "N/A", "N/A", "0"] in rows
        issues = rows[rows.index(["=== ISSUES ==="]) + 1:]
        assert issues[0] == ["Call failed: 503 Service Unavailable"]
        assert issues[1][0].startswith("Low MOS")

    def test_empty_trace_exports(self):
        rows = read_rows(to_csv(analyze([])))

        assert ["Total Duration", "0ms"] in rows


class TestPdfExport:

    def test_produces_pdf_bytes(self, connected_call):
        quality = summarize([{"mos": 3.0, "jitter": 45}])

        data = to_pdf(analyze(connected_call), quality)

        assert data.startswith(b"%PDF")
        assert len(data) > 1000

    def test_empty_trace_produces_pdf(self):
        assert to_pdf(analyze([])).startswith(b"%PDF")
