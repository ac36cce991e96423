from fastapi import FastAPI, UploadFile, File, HTTPException, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response, JSONResponse
from functools import lru_cache
from typing import Optional
import json
import os
import dotenv

dotenv.load_dotenv()

from analyzer import analyze
from client import PlatformClient
from config import Config, ConfigurationError
from errors import InvalidInput, PlatformError
from exporter import to_csv, to_pdf
from investigator import get_sip_trace, get_call_quality, investigate_call
from logging_config import configure_logging, get_logger
from models import TraceRequest, QualityRequest, ExportRequest, TraceAnalysis, QualitySummary
from quality import summarize

configure_logging(os.environ.get("LOG_LEVEL", "INFO"))
log = get_logger(__name__)

app = FastAPI(title="SIP Trace Analyzer API", version="1.0.0")
app.add_middleware(CORSMiddleware, allow_origins=["*"],
                   allow_credentials=True, allow_methods=["*"], allow_headers=["*"])


@lru_cache
def get_config() -> Config:
    return Config.from_env()

def get_client(config: Config = Depends(get_config)) -> PlatformClient:
    return PlatformClient(config)


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=400, content={"detail": str(exc)})

@app.exception_handler(PlatformError)
async def platform_error_handler(request: Request, exc: PlatformError):
    log.error("platform_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=502, content={"detail": str(exc)})

@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    log.error("configuration_error", error=str(exc))
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/analyze/trace", response_model=TraceAnalysis)
async def analyze_trace(req: TraceRequest):
    return analyze(req.messages)

@app.post("/analyze/quality", response_model=Optional[QualitySummary])
async def analyze_quality(req: QualityRequest):
    return summarize(req.metrics)

@app.post("/analyze/upload", response_model=TraceAnalysis)
async def analyze_upload(file: UploadFile = File(...)):
    raw = (await file.read()).decode("utf-8", errors="replace")
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise HTTPException(400, detail=f"Uploaded file is not valid JSON: {e}")
    if isinstance(data, dict) and "messages" in data:
        data = data["messages"]
    return analyze(data)

@app.get("/calls/search")
def search_calls(s: str = Query(...), client: PlatformClient = Depends(get_client)):
    calls = client.search_call_logs(s)
    return {"success": True, "search_term": s, "result_count": len(calls), "calls": calls}

@app.get("/calls/{callid}/trace")
def call_trace(callid: str, callidb: Optional[str] = None, client: PlatformClient = Depends(get_client)):
    return get_sip_trace(client, callid, callidb)

@app.get("/calls/{callid}/quality")
def call_quality(callid: str, client: PlatformClient = Depends(get_client)):
    return get_call_quality(client, callid)

@app.get("/calls/{callid}/investigate")
def call_investigate(callid: str, callidb: Optional[str] = None, client: PlatformClient = Depends(get_client)):
    return investigate_call(client, callid, callidb)

@app.post("/export/csv")
async def export_csv(req: ExportRequest):
    quality = summarize(req.metrics) if req.metrics else None
    return Response(content=to_csv(analyze(req.messages), quality), media_type="text/csv",
                    headers={"Content-Disposition": "attachment; filename=sip_trace_analysis.csv"})

@app.post("/export/pdf")
async def export_pdf(req: ExportRequest):
    quality = summarize(req.metrics) if req.metrics else None
    return Response(content=to_pdf(analyze(req.messages), quality), media_type="application/pdf",
                    headers={"Content-Disposition": "attachment; filename=sip_trace_analysis.pdf"})
