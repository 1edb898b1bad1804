#!/usr/bin/env python3
"""
contractsync FastAPI Server
Provides analysis and code fixes to editor integrations
"""
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from contractsync.core.analyzer import analyze
from contractsync.core.config import ContractSettings
from contractsync.core.document import Document
from contractsync.core.synthesizer import fix_all, fix_at


VERSION = "0.1.0"


# ============================================================================
# Request/Response Models
# ============================================================================

class AnalyzeRequest(BaseModel):
    source: str
    settings: Optional[ContractSettings] = None


class SpanModel(BaseModel):
    start_line: int
    start_column: int
    end_line: int
    end_column: int


class FindingModel(BaseModel):
    kind: str
    subject: str
    member: str
    message: str
    span: SpanModel


class AnalyzeResponse(BaseModel):
    findings: List[FindingModel] = []


class FixRequest(BaseModel):
    source: str
    line: int = Field(ge=1)
    column: int = Field(ge=0)
    settings: Optional[ContractSettings] = None


class FixAllRequest(BaseModel):
    source: str
    settings: Optional[ContractSettings] = None


class FixResponse(BaseModel):
    source: str
    changed: bool
    remaining: List[FindingModel] = []


class HealthResponse(BaseModel):
    status: str
    version: str


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="contractsync API",
    description="Contract statements for NotNull annotations",
    version=VERSION
)

# Enable CORS for editor extensions
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _document(source: str, settings: Optional[ContractSettings]) -> Document:
    try:
        return Document.from_source(source, settings)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _findings(document: Document) -> List[FindingModel]:
    return [FindingModel(**f.to_dict()) for f in analyze(document)]


def _fix_response(original: Document, source: str) -> FixResponse:
    fixed = Document.from_source(source, original.settings)
    return FixResponse(
        source=source,
        changed=source != original.code,
        remaining=_findings(fixed)
    )


# ============================================================================
# Endpoints
# ============================================================================

# LibCST work is CPU-bound: plain functions run in the threadpool, off the event loop

@app.get("/", response_model=HealthResponse)
def health():
    """Health check endpoint"""
    return {"status": "ok", "version": VERSION}


@app.post("/api/analyze", response_model=AnalyzeResponse)
def analyze_source(request: AnalyzeRequest):
    """
    Report NotNull annotations without contract statements.

    Example:
        POST /api/analyze
        {
            "source": "def f(a: NotNull[object]):\\n    return a\\n"
        }
    """
    document = _document(request.source, request.settings)
    return {"findings": _findings(document)}


@app.post("/api/fix", response_model=FixResponse)
def fix(request: FixRequest):
    """
    Apply the fix for the finding at a position (1-based line, 0-based
    column) as reported by /api/analyze.
    """
    document = _document(request.source, request.settings)
    module = fix_at(document, request.line, request.column)
    if module is None:
        raise HTTPException(
            status_code=404,
            detail=f"No finding at {request.line}:{request.column}"
        )
    return _fix_response(document, module.code)


@app.post("/api/fix-all", response_model=FixResponse)
def fix_everything(request: FixAllRequest):
    """Apply the fixes for all findings of the source"""
    document = _document(request.source, request.settings)
    module = fix_all(document)
    return _fix_response(document, module.code)


# ============================================================================
# Run Server
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    print("=" * 60)
    print("contractsync API Server")
    print("=" * 60)
    print("Starting server on http://localhost:8000")
    print("API docs: http://localhost:8000/docs")
    print("=" * 60)

    uvicorn.run(app, host="0.0.0.0", port=8000)
