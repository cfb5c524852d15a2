"""FastAPI application exposing ingestion and querying as a REST API."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from doc_rag.config import settings
from doc_rag.exceptions import QueryError, RegistryError
from doc_rag.ingestion.models import BatchReport, BatchStatus, UploadedFile
from doc_rag.ingestion.orchestrator import IngestionOrchestrator
from doc_rag.query.assembler import QueryAssembler
from doc_rag.registry import DocumentRegistryService, InMemoryRegistryStore, RegistryEntry, SqliteRegistryStore
from doc_rag.retrieval.models import SearchResponse

logger = logging.getLogger(__name__)


# ── Service wiring ────────────────────────────────────────────────────
@dataclass
class Services:
    orchestrator: IngestionOrchestrator
    assembler: QueryAssembler
    registry: DocumentRegistryService


@lru_cache(maxsize=1)
def get_services() -> Services:
    """Build the production object graph once (Chroma, registry store, ChatOpenAI)."""
    from doc_rag.query.llm import ChatAnswerGenerator
    from doc_rag.retrieval.chroma_store import ChromaVectorIndex

    index = ChromaVectorIndex()
    store = SqliteRegistryStore(settings.registry_db_path) if settings.registry_db_path else InMemoryRegistryStore()
    registry = DocumentRegistryService(store, index)
    return Services(
        orchestrator=IngestionOrchestrator(index, registry),
        assembler=QueryAssembler(index, ChatAnswerGenerator()),
        registry=registry,
    )


def get_orchestrator() -> IngestionOrchestrator:
    return get_services().orchestrator


def get_assembler() -> QueryAssembler:
    return get_services().assembler


def get_registry() -> DocumentRegistryService:
    return get_services().registry


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(level=settings.log_level)
    yield


app = FastAPI(
    title="Document RAG API",
    version="0.1.0",
    description="Upload documents into a deduplicated vector index and ask grounded questions.",
    lifespan=lifespan,
)


# ── Request / Response schemas ────────────────────────────────────────
class QueryRequest(BaseModel):
    query: str = ""
    top_k: int | None = None


class QueryResponse(BaseModel):
    query: str | None = None
    answer: str | None = None
    top_k: int | None = None
    response_time_ms: int | None = None
    error: str | None = None


class SearchRequest(BaseModel):
    query: str = ""
    top_k: int | None = None
    similarity_threshold: float | None = None


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}


@app.post("/api/documents/upload", response_model=BatchReport)
async def upload_documents(
    files: list[UploadFile] | None = File(default=None),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Ingest a batch of files; 400 when nothing could be ingested."""
    if not files:
        logger.warning("Upload request rejected: no files provided")
        report = BatchReport.from_outcomes([])
        return JSONResponse(status_code=400, content=report.model_dump(mode="json"))

    # One byte past the limit is enough for the orchestrator to reject the file.
    read_limit = orchestrator.max_file_size + 1
    uploads = [
        UploadedFile(filename=f.filename, content=await f.read(read_limit), content_type=f.content_type)
        for f in files
    ]
    report = await run_in_threadpool(orchestrator.ingest, uploads)

    status_code = 400 if report.status is BatchStatus.FAILED else 200
    return JSONResponse(status_code=status_code, content=report.model_dump(mode="json"))


@app.post("/api/documents/query", response_model=QueryResponse)
def query(request: QueryRequest, assembler: QueryAssembler = Depends(get_assembler)) -> JSONResponse:
    """Answer a question from the knowledge base."""
    if not request.query.strip():
        return JSONResponse(status_code=400, content=QueryResponse(error="Query cannot be empty").model_dump())

    started = time.perf_counter()
    try:
        answer = assembler.answer(request.query, request.top_k)
    except QueryError as exc:
        logger.error("Query request failed: %s", exc)
        body = QueryResponse(query=request.query, error=f"Error processing query: {exc}")
        return JSONResponse(status_code=500, content=body.model_dump())

    body = QueryResponse(
        query=request.query,
        answer=answer,
        top_k=request.top_k,
        response_time_ms=int((time.perf_counter() - started) * 1000),
    )
    return JSONResponse(content=body.model_dump())


@app.post("/api/documents/search", response_model=SearchResponse)
def search(request: SearchRequest, assembler: QueryAssembler = Depends(get_assembler)) -> SearchResponse:
    """Raw similarity search without answer generation."""
    if not request.query.strip():
        raise HTTPException(status_code=400, detail="Query cannot be empty")
    try:
        return assembler.search(request.query, request.top_k, request.similarity_threshold)
    except QueryError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.get("/api/documents", response_model=list[RegistryEntry])
def list_documents(registry: DocumentRegistryService = Depends(get_registry)) -> list[RegistryEntry]:
    return registry.list_entries()


@app.delete("/api/documents/{filename}")
def delete_document(
    filename: str,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> dict[str, str]:
    """Remove a document's segments and its registry entry."""
    try:
        deleted = orchestrator.delete_document(filename)
    except RegistryError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Unknown document: {filename}")
    return {"deleted": filename}
