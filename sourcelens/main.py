"""SourceLens FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from sourcelens.config import settings
from sourcelens.errors import (
    ErrorKind,
    ErrorResponse,
    InvalidTask,
    MalformedStructuredResponse,
    ProviderUnavailable,
    to_error_response,
)
from sourcelens.models.task import (
    MAX_TOPICS,
    GenerationTask,
    SectionedAnalysisParams,
    SourceMetadata,
    SpanHighlightParams,
    TaskParams,
    TopicDistributionParams,
)
from sourcelens.orchestrator.pipeline import AnalysisPipeline, build_pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.state.pipeline = build_pipeline(settings)
    logger.info("SourceLens ready (default model %s)", settings.default_model_id)
    yield


app = FastAPI(
    title="SourceLens",
    description="Structured source analysis over multiple LLM providers",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_pipeline(request: Request) -> AnalysisPipeline:
    return request.app.state.pipeline


# --- Request / Response models ---


class MetadataModel(BaseModel):
    author: str = ""
    date: str = ""
    research_goals: str = ""
    additional_info: str = ""


class SectionedAnalysisRequest(BaseModel):
    source_text: str = Field(min_length=1)
    metadata: MetadataModel = MetadataModel()
    perspective: str = ""
    model_id: str | None = None


class HighlightRequest(BaseModel):
    source_text: str = Field(min_length=1)
    query: str = Field(min_length=1)
    num_segments: int = Field(default=5, ge=1)
    model_id: str | None = None


class TopicDistributionRequest(BaseModel):
    source_text: str = Field(min_length=1)
    topics: list[str] = Field(min_length=1, max_length=MAX_TOPICS)
    query: str = ""
    model_id: str | None = None


class AnalysisEnvelope(BaseModel):
    structured_result: dict
    raw_prompt: str
    raw_response: str
    model_used: str
    provider_used: str
    fell_back: bool
    truncated: bool


class ModelInfo(BaseModel):
    id: str
    name: str
    provider: str
    description: str


class ModelListResponse(BaseModel):
    default_model_id: str
    models: list[ModelInfo]


# --- Error handlers ---


@app.exception_handler(ProviderUnavailable)
@app.exception_handler(MalformedStructuredResponse)
async def pipeline_error_handler(request: Request, exc: ProviderUnavailable | MalformedStructuredResponse):
    return JSONResponse(status_code=502, content=to_error_response(exc).model_dump(mode="json"))


@app.exception_handler(InvalidTask)
async def invalid_task_handler(request: Request, exc: InvalidTask):
    return JSONResponse(status_code=422, content=to_error_response(exc).model_dump(mode="json"))


@app.exception_handler(asyncio.TimeoutError)
async def timeout_handler(request: Request, exc: asyncio.TimeoutError):
    body = ErrorResponse(
        error_kind=ErrorKind.PROVIDER_UNAVAILABLE,
        detail=f"Generation did not finish within {settings.pipeline_timeout:.0f}s",
    )
    return JSONResponse(status_code=504, content=body.model_dump(mode="json"))


# --- Routes ---


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/models", response_model=ModelListResponse)
async def list_models(pipeline: AnalysisPipeline = Depends(get_pipeline)):
    registry = pipeline.registry
    return ModelListResponse(
        default_model_id=registry.default.id,
        models=[
            ModelInfo(id=d.id, name=d.name, provider=d.provider.value, description=d.description)
            for d in registry.descriptors.values()
        ],
    )


@app.post("/api/sectioned-analysis", response_model=AnalysisEnvelope)
async def sectioned_analysis(
    req: SectionedAnalysisRequest, pipeline: AnalysisPipeline = Depends(get_pipeline)
):
    """Six-part analysis of a primary source, with linked citations."""
    params = SectionedAnalysisParams(
        metadata=SourceMetadata(**req.metadata.model_dump()),
        perspective=req.perspective,
    )
    return await _run(pipeline, req.source_text, params, req.model_id)


@app.post("/api/highlight-segments", response_model=AnalysisEnvelope)
async def highlight_segments(
    req: HighlightRequest, pipeline: AnalysisPipeline = Depends(get_pipeline)
):
    """Scored excerpts of the source that answer a query."""
    params = SpanHighlightParams(query=req.query, num_segments=req.num_segments)
    return await _run(pipeline, req.source_text, params, req.model_id)


@app.post("/api/topic-distribution", response_model=AnalysisEnvelope)
async def topic_distribution(
    req: TopicDistributionRequest, pipeline: AnalysisPipeline = Depends(get_pipeline)
):
    """Where each requested topic occurs across the document."""
    params = TopicDistributionParams(topics=req.topics, query=req.query)
    return await _run(pipeline, req.source_text, params, req.model_id)


async def _run(
    pipeline: AnalysisPipeline, source_text: str, params: TaskParams, model_id: str | None
) -> AnalysisEnvelope:
    task = GenerationTask(source_text=source_text, params=params, model_id=model_id)
    outcome = await pipeline.run(task, timeout=settings.pipeline_timeout)
    generation = outcome.generation
    return AnalysisEnvelope(
        structured_result=outcome.structured_result.to_dict(),
        raw_prompt=generation.raw_prompt,
        raw_response=generation.raw_response_text,
        model_used=generation.model_used,
        provider_used=generation.provider_used,
        fell_back=generation.fell_back,
        truncated=outcome.truncated,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("sourcelens.main:app", host=settings.host, port=settings.port)
