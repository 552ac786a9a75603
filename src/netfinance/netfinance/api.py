"""FastAPI application for the network finance service."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .claude import NOT_CONFIGURED_MESSAGE, ClaudeClient
from .config import settings
from .demo import generate_demo_report
from .models import ExecutiveSummaryRequest, ExecutiveSummaryResponse, FinancialReport
from .observium_client import ObserviumClient
from .periods import DEFAULT_PERIOD, resolve_period
from .pipeline import FinancialPipeline

logger = structlog.get_logger(__name__)

# Global clients
observium_client: ObserviumClient | None = None
pipeline: FinancialPipeline | None = None
claude_client: ClaudeClient | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    global observium_client, pipeline, claude_client

    logger.info("starting_netfinance_service", data_source=settings.data_source)
    observium_client = ObserviumClient()
    pipeline = FinancialPipeline(observium_client, settings.data_source)
    claude_client = ClaudeClient()

    yield

    logger.info("shutting_down_netfinance_service")
    if observium_client:
        await observium_client.close()


app = FastAPI(
    title="Network Finance",
    description="Carrier cost, utilization and savings analysis from Observium data",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/ready")
async def ready() -> dict[str, str]:
    """Readiness check endpoint."""
    if not pipeline:
        raise HTTPException(503, "Service not initialized")
    return {"status": "ready", "dataSource": pipeline.strategy.value}


@app.get("/api/financial/overview", response_model=FinancialReport)
async def financial_overview(period: str = DEFAULT_PERIOD) -> FinancialReport:
    """Carrier, plaza and savings analysis for a period, demo data if upstream fails."""
    if not pipeline:
        raise HTTPException(503, "Service not initialized")

    try:
        return await pipeline.build_report(period)
    except Exception as e:
        logger.exception("financial_overview_failed", error=str(e))
        raise HTTPException(500, "Failed to generate financial report")


@app.get("/api/financial/demo", response_model=FinancialReport)
async def financial_demo(period: str = DEFAULT_PERIOD) -> FinancialReport:
    """Demo financial report."""
    try:
        return generate_demo_report(resolve_period(period))
    except Exception as e:
        logger.exception("demo_report_failed", error=str(e))
        raise HTTPException(500, "Failed to generate demo data")


@app.post("/api/financial/executive-summary", response_model=ExecutiveSummaryResponse)
async def executive_summary(
    request: ExecutiveSummaryRequest | None = None,
) -> ExecutiveSummaryResponse:
    """Narrative summary of a report, built fresh when none is provided."""
    request = request or ExecutiveSummaryRequest()
    if not pipeline or not claude_client:
        raise HTTPException(503, "Service not initialized")

    if not claude_client.is_configured:
        return ExecutiveSummaryResponse(
            summary=NOT_CONFIGURED_MESSAGE,
            timestamp=datetime.now(timezone.utc),
            source="unconfigured",
        )

    try:
        report = request.report or await pipeline.build_report(request.period)
        summary = await claude_client.summarize_report(report)
        return ExecutiveSummaryResponse(
            summary=summary,
            timestamp=datetime.now(timezone.utc),
            source=settings.claude_model,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.exception("executive_summary_failed", error=str(e))
        raise HTTPException(500, "Failed to generate executive summary")
