"""FastAPI main application."""

from fastapi import FastAPI, BackgroundTasks, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
import logging
import threading
import structlog
import uuid
from datetime import datetime, timezone

from ..config import settings
from ..core.errors import InvalidGridError
from ..core.grid import Grid
from ..core.names import NameProvider
from ..core.state_assembler import GenerationOptions, GenerationResult, StateAssembler
from ..core.statistics import StateSummary, ownership_matrix, summarize_states


def configure_logging() -> None:
    """Configure structlog from settings.log_level and settings.log_format."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=level)

    if settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Realms API",
    description="Partition land/water grids into states and regions",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class ClaimGenerationRequest(BaseModel):
    """Request to partition a terrain grid into states."""

    terrain: List[str] = Field(description="Rows of terrain codes, 'T' land and 'M' water")
    states: int = Field(ge=0, description="Number of states to generate")
    seed: Optional[str] = Field(None, description="Seed for reproducible generation")
    names: Optional[NameProvider] = Field(None, description="Name lists")
    options: Optional[GenerationOptions] = Field(None, description="Generation options")


class JobResponse(BaseModel):
    """Response with job information."""

    job_id: str
    status: str
    progress_percent: int
    message: str
    error_message: Optional[str] = None


class ClaimResultResponse(BaseModel):
    """Outcome of a finished job."""

    job_id: str
    seed: str
    requested: int
    attempted: int
    committed: int
    cancelled: bool
    failures: Dict[str, int]
    states: List[StateSummary]
    ownership: List[List[int]] = Field(description="State id per cell, 0 for unowned")


class GenerationJob:
    """In-memory record of one generation job."""

    def __init__(self, job_id: str, seed: str, requested: int):
        self.id = job_id
        self.seed = seed
        self.requested = requested
        self.status = "pending"
        self.progress_percent = 0
        self.error_message: Optional[str] = None
        self.cancel_event = threading.Event()
        self.created_at = datetime.now(timezone.utc)
        self.completed_at: Optional[datetime] = None
        self.result: Optional[ClaimResultResponse] = None

    def to_response(self, message: Optional[str] = None) -> JobResponse:
        return JobResponse(
            job_id=self.id,
            status=self.status,
            progress_percent=self.progress_percent,
            message=message or f"Job {self.status}",
            error_message=self.error_message,
        )


FINISHED_STATUSES = ("completed", "cancelled", "failed")

jobs: Dict[str, GenerationJob] = {}
jobs_lock = threading.Lock()


def _get_job(job_id: str) -> GenerationJob:
    job = jobs.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


def prune_finished_jobs() -> int:
    """Evict the oldest finished jobs beyond settings.max_retained_jobs."""
    with jobs_lock:
        finished = sorted(
            (job for job in jobs.values() if job.status in FINISHED_STATUSES),
            key=lambda job: job.completed_at or job.created_at,
        )
        excess = finished[: max(0, len(finished) - settings.max_retained_jobs)]
        for job in excess:
            del jobs[job.id]

    if excess:
        logger.info("Evicted finished jobs", count=len(excess), retained=len(jobs))
    return len(excess)


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Realms API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "jobs": len(jobs)}


@app.post("/claims/generate", response_model=JobResponse)
async def generate_claims(request: ClaimGenerationRequest, background_tasks: BackgroundTasks):
    """
    Start a state generation job.

    Returns immediately with job ID. Use /jobs/{job_id} to check status.
    """
    logger.info(
        "Claim generation requested",
        rows=len(request.terrain),
        states=request.states,
        seed=request.seed,
    )

    if request.states > settings.max_requested_states:
        raise HTTPException(
            status_code=422,
            detail=f"at most {settings.max_requested_states} states may be requested",
        )

    try:
        grid = Grid.from_rows(request.terrain)
    except InvalidGridError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if grid.size > settings.max_grid_cells:
        raise HTTPException(
            status_code=422,
            detail=f"grid has {grid.size} cells, limit is {settings.max_grid_cells}",
        )

    job_id = str(uuid.uuid4())
    seed = request.seed or job_id[:8]
    job = GenerationJob(job_id, seed, request.states)
    with jobs_lock:
        jobs[job_id] = job

    background_tasks.add_task(run_claim_generation, job, grid, request)

    return job.to_response("Claim generation job started")


@app.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job_status(job_id: str):
    """Get status of a generation job."""
    return _get_job(job_id).to_response()


@app.get("/jobs/{job_id}/result", response_model=ClaimResultResponse)
async def get_job_result(job_id: str):
    """Get the states and ownership matrix of a finished job."""
    job = _get_job(job_id)
    if job.result is None:
        raise HTTPException(status_code=409, detail=f"Job is {job.status}")
    return job.result


@app.delete("/jobs/{job_id}", response_model=JobResponse)
async def cancel_job(job_id: str):
    """Ask a running job to stop at its next checkpoint, or drop a finished one."""
    job = _get_job(job_id)
    if job.status in FINISHED_STATUSES:
        with jobs_lock:
            jobs.pop(job_id, None)
        logger.info("Job removed", job_id=job_id, status=job.status)
        return job.to_response("Job removed")

    job.cancel_event.set()
    logger.info("Job cancellation requested", job_id=job_id, status=job.status)
    return job.to_response("Cancellation requested")


def run_claim_generation(job: GenerationJob, grid: Grid, request: ClaimGenerationRequest):
    """
    Background task to generate states on a grid.
    """
    logger.info("Starting claim generation", job_id=job.id)
    job.status = "running"

    def on_progress(done: int, total: int) -> None:
        job.progress_percent = int(done * 100 / total) if total else 100

    try:
        assembler = StateAssembler(
            grid,
            prng=job.seed,
            options=request.options,
            names=request.names,
        )
        result: GenerationResult = assembler.generate(
            request.states, progress=on_progress, cancel=job.cancel_event
        )

        job.result = ClaimResultResponse(
            job_id=job.id,
            seed=job.seed,
            requested=result.requested,
            attempted=result.attempted,
            committed=result.committed,
            cancelled=result.cancelled,
            failures=result.failures,
            states=summarize_states(result, grid),
            ownership=ownership_matrix(grid).tolist(),
        )
        job.status = "cancelled" if result.cancelled else "completed"
        job.progress_percent = 100
        job.completed_at = datetime.now(timezone.utc)

        logger.info(
            "Claim generation completed",
            job_id=job.id,
            committed=result.committed,
            status=job.status,
        )

    except Exception as e:
        logger.error("Claim generation failed", job_id=job.id, error=str(e))
        job.status = "failed"
        job.error_message = str(e)
        job.completed_at = datetime.now(timezone.utc)

    prune_finished_jobs()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
