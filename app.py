"""Balancer REST API: synchronous balance, queued balance jobs (202 Accepted), job status."""

import asyncio
import time
from typing import List

from fastapi import FastAPI, HTTPException

from balancer import Balancer, BalancingError
from broker import (
    add_to_all_ids_async,
    enqueue_async,
    generate_job_id,
    get_status_async,
    list_jobs_async,
    set_status_async,
)
from models import (
    BalanceAcceptedResponse,
    BalanceRequest,
    BalanceResult,
    BalanceStatusResponse,
)

app = FastAPI(title="Customer Success Balancer", version="1.0.0")


def _build_balancer(payload: BalanceRequest) -> Balancer:
    try:
        balancer = Balancer(payload.agents, payload.customers, payload.away_ids)
        balancer.ensure_available()
        return balancer
    except BalancingError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/balance", response_model=BalanceResult)
async def balance(payload: BalanceRequest) -> BalanceResult:
    """Run the balancer inline and return the winner with per-agent counts."""
    balancer = _build_balancer(payload)
    try:
        return await asyncio.to_thread(balancer.run)
    except BalancingError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/balance/jobs", response_model=BalanceAcceptedResponse, status_code=202)
async def create_job(payload: BalanceRequest) -> BalanceAcceptedResponse:
    """Validate, enqueue to broker, return 202 Accepted immediately."""
    _build_balancer(payload)
    job_id = generate_job_id()
    created_at = time.time()
    await set_status_async(
        job_id,
        {"job_id": job_id, "status": "pending", "created_at": created_at},
    )
    await add_to_all_ids_async(job_id)
    await enqueue_async({"job_id": job_id, "created_at": created_at, **payload.model_dump()})
    return BalanceAcceptedResponse(
        job_id=job_id,
        status="accepted",
        status_url=f"/balance/jobs/{job_id}/status",
    )


@app.get("/balance/jobs/{job_id}/status", response_model=BalanceStatusResponse)
async def get_job_status(job_id: str) -> BalanceStatusResponse:
    """Return current status: pending | processing | completed | failed."""
    data = await get_status_async(job_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return BalanceStatusResponse(**data)


@app.get("/balance/jobs", response_model=List[BalanceStatusResponse])
async def list_jobs() -> List[BalanceStatusResponse]:
    """Return all known jobs, completed first, then by creation time."""
    return [BalanceStatusResponse(**d) for d in await list_jobs_async()]


@app.get("/health")
def health() -> dict:
    """Health check."""
    return {"status": "ok"}
