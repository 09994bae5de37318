"""Pydantic models for agents, customers, and the balance API."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

JobStatus = Literal["pending", "processing", "completed", "failed"]


class Agent(BaseModel):
    """A customer-success agent and their experience score."""

    model_config = ConfigDict(frozen=True)

    id: PositiveInt
    score: int


class Customer(BaseModel):
    """A customer; only the score takes part in matching."""

    model_config = ConfigDict(frozen=True)

    id: Optional[PositiveInt] = None
    score: int


class BalanceRequest(BaseModel):
    """Payload for POST /balance and POST /balance/jobs."""

    agents: List[Agent]
    customers: List[Customer] = Field(default_factory=list)
    away_ids: List[int] = Field(default_factory=list)


class BalanceResult(BaseModel):
    """Outcome of one balance run."""

    winner_id: int  # 0 when no agent is the unique winner
    tied: bool
    match_counts: Dict[int, int]
    unmatched_customers: int


class BalanceAcceptedResponse(BaseModel):
    """202 Accepted response for a queued balance job."""

    job_id: str
    status: str = "accepted"
    status_url: str


class BalanceStatusResponse(BaseModel):
    """Job status (pending | processing | completed | failed)."""

    job_id: str
    status: JobStatus
    winner_id: Optional[int] = None
    tied: Optional[bool] = None
    match_counts: Optional[Dict[int, int]] = None
    unmatched_customers: Optional[int] = None
    error: Optional[str] = None
    created_at: Optional[float] = None
