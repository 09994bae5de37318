"""Redis broker: balance job queue, processing locks, and job status."""

import json
import uuid
from typing import Any, Dict, List, Optional

import redis
from redis.asyncio import Redis

from config import (
    ALL_IDS_KEY,
    PROCESSING_LOCK_PREFIX,
    PROCESSING_LOCK_TTL,
    QUEUE_NAME,
    REDIS_URL,
    STATUS_PREFIX,
    STATUS_TTL,
)

_sync_client: Optional[redis.Redis] = None
_async_client: Optional[Redis] = None


def get_sync_redis() -> redis.Redis:
    global _sync_client
    if _sync_client is None:
        _sync_client = redis.from_url(REDIS_URL, decode_responses=True)
    return _sync_client


def get_async_redis() -> Redis:
    global _async_client
    if _async_client is None:
        _async_client = Redis.from_url(REDIS_URL, decode_responses=True)
    return _async_client


def generate_job_id() -> str:
    return f"balance-{uuid.uuid4().hex[:16]}"


def _status_key(job_id: str) -> str:
    return f"{STATUS_PREFIX}{job_id}"


# --- Sync API (used by worker) ---

def dequeue_sync(timeout: int = 5) -> Optional[Dict[str, Any]]:
    """Blocking pop from queue. Returns None if timeout with no message."""
    result = get_sync_redis().brpop(QUEUE_NAME, timeout=timeout)
    if result is None:
        return None
    _, raw = result
    return json.loads(raw)


def set_status_sync(job_id: str, data: Dict[str, Any]) -> None:
    get_sync_redis().set(_status_key(job_id), json.dumps(data), ex=STATUS_TTL)


def get_status_sync(job_id: str) -> Optional[Dict[str, Any]]:
    raw = get_sync_redis().get(_status_key(job_id))
    if raw is None:
        return None
    return json.loads(raw)


def acquire_processing_lock(job_id: str) -> bool:
    """Acquire per-job processing lock. Returns True if acquired."""
    r = get_sync_redis()
    return bool(r.set(f"{PROCESSING_LOCK_PREFIX}{job_id}", "1", nx=True, ex=PROCESSING_LOCK_TTL))


def release_processing_lock(job_id: str) -> None:
    get_sync_redis().delete(f"{PROCESSING_LOCK_PREFIX}{job_id}")


# --- Async API (for FastAPI) ---

async def enqueue_async(payload: Dict[str, Any]) -> None:
    await get_async_redis().lpush(QUEUE_NAME, json.dumps(payload))


async def set_status_async(job_id: str, data: Dict[str, Any]) -> None:
    await get_async_redis().set(_status_key(job_id), json.dumps(data), ex=STATUS_TTL)


async def get_status_async(job_id: str) -> Optional[Dict[str, Any]]:
    raw = await get_async_redis().get(_status_key(job_id))
    if raw is None:
        return None
    return json.loads(raw)


async def add_to_all_ids_async(job_id: str) -> None:
    await get_async_redis().sadd(ALL_IDS_KEY, job_id)


def sort_jobs(jobs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Completed jobs first, then everything else; each group by created_at."""
    def sort_key(x):
        finished = 0 if x.get("status") == "completed" else 1
        return (finished, x.get("created_at") or 0)
    return sorted(jobs, key=sort_key)


async def list_jobs_async() -> List[Dict[str, Any]]:
    """List every known job status (expired statuses are skipped)."""
    r = get_async_redis()
    out = []
    for job_id in await r.smembers(ALL_IDS_KEY):
        raw = await r.get(_status_key(job_id))
        if raw:
            out.append(json.loads(raw))
    return sort_jobs(out)
