"""
Background worker: pull balance jobs from Redis queue, run the balancer, write status.
Run: python worker.py
"""

import logging
import os
import sys
from typing import Any, Dict

from dotenv import load_dotenv
from pydantic import ValidationError

# Load .env from project root (same dir as this file) before any config imports
load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env"))

from balancer import Balancer, BalancingError
from broker import (
    acquire_processing_lock,
    dequeue_sync,
    release_processing_lock,
    set_status_sync,
)
from config import DEQUEUE_TIMEOUT, QUEUE_NAME, get_log_level, get_slack_webhook_url
from webhook import notify_no_unique_winner

logger = logging.getLogger(__name__)


def _failed(job_id: str, created_at: Any, error: str) -> Dict[str, Any]:
    return {
        "job_id": job_id,
        "status": "failed",
        "error": error,
        "created_at": created_at,
    }


def process_job(payload: dict) -> None:
    """Process one job: run the balancer, store the result, alert Slack on a tie."""
    job_id = payload.get("job_id")
    if not job_id:
        logger.warning("Missing job_id in payload: %s", payload)
        return
    if not acquire_processing_lock(job_id):
        logger.warning("Skip job %s: already being processed", job_id)
        return
    created_at = payload.get("created_at")
    try:
        set_status_sync(
            job_id,
            {"job_id": job_id, "status": "processing", "created_at": created_at},
        )
        balancer = Balancer(
            payload.get("agents") or [],
            payload.get("customers") or [],
            payload.get("away_ids") or [],
        )
        result = balancer.run()
        set_status_sync(
            job_id,
            {
                "job_id": job_id,
                "status": "completed",
                "created_at": created_at,
                **result.model_dump(),
            },
        )
        if result.tied:
            notify_no_unique_winner(job_id, result.match_counts)
        logger.info("Completed job %s winner=%s tied=%s", job_id, result.winner_id, result.tied)
    except (BalancingError, ValidationError) as e:
        logger.warning("Rejected job %s: %s", job_id, e)
        set_status_sync(job_id, _failed(job_id, created_at, str(e)))
    except Exception as e:
        logger.exception("Process failed for job %s: %s", job_id, e)
        set_status_sync(job_id, _failed(job_id, created_at, "internal error"))
    finally:
        release_processing_lock(job_id)


def main() -> None:
    logging.basicConfig(level=get_log_level(), format="%(asctime)s %(levelname)s %(message)s")
    logger.info("Worker started, listening on queue %s", QUEUE_NAME)
    if get_slack_webhook_url():
        logger.info("Slack webhook: configured")
    else:
        logger.info("Slack webhook: not set (set SLACK_WEBHOOK_URL in .env)")
    while True:
        try:
            msg = dequeue_sync(timeout=DEQUEUE_TIMEOUT)
            if msg is not None:
                process_job(msg)
        except KeyboardInterrupt:
            logger.info("Shutting down")
            sys.exit(0)
        except Exception as e:
            logger.exception("Worker error: %s", e)


if __name__ == "__main__":
    main()
