"""Slack webhook: notify when a balance job has no unique winner."""

import logging
from typing import Dict

import httpx

from config import get_slack_webhook_url

logger = logging.getLogger(__name__)


def _build_message(job_id: str, match_counts: Dict[int, int]) -> str:
    top = max(match_counts.values()) if match_counts else 0
    leaders = sorted(agent_id for agent_id, count in match_counts.items() if count == top)
    return (
        f":balance_scale: *No unique winner* for balance job `{job_id}`\n"
        f"*Tied agents:* {', '.join(str(a) for a in leaders)} ({top} customers each)"
    )


def notify_no_unique_winner(job_id: str, match_counts: Dict[int, int]) -> None:
    """POST to Slack webhook for a tied result. No-op if SLACK_WEBHOOK_URL unset."""
    message = _build_message(job_id, match_counts)
    slack_url = get_slack_webhook_url()
    if not slack_url:
        logger.info("Mock webhook would fire for tied job %s", job_id)
        return
    try:
        resp = httpx.post(slack_url, json={"text": message}, timeout=10.0)
        resp.raise_for_status()
        logger.info("Slack webhook sent for job %s", job_id)
    except httpx.HTTPError as e:
        err_detail = str(e)
        if isinstance(e, httpx.HTTPStatusError):
            err_detail += " | response: " + (e.response.text or "")[:200]
        logger.warning("Slack webhook failed for job %s: %s", job_id, err_detail)
