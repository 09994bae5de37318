"""Configuration from environment."""

import logging
import os

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
QUEUE_NAME = "csb:balance_queue"
STATUS_PREFIX = "csb:status:"
ALL_IDS_KEY = "csb:all_ids"
PROCESSING_LOCK_PREFIX = "csb:lock:processing:"
PROCESSING_LOCK_TTL = 300
STATUS_TTL = 86400 * 7  # 7 days

# Seconds the worker blocks on the queue before looping again
DEQUEUE_TIMEOUT = int(os.environ.get("DEQUEUE_TIMEOUT", "5"))


def get_slack_webhook_url() -> str:
    """Slack webhook; if unset, tie notifications are only logged."""
    return (os.environ.get("SLACK_WEBHOOK_URL") or "").strip()


def get_log_level() -> str:
    """LOG_LEVEL name, or INFO when unset or not a logging level."""
    level = (os.environ.get("LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        return "INFO"
    return level
