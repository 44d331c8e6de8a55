"""Session closer Lambda.

Scheduled every 15 minutes. Closes sessions with no activity for longer
than the session timeout by setting ended_at to their last activity.
"""

import os
from datetime import timedelta
from typing import Any

import structlog

from folio.models.base import utc_now
from folio.repositories import SessionRepository, get_table

logger = structlog.get_logger()

DEFAULT_TIMEOUT_MINUTES = 30


def handler(event: dict[str, Any], context: Any) -> dict:
    """Close idle sessions.

    Triggered by EventBridge schedule.
    """
    timeout_minutes = int(os.environ.get("SESSION_TIMEOUT_MINUTES", DEFAULT_TIMEOUT_MINUTES))
    cutoff = utc_now() - timedelta(minutes=timeout_minutes)

    logger.info("Session closer started", cutoff=cutoff.isoformat())

    repo = SessionRepository(get_table())
    idle_sessions = repo.list_idle(cutoff)

    closed = 0
    failed = 0
    for session in idle_sessions:
        try:
            if repo.close(session.session_id, session.last_activity_at):
                closed += 1
        except Exception as e:
            # One bad row must not stop the sweep
            failed += 1
            logger.error("Failed to close session", session_id=session.session_id, error=str(e))

    logger.info("Idle sessions closed", found=len(idle_sessions), closed=closed, failed=failed)

    return {
        "status": "success",
        "found": len(idle_sessions),
        "closed": closed,
        "failed": failed,
    }
