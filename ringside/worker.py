"""
Polling worker that expires overdue match requests.

Every EXPIRY_SWEEP_INTERVAL seconds it opens a fresh session and moves every
PENDING match request whose deadline has passed to EXPIRED in one statement.
Sweeps are idempotent, so running several workers is safe.

Usage:
    python -m ringside.worker
"""

import logging
import time
from typing import Callable, Optional

from .core.config import settings
from .core.logging_config import setup_logging
from .database import SessionLocal
from .services.match_request_service import MatchRequestService

logger = logging.getLogger("ringside.worker")


def run_sweep(session_factory=SessionLocal) -> int:
    """Run one expiration sweep in its own session. Returns the number expired."""
    db = session_factory()
    try:
        return MatchRequestService(db).expire_overdue()
    finally:
        db.close()


def main(
    interval: Optional[int] = None,
    max_sweeps: Optional[int] = None,
    session_factory=SessionLocal,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Sweep, sleep, repeat. A failing sweep is logged and retried next round."""
    interval = interval or settings.expiry_sweep_interval
    logger.info(f"Expiry worker started, sweeping every {interval}s")

    sweeps = 0
    while max_sweeps is None or sweeps < max_sweeps:
        sweeps += 1
        try:
            expired = run_sweep(session_factory)
            if expired:
                logger.info(f"Expired {expired} match request(s)")
        except KeyboardInterrupt:
            logger.info("Worker shutting down")
            break
        except Exception as e:
            logger.error(f"Expiry sweep failed: {e}", exc_info=True)

        if max_sweeps is None or sweeps < max_sweeps:
            sleep(interval)


if __name__ == "__main__":
    setup_logging(log_level=settings.log_level, log_format=settings.log_format)
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Worker shutting down")
