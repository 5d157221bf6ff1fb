import logging
import threading
from typing import Callable, Optional

from sqlalchemy.orm import Session

from boxoffice.core.config import settings
from boxoffice.services.bookings import expire_stale_pending_bookings

logger = logging.getLogger(__name__)

# Only one sweep may run per process at a time
_sweep_lock = threading.Lock()


def run_expiry_sweep(
    session_factory: Callable[[], Session],
    threshold_minutes: Optional[int] = None,
) -> Optional[int]:
    """
    Background job: cancel pending bookings that were never confirmed.

    Skips the cycle (returns None) if the previous sweep is still running.
    Errors are logged and swallowed so the scheduling loop keeps going.
    Returns the number of bookings cancelled.
    """
    if not _sweep_lock.acquire(blocking=False):
        logger.info("Previous booking expiry sweep still running; skipping this cycle.")
        return None

    try:
        db = session_factory()
        try:
            count = expire_stale_pending_bookings(
                db,
                threshold_minutes if threshold_minutes is not None else settings.BOOKING_EXPIRY_MINUTES,
            )
        finally:
            db.close()
        if count:
            logger.info("Released %d stale pending booking(s).", count)
        return count
    except Exception:
        logger.exception("Error during booking expiry sweep.")
        return None
    finally:
        _sweep_lock.release()
