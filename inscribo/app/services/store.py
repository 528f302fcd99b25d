"""Unit-of-work helper shared by every service that writes to the store.

A unit is a callable that stages its changes on the session (adds, attribute
writes, flushes) and returns a value. ``run_unit`` commits it as one
transaction. Operational store errors roll the whole unit back and re-run it;
when every attempt fails the caller gets ``TransientStoreFailure`` and nothing
from the unit is persisted.
"""

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from inscribo.app.core.errors import TransientStoreFailure
from inscribo.app.core.settings import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_STORE_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


def run_unit(db: Session, unit: Callable[[], T], *, label: str, attempts: int | None = None) -> T:
    """Apply ``unit`` and commit it, retrying on transient store errors."""
    max_attempts = attempts if attempts is not None else get_settings().store_retry_attempts
    last_error: Exception | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            result = unit()
            db.commit()
            return result
        except TRANSIENT_STORE_ERRORS as exc:
            db.rollback()
            last_error = exc
            logger.warning("%s failed on attempt %d/%d: %s", label, attempt, max_attempts, exc)
        except SQLAlchemyError:
            db.rollback()
            raise
    logger.error("%s abandoned after %d attempts", label, max_attempts)
    raise TransientStoreFailure(f"Could not save changes ({label}); please try again") from last_error
