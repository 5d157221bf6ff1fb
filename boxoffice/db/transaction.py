import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from boxoffice.core.errors import ConflictError, DomainError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session):
    """
    Run a unit of work in one transaction.

    Commits when the block exits cleanly and rolls back on any exception.
    Raw SQLAlchemy errors are converted to domain errors so they never reach
    callers of the service layer:
      - IntegrityError  -> ConflictError (a storage constraint rejected the write)
      - SQLAlchemyError -> StorageError
    Domain errors raised inside the block pass through unchanged.
    """
    try:
        yield db
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        logger.info("Write rejected by storage constraint: %s", exc.orig)
        raise ConflictError("Write conflicts with existing data") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage error, transaction rolled back.")
        raise StorageError() from exc
    except Exception:
        db.rollback()
        raise


@contextmanager
def storage_errors():
    """Wrap read-only queries so driver errors surface as StorageError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Storage error while reading.")
        raise StorageError() from exc
