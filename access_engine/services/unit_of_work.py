"""Single-commit scope for administrative mutations."""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from access_engine.core.exceptions import ConflictException, StoreUnavailableException

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session) -> Iterator[None]:
    """
    Commit everything flushed inside the block, or roll all of it back.

    Entity writes and their audit entry share this block, so a failed
    audit append undoes the entity write too.

    Raises:
        ConflictException: If a unique constraint is violated at commit
        StoreUnavailableException: For any other persistence failure
    """
    try:
        yield
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Write rejected by integrity constraint: %s", e.orig)
        raise ConflictException("Write conflicts with existing data") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Permission store write failed: %s", e)
        raise StoreUnavailableException("Permission store unavailable") from e
    except Exception:
        db.rollback()
        raise


@contextmanager
def store_errors() -> Iterator[None]:
    """Translate persistence failures on read paths into StoreUnavailableException."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Permission store read failed: %s", e)
        raise StoreUnavailableException("Permission store unavailable") from e
