"""Translate driver failures into application errors."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import StoreUnavailableError

logger = structlog.get_logger()


@asynccontextmanager
async def store_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise SQLAlchemy and socket errors as StoreUnavailableError.

    Callers that care about a specific error (e.g. IntegrityError on insert)
    must catch it inside this block.
    """
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        logger.error(
            "store_operation_failed",
            operation=operation,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise StoreUnavailableError() from e
