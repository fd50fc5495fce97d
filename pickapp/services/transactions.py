from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from pickapp.errors import PickError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(session, description: str):
    """Commit everything done inside the block, or roll all of it back.

    Domain errors propagate unchanged; database errors surface as
    :class:`StorageError` so the API answers with a 500 payload.
    """

    try:
        yield session
        session.commit()
    except PickError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Database error while trying to %s", description)
        root_cause = getattr(exc, "orig", None) or exc
        raise StorageError(f"Failed to {description}", details=str(root_cause)) from exc
