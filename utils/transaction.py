from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from security.errors import SecurityError, StorageFailure


@contextmanager
def unit_of_work(operation: str):
    """
    Commit everything done inside the block, or nothing.

    Raw SQLAlchemy errors never leave this block: they become StorageFailure.
    """
    try:
        yield db.session
        db.session.commit()
    except SecurityError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("%s failed: storage error", operation)
        raise StorageFailure(reason=f"{operation} failed. Reason: storage error ({exc.__class__.__name__}).") from exc
