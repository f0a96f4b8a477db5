"""Shared utility functions for the service layer.

commit_or_raise:  the single place a unit of work is committed
"""
import logging

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from app.core.exceptions import ConflictError, DuplicateEmailError, DuplicatePanError
from app.models import db

logger = logging.getLogger(__name__)


# ── Database commit helper ───────────────────────────────────────────────────

def commit_or_raise():
    """Commit the current SQLAlchemy session; roll back everything on failure.

    Usage::

        write_audit(...)
        commit_or_raise()

    IntegrityError → DuplicatePanError / DuplicateEmailError / ConflictError (409)
    OperationalError → re-raised after rollback (500, logged)
    Other SQLAlchemyError → re-raised after rollback (500, logged)
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        message = str(exc.orig).lower()
        if "pan_number" in message:
            raise DuplicatePanError() from exc
        if "email" in message:
            resource = "User" if "users" in message else "Client"
            raise DuplicateEmailError(resource=resource) from exc
        raise ConflictError("Record", "constraint",
                            message="Duplicate or constraint violation") from exc
    except OperationalError:
        db.session.rollback()
        logger.exception("Database operational error on commit")
        raise
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Unexpected database error on commit")
        raise

