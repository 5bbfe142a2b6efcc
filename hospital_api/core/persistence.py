"""
Transaction helpers shared by the service layer.
"""
import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import ConflictError, ValidationError

# Set up logging
logger = logging.getLogger(__name__)

# SQLSTATE for unique_violation on PostgreSQL
UNIQUE_VIOLATION_SQLSTATE = "23505"

def is_unique_violation(error: IntegrityError) -> bool:
    """Tell a duplicate-key failure apart from NOT NULL, CHECK and foreign key failures."""
    if getattr(error.orig, "pgcode", None) == UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = str(error.orig).lower()
    return "unique constraint failed" in message or "duplicate key" in message

def commit_changes(db: Session, conflict_detail: str = "Resource already exists") -> None:
    """
    Commit the session, translating integrity violations.

    Args:
        db: Database session
        conflict_detail: Message for the ConflictError raised on a unique violation

    Raises:
        ConflictError: If the commit violated a uniqueness constraint
        ValidationError: If the commit violated any other integrity constraint
        SQLAlchemyError: Any other database failure, after rollback
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if is_unique_violation(e):
            logger.warning(f"Unique constraint violated on commit: {str(e.orig)}")
            raise ConflictError(conflict_detail) from e
        logger.error(f"Integrity error on commit: {str(e.orig)}")
        raise ValidationError("The change violates a data integrity constraint") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error on commit: {str(e)}")
        raise


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains(column, text: str):
    """Case-insensitive 'contains' predicate for optional text filters."""
    return column.ilike(f"%{escape_like(text)}%", escape="\\")
