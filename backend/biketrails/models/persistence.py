import logging
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from biketrails.core.errors import ConflictError, PersistenceError

logger = logging.getLogger(__name__)


def run_statement(db: Session, statement, description: str) -> CursorResult:
    """
    Execute one freshly built statement and translate store failures.

    Entities build a new statement with the current field values bound on every
    call and hand it here; nothing is cached between calls.
    IntegrityError (duplicate unique value, foreign key in use or dangling)
    becomes ConflictError, any other SQLAlchemy failure PersistenceError.
    The session is left for the caller (get_db) to roll back and close.
    """
    try:
        return db.execute(statement)
    except IntegrityError as exc:
        logger.warning(f"Constraint violation during {description}: {exc.orig}")
        raise ConflictError(f"{description} violates a uniqueness or reference constraint") from exc
    except SQLAlchemyError as exc:
        logger.error(f"Database error during {description}: {str(exc)}")
        raise PersistenceError(f"{description} failed") from exc


def fetch_one(db: Session, entity_class, statement, description: str):
    """Run a lookup and rebuild the entity through its validating constructor, or return None"""
    row = run_statement(db, statement, description).first()
    if row is None:
        return None
    return entity_class(**row._mapping)


def fetch_all(db: Session, entity_class, statement, description: str) -> list:
    rows = run_statement(db, statement, description).all()
    return [entity_class(**row._mapping) for row in rows]
