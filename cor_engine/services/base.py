"""
Shared plumbing for organization-scoped engine services.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cor_engine.core.exceptions import NotFoundError, StoreError
from cor_engine.utils.dates import utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


@contextmanager
def store_operation(db: Session, operation: str):
    """
    Run one engine operation as a single unit of work.

    Commits once on success. On any failure the session is rolled back so
    nothing is partially written; SQLAlchemy errors are re-raised as
    StoreError carrying the operation name and the original cause.
    """
    try:
        yield
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{operation} failed: {e}", exc_info=True)
        raise StoreError(operation, e) from e
    except Exception:
        db.rollback()
        raise


class OrganizationScopedService:
    """Base for services bound to one organization's records."""

    def __init__(self, db: Session, organization_id: str):
        """
        Args:
            db: Database session
            organization_id: Tenant partition key applied to every query
        """
        self.db = db
        self.organization_id = organization_id

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return now or utcnow()

    def _get_scoped(self, model: Type[ModelT], entity_id: int, entity_name: str) -> ModelT:
        """Fetch a record by id within this organization, or raise NotFoundError."""
        try:
            record = (
                self.db.query(model)
                .filter(model.id == entity_id, model.organization_id == self.organization_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"get{entity_name}", e) from e
        if record is None:
            raise NotFoundError(entity_name, entity_id)
        return record
