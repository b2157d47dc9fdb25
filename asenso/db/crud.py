import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from asenso.db.models import ApplicationRecord
from asenso.errors import PersistenceFailure

logger = logging.getLogger(__name__)

MERGEABLE_FIELDS = {
    "id_evidence", "supporting_evidence", "narrative", "evaluation", "last_evaluated_at",
}

def get_application(db: Session, reference_number: str) -> ApplicationRecord | None:
    try:
        return db.get(ApplicationRecord, reference_number)
    except SQLAlchemyError as e:
        logger.error("Lookup failed for %s: %s", reference_number, e)
        raise PersistenceFailure(f"Could not read application {reference_number}") from e

def upsert_application(db: Session, reference_number: str, **fields) -> ApplicationRecord:
    """
    Field-level merge-write: given fields overwrite the stored ones, others are
    left untouched, and the record is created when it does not exist yet.
    """
    unknown = set(fields) - MERGEABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown application fields: {sorted(unknown)}")
    try:
        rec = db.get(ApplicationRecord, reference_number)
        if rec is None:
            rec = ApplicationRecord(reference_number=reference_number)
        for key, value in fields.items():
            setattr(rec, key, value)
        db.add(rec); db.commit(); db.refresh(rec)
        return rec
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Write failed for %s: %s", reference_number, e)
        raise PersistenceFailure(f"Could not save application {reference_number}") from e
