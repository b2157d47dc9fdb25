from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from asenso.api.deps import get_db, get_model_client
from asenso.db.schemas import ApplicationOut, StatusOut
from asenso.services.model_client import ModelClient
from asenso.services.pipeline import get_record, lookup_status

router = APIRouter(tags=["applications"])

@router.get("/applications/{reference_number}", response_model=ApplicationOut)
def get_application(reference_number: str, db: Session = Depends(get_db)):
    return ApplicationOut.model_validate(get_record(db, reference_number))

@router.get("/applications/{reference_number}/status", response_model=StatusOut)
def application_status(
    reference_number: str,
    db: Session = Depends(get_db),
    model_client: ModelClient = Depends(get_model_client),
):
    # advice is generated on every read for ineligible applicants and never stored
    status = lookup_status(db, model_client, reference_number)
    return StatusOut(
        reference_number=status.reference_number,
        evaluation=status.evaluation,
        last_evaluated_at=status.last_evaluated_at,
        advice=status.advice,
    )
