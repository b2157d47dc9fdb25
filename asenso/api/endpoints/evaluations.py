import asyncio
import logging
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from asenso.api.deps import get_db, get_model_client, get_policy_rules
from asenso.db.models import ApplicationRecord
from asenso.db.schemas import EvaluationIn, EvaluationOut, EvaluationResult
from asenso.errors import EvaluationError
from asenso.services import evidence_codec
from asenso.services.admission import admit_upload
from asenso.services.model_client import ModelClient
from asenso.services.pipeline import Submission, run_evaluation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["evaluations"])

def _evaluation_out(rec: ApplicationRecord) -> EvaluationOut:
    return EvaluationOut(
        reference_number=rec.reference_number,
        evaluation=EvaluationResult.model_validate(rec.evaluation),
        id_evidence_count=len(rec.id_evidence or []),
        supporting_evidence_count=len(rec.supporting_evidence or []),
        last_evaluated_at=rec.last_evaluated_at,
    )

def _run(db: Session, model_client: ModelClient, submission: Submission, policy_rules: str) -> EvaluationOut:
    try:
        rec = run_evaluation(db, model_client, submission, policy_rules)
    except EvaluationError as e:
        logger.warning("Evaluation failed (%s): %s", type(e).__name__, e.message)
        raise HTTPException(e.status_code, f"Evaluation failed: {e.message}") from e
    return _evaluation_out(rec)

async def _encode_uploads(files: Optional[List[UploadFile]], kind: str) -> List[str]:
    files = files or []
    contents = await asyncio.gather(*(f.read() for f in files))
    items = []
    for f, raw in zip(files, contents):
        if not raw:  # browsers send an empty part when nothing was picked
            continue
        admit_upload(f.filename, f.content_type, len(raw), kind)
        items.append((raw, f.content_type))
    return await run_in_threadpool(evidence_codec.encode_many, items)

@router.post("/evaluations", response_model=EvaluationOut)
def evaluate_application(
    body: EvaluationIn,
    db: Session = Depends(get_db),
    model_client: ModelClient = Depends(get_model_client),
    policy_rules: str = Depends(get_policy_rules),
):
    submission = Submission(
        is_new_application=body.is_new_application,
        reference_number=body.reference_number,
        id_evidence=body.id_evidence,
        supporting_evidence=body.supporting_evidence,
        narrative=body.narrative,
    )
    return _run(db, model_client, submission, policy_rules)

@router.post("/evaluations/upload", response_model=EvaluationOut)
async def evaluate_upload(
    loan_type: Literal["new", "existing"] = Form(...),
    reference_number: Optional[str] = Form(None),
    typed_text: Optional[str] = Form(""),
    id_photos: Optional[List[UploadFile]] = File(None),
    documents: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    model_client: ModelClient = Depends(get_model_client),
    policy_rules: str = Depends(get_policy_rules),
):
    id_evidence = await _encode_uploads(id_photos, "id")
    supporting_evidence = await _encode_uploads(documents, "document")

    submission = Submission(
        is_new_application=loan_type == "new",
        reference_number=reference_number,
        id_evidence=id_evidence,
        supporting_evidence=supporting_evidence,
        narrative=typed_text,
    )
    return await run_in_threadpool(_run, db, model_client, submission, policy_rules)
