# -*- coding: utf-8 -*-
"""
One evaluation round: validate -> load prior -> merge -> evaluate -> persist.

The store is only written after a schema-valid, name-bearing evaluation, so a
failed round leaves the stored record untouched. Status lookups are where the
advisory step runs.
"""
from __future__ import annotations
import datetime as dt
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from asenso.db import crud
from asenso.db.models import ApplicationRecord
from asenso.db.schemas import EvaluationResult
from asenso.errors import NotFound, ValidationError
from asenso.services import evidence_codec
from asenso.services.admission import admit_upload
from asenso.services.advisor import advise_if_ineligible
from asenso.services.evaluator import evaluate
from asenso.services.merger import merge_submission
from asenso.services.model_client import ModelClient

logger = logging.getLogger(__name__)


@dataclass
class Submission:
    is_new_application: bool
    reference_number: Optional[str] = None
    id_evidence: List[str] = field(default_factory=list)
    supporting_evidence: List[str] = field(default_factory=list)
    narrative: Optional[str] = ""


@dataclass
class ApplicationStatus:
    reference_number: str
    evaluation: EvaluationResult
    last_evaluated_at: Optional[dt.datetime]
    advice: Optional[str]


class ReferenceLocks:
    """
    Serialises rounds on the same reference within this process.

    An entry lives only while some round holds or waits on it, so the registry
    stays as small as the number of references in flight.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: Dict[str, list] = {}  # reference -> [lock, holders]

    @contextmanager
    def hold(self, reference_number: str):
        with self._guard:
            entry = self._entries.setdefault(reference_number, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[reference_number]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    def __contains__(self, reference_number: str) -> bool:
        with self._guard:
            return reference_number in self._entries


_locks = ReferenceLocks()


def validate_submission(submission: Submission) -> None:
    if not submission.is_new_application:
        if not (submission.reference_number or "").strip():
            raise ValidationError("Reference Number is required for existing applications.")
    else:
        has_text = bool((submission.narrative or "").strip())
        if not (submission.id_evidence or submission.supporting_evidence or has_text):
            raise ValidationError(
                "Please provide at least one piece of information: ID photo, supporting document, or loaner information."
            )
    # evidence sent as data URIs gets the same admission rules as uploaded files
    for kind, label, uris in (("id", "ID photo", submission.id_evidence),
                              ("document", "Document", submission.supporting_evidence)):
        for i, uri in enumerate(uris, start=1):
            decoded = evidence_codec.decode(uri)
            admit_upload(f"{label} {i}", decoded.media_type, len(decoded.data), kind)

def _evaluate_and_store(db: Session, model_client: ModelClient, submission: Submission,
                        policy_rules: str, prior: Optional[ApplicationRecord]) -> ApplicationRecord:
    merged = merge_submission(
        submission.is_new_application,
        submission.reference_number,
        submission.id_evidence,
        submission.supporting_evidence,
        submission.narrative,
        prior,
    )
    logger.info("Evaluating %s (%d ID photos, %d documents)", merged.reference_number,
                len(merged.id_evidence), len(merged.supporting_evidence))
    result = evaluate(
        model_client,
        merged.reference_number,
        merged.id_evidence,
        merged.supporting_evidence,
        merged.narrative,
        policy_rules,
    )
    rec = crud.upsert_application(
        db,
        merged.reference_number,
        id_evidence=merged.id_evidence,
        supporting_evidence=merged.supporting_evidence,
        narrative=merged.narrative,
        evaluation=result.model_dump(by_alias=True),
        last_evaluated_at=dt.datetime.now(dt.timezone.utc),
    )
    logger.info("Stored evaluation for %s (eligible=%s, score=%.0f)",
                rec.reference_number, result.is_eligible, result.credit_score)
    return rec

def run_evaluation(db: Session, model_client: ModelClient, submission: Submission,
                   policy_rules: str) -> ApplicationRecord:
    validate_submission(submission)
    if submission.is_new_application:
        return _evaluate_and_store(db, model_client, submission, policy_rules, None)

    reference = submission.reference_number.strip()
    with _locks.hold(reference):
        prior = crud.get_application(db, reference)
        return _evaluate_and_store(db, model_client, submission, policy_rules, prior)

def get_record(db: Session, reference_number: str) -> ApplicationRecord:
    rec = crud.get_application(db, reference_number)
    if rec is None:
        raise NotFound(f"Application with reference number {reference_number} not found.")
    return rec

def lookup_status(db: Session, model_client: ModelClient, reference_number: str) -> ApplicationStatus:
    rec = get_record(db, reference_number)
    if rec.evaluation is None:
        raise NotFound(f"Application {reference_number} has no evaluation yet.")
    evaluation = EvaluationResult.model_validate(rec.evaluation)
    return ApplicationStatus(
        reference_number=rec.reference_number,
        evaluation=evaluation,
        last_evaluated_at=rec.last_evaluated_at,
        advice=advise_if_ineligible(model_client, evaluation),
    )
