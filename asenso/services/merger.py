# -*- coding: utf-8 -*-
from __future__ import annotations
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, List, Optional

from asenso.config import settings
from asenso.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

NARRATIVE_SEPARATOR = "\n\n"


@dataclass
class MergedSubmission:
    reference_number: str
    id_evidence: List[str] = field(default_factory=list)
    supporting_evidence: List[str] = field(default_factory=list)
    narrative: str = ""
    is_new: bool = False


def mint_reference(prefix: Optional[str] = None) -> str:
    # millisecond stamp keeps references roughly sortable; the random suffix
    # keeps two submissions in the same millisecond apart
    prefix = prefix or settings.REFERENCE_PREFIX
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:10].upper()}"

def join_narrative(prior: Optional[str], new: Optional[str]) -> str:
    parts = [(p or "").strip() for p in (prior, new)]
    return NARRATIVE_SEPARATOR.join(p for p in parts if p)

def merge_submission(
    is_new_application: bool,
    supplied_reference: Optional[str],
    new_id_evidence: Optional[List[str]],
    new_supporting_evidence: Optional[List[str]],
    new_narrative: Optional[str],
    prior_record: Any = None,
) -> MergedSubmission:
    """
    Combine a round's evidence with what is already stored.

    Evidence is append-only (prior items first, then the new ones in
    submission order, no deduplication) and narratives are joined by a blank
    line. `prior_record` is anything exposing `id_evidence`,
    `supporting_evidence` and `narrative`; it is ignored for new applications.
    """
    new_id_evidence = list(new_id_evidence or [])
    new_supporting_evidence = list(new_supporting_evidence or [])

    if is_new_application:
        reference = mint_reference()
        logger.info("Minted reference %s for new application", reference)
        return MergedSubmission(
            reference_number=reference,
            id_evidence=new_id_evidence,
            supporting_evidence=new_supporting_evidence,
            narrative=join_narrative(None, new_narrative),
            is_new=True,
        )

    reference = (supplied_reference or "").strip()
    if not reference:
        raise ValidationError("Reference Number is required for existing applications.")
    if prior_record is None:
        raise NotFound(f"Application with reference number {reference} not found.")

    return MergedSubmission(
        reference_number=reference,
        id_evidence=list(prior_record.id_evidence or []) + new_id_evidence,
        supporting_evidence=list(prior_record.supporting_evidence or []) + new_supporting_evidence,
        narrative=join_narrative(prior_record.narrative, new_narrative),
    )
