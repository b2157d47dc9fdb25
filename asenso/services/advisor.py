# -*- coding: utf-8 -*-
from __future__ import annotations
import logging
from typing import Optional

from asenso.db.schemas import EvaluationResult
from asenso.errors import AdvisoryFailure
from asenso.services.model_client import AdviceRequest, ModelClient

logger = logging.getLogger(__name__)

ADVICE_FALLBACK_MESSAGE = "We are currently unable to generate personalized advice. Please check back later."
EMPTY_ADVICE_MESSAGE = (
    "We are unable to provide specific advice at this time. "
    "Please ensure all your documents are consistent and up-to-date."
)

def advice_request(evaluation: EvaluationResult) -> AdviceRequest:
    return AdviceRequest(
        credit_score=evaluation.credit_score,
        is_eligible=evaluation.is_eligible,
        explanation=evaluation.explanation,
        violation_flags=list(evaluation.violation_flags),
    )

def request_advice(model_client: ModelClient, evaluation: EvaluationResult) -> str:
    try:
        reply = model_client.advise(advice_request(evaluation))
    except Exception as e:
        raise AdvisoryFailure(f"Credit advice failed: {e}") from e
    if reply is not None and not isinstance(reply, str):
        raise AdvisoryFailure(f"Credit advice reply is a {type(reply).__name__}, not text")
    return (reply or "").strip()

def advise_if_ineligible(model_client: ModelClient, evaluation: EvaluationResult) -> Optional[str]:
    """
    Improvement advice for ineligible applicants, None for eligible ones.
    Failures end in a fixed fallback message; this never raises.
    """
    if evaluation.is_eligible:
        return None
    try:
        text = request_advice(model_client, evaluation)
    except AdvisoryFailure as e:
        logger.warning("Credit advice failed for %s: %s", evaluation.reference_number, e.message)
        return ADVICE_FALLBACK_MESSAGE
    return text or EMPTY_ADVICE_MESSAGE
