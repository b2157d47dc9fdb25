# -*- coding: utf-8 -*-
from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError

from asenso.config import settings
from asenso.db.schemas import EvaluationResult
from asenso.errors import ApplicantUnidentifiable, ModelContractViolation
from asenso.services.model_client import EvaluationRequest, ModelClient

logger = logging.getLogger(__name__)

REPLY_FIELDS = {f.alias for f in EvaluationResult.model_fields.values()}


@dataclass
class ValidationOutcome:
    ok: bool
    result: Optional[EvaluationResult] = None
    errors: List[str] = field(default_factory=list)


def validate_evaluation(payload: Any) -> ValidationOutcome:
    """Check a decoded model reply against the EvaluationResult contract. Never raises."""
    if not isinstance(payload, dict):
        return ValidationOutcome(ok=False, errors=[f"expected a JSON object, got {type(payload).__name__}"])
    try:
        return ValidationOutcome(ok=True, result=EvaluationResult.model_validate(payload))
    except PydanticValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()]
        return ValidationOutcome(ok=False, errors=errors)

def has_applicant_name(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    name = payload.get("fullName")
    return isinstance(name, str) and name.strip() != ""

def unexpected_fields(payload: dict) -> List[str]:
    return sorted(set(payload) - REPLY_FIELDS)

def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} is not allowed")

def breakdown_drift(result: EvaluationResult) -> float:
    return abs(sum(f.points for f in result.credit_score_breakdown) - result.credit_score)

def evaluate(
    model_client: ModelClient,
    reference_number: str,
    id_evidence: List[str],
    supporting_evidence: List[str],
    narrative: str,
    policy_rules: str,
) -> EvaluationResult:
    request = EvaluationRequest(
        reference_number=reference_number,
        id_evidence=list(id_evidence),
        supporting_evidence=list(supporting_evidence),
        narrative=narrative,
        policy_rules=policy_rules,
    )
    try:
        raw = model_client.evaluate(request)
    except Exception as e:
        logger.error("Model call failed for %s: %s", reference_number, e)
        raise ModelContractViolation(f"AI evaluation failed: {e}") from e

    if not raw:
        raise ModelContractViolation("AI failed to return an output.")
    try:
        payload = json.loads(raw, parse_constant=_reject_constant) if isinstance(raw, (str, bytes)) else raw
    except ValueError as e:
        logger.error("Model reply for %s is not JSON: %s", reference_number, e)
        raise ModelContractViolation("AI returned a reply that is not valid JSON.") from e
    if not isinstance(payload, dict):
        raise ModelContractViolation("AI reply is not a JSON object.")
    extra = unexpected_fields(payload)
    if extra:
        logger.error("Model reply for %s has unexpected fields: %s", reference_number, extra)
        raise ModelContractViolation(f"AI reply has fields outside the evaluation schema: {', '.join(extra)}")

    # the name check comes before the schema so a nameless reply is reported as such
    if not has_applicant_name(payload):
        logger.warning("No applicant name extracted for %s; discarding evaluation", reference_number)
        raise ApplicantUnidentifiable("Applicant name could not be determined. The application is invalid.")

    outcome = validate_evaluation(payload)
    if not outcome.ok:
        logger.error("Model reply for %s violates the schema: %s", reference_number, "; ".join(outcome.errors))
        raise ModelContractViolation("AI reply does not match the evaluation schema: " + "; ".join(outcome.errors))

    result = outcome.result
    drift = breakdown_drift(result)
    if drift > settings.BREAKDOWN_TOLERANCE:
        logger.warning("Score breakdown for %s is off by %.0f points from creditScore %.0f",
                       reference_number, drift, result.credit_score)
    return result
