import datetime as dt
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, confloat, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # wire format is camelCase; python attributes stay snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StrictCamelModel(BaseModel):
    # model replies: camelCase keys only, no coercion, no NaN/Infinity
    model_config = ConfigDict(alias_generator=to_camel, extra="forbid", allow_inf_nan=False)


Number = confloat(strict=True, allow_inf_nan=False)


# -------------------------------
# Model output contract
# -------------------------------
class CreditScoreFactor(StrictCamelModel):
    factor: StrictStr
    points: Number


class LoanRecommendation(StrictCamelModel):
    amount: Number
    term: StrictStr
    monthly_payment: Number


class EvaluationResult(StrictCamelModel):
    reference_number: StrictStr
    full_name: StrictStr
    address: StrictStr
    loan_request_summary: StrictStr
    credit_score: Number
    credit_score_breakdown: List[CreditScoreFactor]
    is_eligible: StrictBool
    explanation: StrictStr
    violation_flags: List[StrictStr]
    interest_rate: Number
    document_types: List[StrictStr]
    loan_recommendations: List[LoanRecommendation]

    @field_validator("credit_score")
    def score_on_scale(cls, v):
        if not 0 <= v <= 1000:
            raise ValueError("creditScore must be between 0 and 1000")
        return v

    @model_validator(mode="after")
    def ineligible_has_no_recommendations(self):
        if not self.is_eligible and self.loan_recommendations:
            raise ValueError("loanRecommendations must be empty when isEligible is false")
        return self


# -------------------------------
# API payloads
# -------------------------------
class EvaluationIn(CamelModel):
    is_new_application: bool
    reference_number: Optional[str] = None
    id_evidence: List[str] = []
    supporting_evidence: List[str] = []
    narrative: Optional[str] = ""


class EvaluationOut(CamelModel):
    reference_number: str
    evaluation: EvaluationResult
    id_evidence_count: int
    supporting_evidence_count: int
    last_evaluated_at: Optional[dt.datetime] = None


class ApplicationOut(CamelModel):
    reference_number: str
    created_at: dt.datetime
    updated_at: dt.datetime
    id_evidence: List[str]
    supporting_evidence: List[str]
    narrative: str
    evaluation: Optional[EvaluationResult] = None
    last_evaluated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class StatusOut(CamelModel):
    reference_number: str
    evaluation: EvaluationResult
    last_evaluated_at: Optional[dt.datetime] = None
    advice: Optional[str] = None
