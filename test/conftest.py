# -*- coding: utf-8 -*-
import json
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from asenso.api.deps import get_db
from asenso.db.session import init_db
from asenso.main import create_app
from asenso.services.model_client import AdviceRequest, EvaluationRequest

TEST_RULES = "- Minimum credit score: 600\n- Maximum Debt-to-Income ratio: 45%\n"


def make_evaluation(**overrides) -> Dict[str, Any]:
    """A schema-valid, eligible EvaluationResult in wire (camelCase) form."""
    data = {
        "referenceNumber": "ASENSO-TEST",
        "fullName": "Maria Santos",
        "address": "123 Rizal St, Quezon City",
        "loanRequestSummary": "Requesting a PHP 10,000 loan to restock a sari-sari store.",
        "creditScore": 720,
        "creditScoreBreakdown": [
            {"factor": "Income Stability", "points": 300},
            {"factor": "Document Consistency", "points": 250},
            {"factor": "Credit History", "points": 170},
        ],
        "isEligible": True,
        "explanation": "* Stable monthly income\n* Documents are consistent",
        "violationFlags": [],
        "interestRate": 12.5,
        "documentTypes": ["Voter's ID", "Proof of Billing"],
        "loanRecommendations": [
            {"amount": 10000, "term": "12 months", "monthlyPayment": 940},
            {"amount": 15000, "term": "24 months", "monthlyPayment": 710},
        ],
    }
    data.update(overrides)
    return data


def make_ineligible(**overrides) -> Dict[str, Any]:
    data = make_evaluation(
        creditScore=520,
        creditScoreBreakdown=[
            {"factor": "Income Stability", "points": 300},
            {"factor": "Document Consistency", "points": 220},
        ],
        isEligible=False,
        explanation="* Name on ID does not match the proof of billing",
        violationFlags=["name mismatch between ID and proof of billing"],
        loanRecommendations=[],
    )
    data.update(overrides)
    return data


class FakeModelClient:
    """
    Scripted stand-in for the generative model.

    `evaluation` is a dict of overrides applied on top of `make_evaluation`
    (the reference is echoed from the request), `raw` is returned verbatim.
    """

    def __init__(self, evaluation: Optional[Dict[str, Any]] = None, raw: Any = None,
                 advice: str = "* Make sure every document shows the same name",
                 evaluate_error: Optional[Exception] = None,
                 advise_error: Optional[Exception] = None):
        self.evaluation = evaluation or {}
        self.raw = raw
        self.advice = advice
        self.evaluate_error = evaluate_error
        self.advise_error = advise_error
        self.evaluate_calls: List[EvaluationRequest] = []
        self.advise_calls: List[AdviceRequest] = []

    def evaluate(self, request: EvaluationRequest) -> str:
        self.evaluate_calls.append(request)
        if self.evaluate_error:
            raise self.evaluate_error
        if self.raw is not None:
            return self.raw
        payload = make_evaluation(referenceNumber=request.reference_number)
        payload.update(self.evaluation)
        return json.dumps(payload)

    def advise(self, request: AdviceRequest) -> str:
        self.advise_calls.append(request)
        if self.advise_error:
            raise self.advise_error
        return self.advice


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def model_client():
    return FakeModelClient()


@pytest.fixture
def client(db, model_client):
    app = create_app(model_client=model_client, policy_rules=TEST_RULES)

    def _get_test_db():
        yield db

    app.dependency_overrides[get_db] = _get_test_db
    return TestClient(app)
