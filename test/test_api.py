import pytest
from sqlalchemy.exc import OperationalError

from asenso.config import settings
from asenso.services import evidence_codec
from conftest import make_evaluation, make_ineligible

ID_PHOTO = evidence_codec.encode(b"\xff\xd8\xff-voters-id", "image/jpeg")
BILLING = evidence_codec.encode(b"%PDF-1.7 billing", "application/pdf")


def _evaluate(client, **body):
    return client.post("/v1/evaluations", json=body)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_new_application_round_trip(client):
    r = _evaluate(client, isNewApplication=True, idEvidence=[ID_PHOTO], narrative="monthly salary 8000 pesos")
    assert r.status_code == 200, r.text
    data = r.json()
    ref = data["referenceNumber"]
    assert ref.startswith("ASENSO-")
    assert data["evaluation"]["fullName"] == "Maria Santos"
    assert data["idEvidenceCount"] == 1 and data["supportingEvidenceCount"] == 0

    rec = client.get(f"/v1/applications/{ref}").json()
    assert rec["idEvidence"] == [ID_PHOTO]
    assert rec["narrative"] == "monthly salary 8000 pesos"
    assert rec["evaluation"]["isEligible"] is True


def test_existing_application_accumulates(client):
    ref = _evaluate(client, isNewApplication=True, narrative="salary 8000").json()["referenceNumber"]
    r = _evaluate(client, isNewApplication=False, referenceNumber=ref,
                  supportingEvidence=[BILLING], narrative="new job, salary now 12000")
    assert r.status_code == 200, r.text
    assert r.json()["supportingEvidenceCount"] == 1

    rec = client.get(f"/v1/applications/{ref}").json()
    assert rec["narrative"] == "salary 8000\n\nnew job, salary now 12000"
    assert rec["supportingEvidence"] == [BILLING]


def test_existing_application_without_reference_is_422(client, model_client):
    r = _evaluate(client, isNewApplication=False, narrative="hello")
    assert r.status_code == 422
    assert r.json()["detail"].startswith("Evaluation failed: Reference Number is required")
    assert model_client.evaluate_calls == []


def test_unknown_reference_is_404(client):
    r = _evaluate(client, isNewApplication=False, referenceNumber="ASENSO-404", narrative="hello")
    assert r.status_code == 404
    assert "ASENSO-404 not found" in r.json()["detail"]


def test_nameless_result_is_rejected_and_not_stored(client, model_client):
    model_client.evaluation = {"fullName": ""}
    r = _evaluate(client, isNewApplication=True, narrative="monthly salary 8000 pesos")
    assert r.status_code == 422
    assert "Applicant name could not be determined" in r.json()["detail"]
    ref = model_client.evaluate_calls[0].reference_number
    assert client.get(f"/v1/applications/{ref}").status_code == 404


def test_model_outage_is_502(client, model_client):
    model_client.evaluate_error = ConnectionError("model unreachable")
    r = _evaluate(client, isNewApplication=True, narrative="salary 8000")
    assert r.status_code == 502


def test_status_for_ineligible_includes_advice(client, model_client):
    model_client.evaluation = make_ineligible()
    ref = _evaluate(client, isNewApplication=True, narrative="salary 3000").json()["referenceNumber"]
    r = client.get(f"/v1/applications/{ref}/status")
    assert r.status_code == 200
    data = r.json()
    assert data["evaluation"]["isEligible"] is False
    assert data["advice"] == model_client.advice
    assert model_client.advise_calls[0].violations_text == "name mismatch between ID and proof of billing"


def test_status_advice_failure_still_returns_200(client, model_client):
    model_client.evaluation = make_ineligible()
    model_client.advise_error = RuntimeError("quota exceeded")
    ref = _evaluate(client, isNewApplication=True, narrative="salary 3000").json()["referenceNumber"]
    r = client.get(f"/v1/applications/{ref}/status")
    assert r.status_code == 200
    assert r.json()["advice"].startswith("We are currently unable")


def test_status_for_eligible_has_no_advice(client, model_client):
    ref = _evaluate(client, isNewApplication=True, narrative="salary 20000").json()["referenceNumber"]
    data = client.get(f"/v1/applications/{ref}/status").json()
    assert data["advice"] is None
    assert data["evaluation"]["loanRecommendations"] == make_evaluation()["loanRecommendations"]
    assert model_client.advise_calls == []


@pytest.mark.parametrize("path", ["/v1/applications/ASENSO-404", "/v1/applications/ASENSO-404/status"])
def test_unknown_reference_lookup_is_404(client, path):
    r = client.get(path)
    assert r.status_code == 404
    assert r.json()["detail"] == "Application with reference number ASENSO-404 not found."


def test_upload_new_application(client, model_client):
    files = [
        ("id_photos", ("id.jpg", b"\xff\xd8\xff-id", "image/jpeg")),
        ("id_photos", ("id2.png", b"\x89PNG-id", "image/png")),
        ("documents", ("billing.pdf", b"%PDF-billing", "application/pdf")),
    ]
    r = client.post("/v1/evaluations/upload", data={"loan_type": "new", "typed_text": "salary 8000"}, files=files)
    assert r.status_code == 200, r.text
    assert r.json()["idEvidenceCount"] == 2
    assert r.json()["supportingEvidenceCount"] == 1

    request = model_client.evaluate_calls[0]
    assert [evidence_codec.decode(u).data for u in request.id_evidence] == [b"\xff\xd8\xff-id", b"\x89PNG-id"]
    assert evidence_codec.decode(request.supporting_evidence[0]).media_type == "application/pdf"


def test_upload_rejects_document_type_for_id_photo(client, model_client):
    files = [("id_photos", ("id.pdf", b"%PDF", "application/pdf"))]
    r = client.post("/v1/evaluations/upload", data={"loan_type": "new"}, files=files)
    assert r.status_code == 422
    assert "id.pdf" in r.json()["detail"]
    assert model_client.evaluate_calls == []


def test_upload_rejects_oversized_file(client, model_client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 8)
    files = [("documents", ("big.pdf", b"%PDF" + b"0" * 64, "application/pdf"))]
    r = client.post("/v1/evaluations/upload", data={"loan_type": "new"}, files=files)
    assert r.status_code == 422
    assert model_client.evaluate_calls == []


def test_json_evidence_gets_the_same_admission_rules(client, model_client):
    r = _evaluate(client, isNewApplication=True, idEvidence=[BILLING])
    assert r.status_code == 422
    assert r.json()["detail"].startswith("Evaluation failed: ID photo 1: only .jpg")
    assert model_client.evaluate_calls == []


def test_oversized_json_evidence_is_422(client, model_client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 8)
    r = _evaluate(client, isNewApplication=True, supportingEvidence=[BILLING])
    assert r.status_code == 422
    assert "max file size" in r.json()["detail"]
    assert model_client.evaluate_calls == []


def test_store_outage_is_503(client, db, model_client, monkeypatch):
    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", broken_commit)
    r = _evaluate(client, isNewApplication=True, narrative="salary 8000")
    assert r.status_code == 503
    assert r.json()["detail"].startswith("Evaluation failed: Could not save application")
    assert len(model_client.evaluate_calls) == 1


def test_snake_case_model_reply_is_502(client, model_client):
    model_client.raw = '{"full_name": "Maria Santos", "credit_score": 720}'
    r = _evaluate(client, isNewApplication=True, narrative="salary 8000")
    assert r.status_code == 502
    assert "full_name" in r.json()["detail"]
