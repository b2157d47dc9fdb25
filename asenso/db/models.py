from sqlalchemy import Column, String, Text, DateTime, JSON as SAJSON
import datetime as dt
from asenso.db.session import Base

def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

class ApplicationRecord(Base):
    __tablename__ = "loan_applications"
    reference_number = Column(String(64), primary_key=True, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # encoded evidence (data URIs), append-only across rounds
    id_evidence = Column(SAJSON, default=list, nullable=False)
    supporting_evidence = Column(SAJSON, default=list, nullable=False)
    narrative = Column(Text, default="", nullable=False)

    # latest EvaluationResult, camelCase keys; replaced wholesale every round
    evaluation = Column(SAJSON, nullable=True)
    last_evaluated_at = Column(DateTime, nullable=True)
