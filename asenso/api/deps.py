from typing import Iterator
from fastapi import Request
from sqlalchemy.orm import Session
from asenso.db.session import SessionLocal
from asenso.services.model_client import ModelClient

def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_model_client(request: Request) -> ModelClient:
    return request.app.state.model_client

def get_policy_rules(request: Request) -> str:
    return request.app.state.policy_rules
