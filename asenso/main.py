# asenso/main.py
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from asenso.config import settings, setup_logging
from asenso.db.session import init_db
from asenso.errors import EvaluationError
from asenso.api.endpoints import evaluations, applications
from asenso.services.model_client import ModelClient, OpenAIModelClient

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield

def create_app(model_client: Optional[ModelClient] = None, policy_rules: Optional[str] = None) -> FastAPI:
    setup_logging()
    app = FastAPI(title="Asenso Loan Evaluator API", version="1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    # shared collaborators, built once per app
    app.state.model_client = model_client or OpenAIModelClient()
    app.state.policy_rules = policy_rules or settings.POLICY_RULES

    # Routers (versioned)
    app.include_router(evaluations.router, prefix=settings.API_V1_STR)
    app.include_router(applications.router, prefix=settings.API_V1_STR)

    @app.exception_handler(EvaluationError)
    async def evaluation_error_handler(request: Request, exc: EvaluationError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app

app = create_app()
