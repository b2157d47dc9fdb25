# -*- coding: utf-8 -*-
from __future__ import annotations
import logging
import mimetypes
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Protocol

from openai import OpenAI

from asenso.config import settings
from asenso.db.schemas import EvaluationResult
from asenso.services import evidence_codec, prompts

logger = logging.getLogger(__name__)


@dataclass
class EvaluationRequest:
    reference_number: str
    id_evidence: List[str] = field(default_factory=list)
    supporting_evidence: List[str] = field(default_factory=list)
    narrative: str = ""
    policy_rules: str = ""


@dataclass
class AdviceRequest:
    credit_score: float
    is_eligible: bool
    explanation: str
    violation_flags: List[str] = field(default_factory=list)

    @property
    def violations_text(self) -> str:
        return ", ".join(self.violation_flags) if self.violation_flags else "None"


class ModelClient(Protocol):
    def evaluate(self, request: EvaluationRequest) -> str:
        """Return the raw JSON text of an EvaluationResult."""

    def advise(self, request: AdviceRequest) -> str:
        """Return bulleted improvement advice."""


@lru_cache(maxsize=1)
def evaluation_json_schema() -> Dict[str, Any]:
    return EvaluationResult.model_json_schema(by_alias=True)

def _evidence_parts(uris: List[str], label: str) -> List[Dict[str, Any]]:
    parts: List[Dict[str, Any]] = []
    for i, uri in enumerate(uris, start=1):
        mt = evidence_codec.media_type(uri)
        if mt.startswith("image/"):
            parts.append({"type": "input_image", "image_url": uri, "detail": "auto"})
        else:
            ext = mimetypes.guess_extension(mt) or ""
            parts.append({"type": "input_file", "filename": f"{label}-{i}{ext}", "file_data": uri})
    return parts


class OpenAIModelClient:
    """ModelClient backed by the OpenAI Responses API. The SDK client is built on first use."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 timeout: Optional[int] = None):
        self.api_key = api_key or settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self.timeout = timeout or settings.LLM_TIMEOUT
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def evaluate(self, request: EvaluationRequest) -> str:
        content: List[Dict[str, Any]] = [{
            "type": "input_text",
            "text": prompts.evaluation_text(
                request.reference_number, request.narrative, request.policy_rules,
                len(request.id_evidence), len(request.supporting_evidence),
            ),
        }]
        if request.id_evidence:
            content.append({"type": "input_text", "text": "ID Photos:"})
            content += _evidence_parts(request.id_evidence, "id")
        if request.supporting_evidence:
            content.append({"type": "input_text", "text": "Documents:"})
            content += _evidence_parts(request.supporting_evidence, "document")

        resp = self.client.responses.create(
            model=self.model,
            instructions=prompts.EVALUATION_INSTRUCTIONS,
            input=[{"role": "user", "content": content}],
            text={"format": {
                "type": "json_schema",
                "name": "evaluation_result",
                "schema": evaluation_json_schema(),
                "strict": True,
            }},
            temperature=0.2,
        )
        return resp.output_text

    def advise(self, request: AdviceRequest) -> str:
        resp = self.client.responses.create(
            model=self.model,
            instructions=prompts.ADVICE_INSTRUCTIONS,
            input=prompts.advice_text(
                request.credit_score, request.is_eligible,
                request.explanation, request.violations_text,
            ),
            temperature=0.3,
        )
        return resp.output_text
