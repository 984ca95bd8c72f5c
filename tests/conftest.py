"""Shared fixtures: scripted model client, in-memory collaborators, zero-delay retry policies."""

import json
from typing import List, Optional, Union

import pytest

from cv_intake_ai.bootstrap import build_services
from cv_intake_ai.cv_pipeline.retry import RetryController, RetryPolicy
from cv_intake_ai.schemas.upload import UploadedFile
from cv_intake_ai.services.diagnostics import CollectingDiagnosticSink
from cv_intake_ai.services.llm_client import ModelClient

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

Scripted = Union[str, Exception]


class StubModelClient(ModelClient):
    """Returns queued responses in order (the last one repeats); queued exceptions are raised."""

    def __init__(self, responses: Optional[List[Scripted]] = None) -> None:
        self.responses: List[Scripted] = list(responses or [])
        self.calls: List[dict] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def generate(self, prompt, document=None, temperature=None) -> str:
        self.calls.append({"prompt": prompt, "document": document, "temperature": temperature})
        if not self.responses:
            return ""
        index = min(len(self.calls), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response


def profile_json(**overrides) -> str:
    data = {
        "contactInfo": {"name": "Ada Lovelace", "email": "ada@example.com", "phone": None},
        "about": "Backend engineer with ten years of experience building data-heavy web services.",
        "skills": [
            {"name": "Python", "category": "Programming Languages", "level": "EXPERT"},
            {"name": "PostgreSQL"},
            {"name": "Docker", "category": "Tools"},
        ],
        "experience": [
            {
                "title": "Senior Engineer",
                "company": "Analytical Engines Ltd",
                "description": "Built the billing platform.",
                "startDate": "2019-03",
                "endDate": None,
            }
        ],
        "education": [],
        "achievements": None,
    }
    data.update(overrides)
    return json.dumps(data)


def suggestion(section="experience", suggestion_type="wording", **overrides) -> dict:
    item = {
        "section": section,
        "suggestionType": suggestion_type,
        "originalText": "Worked on billing",
        "suggestedText": f"Led the {section} rewrite, cutting invoice errors by 30%",
        "reasoning": "Quantified outcomes make the impact of this work clear to recruiters.",
        "priority": "medium",
    }
    item.update(overrides)
    return item


def suggestions_json(items: List[dict]) -> str:
    return json.dumps({"suggestions": items})


def make_upload(data: bytes = b"Ada Lovelace\nada@example.com\nSenior Engineer", **overrides) -> UploadedFile:
    fields = {
        "filename": "cv.pdf",
        "content_type": PDF_MIME,
        "declared_size": len(data),
        "data": data,
    }
    fields.update(overrides)
    return UploadedFile(**fields)


@pytest.fixture
def stub_model():
    return StubModelClient([profile_json()])


@pytest.fixture
def diagnostics():
    return CollectingDiagnosticSink()


@pytest.fixture
def zero_delay_controller(diagnostics):
    def _make(max_attempts: int = 3) -> RetryController:
        return RetryController(RetryPolicy.fixed(max_attempts, 0.0), diagnostic_sink=diagnostics)

    return _make


@pytest.fixture
def make_services(diagnostics):
    """Default wiring with in-memory collaborators and zero-delay retries."""

    def _make(model_client, **kwargs):
        kwargs.setdefault("extraction_policy", RetryPolicy.fixed(3, 0.0))
        kwargs.setdefault("suggestion_policy", RetryPolicy.fixed(7, 0.0))
        kwargs.setdefault("diagnostic_sink", diagnostics)
        return build_services(model_client=model_client, **kwargs)

    return _make
