"""HTTP surface: CV upload, status lookup and improvement suggestions."""

import json
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from cv_intake_ai.bootstrap import PipelineServices, build_services
from cv_intake_ai.cv_pipeline.errors import (
    EmptyFileError,
    IntakeError,
    ModelUnavailableError,
    RetryExhaustedError,
    StorageError,
)
from cv_intake_ai.cv_pipeline.quality import field_errors
from cv_intake_ai.cv_pipeline.upload_pipeline import CVUploadPipeline
from cv_intake_ai.schemas.cv_profile import ExtractedProfile
from cv_intake_ai.schemas.cv_record import AnalysisStatus
from cv_intake_ai.schemas.upload import UploadedFile
from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)

UserResolver = Callable[[Request], Optional[str]]

RETRY_EXHAUSTED_USER_MESSAGE = (
    "We couldn't generate suggestions for your CV right now. Please try again in a few minutes."
)


def header_user_resolver(request: Request) -> Optional[str]:
    """Default auth collaborator: the caller's user id from the X-User-Id header."""
    user_id = (request.headers.get("X-User-Id") or "").strip()
    return user_id or None


def _error(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


async def _read_upload(file: Any, max_bytes: int) -> Optional[UploadedFile]:
    """A non-file form value counts as no file. At most max_bytes + 1 bytes are read."""
    if file is None or isinstance(file, str):
        return None
    data = await file.read(max_bytes + 1)
    declared = file.size if file.size is not None else len(data)
    return UploadedFile(
        filename=file.filename or "",
        content_type=file.content_type or "",
        declared_size=declared,
        data=data,
    )


def create_app(
    services: Optional[PipelineServices] = None,
    resolve_user: Optional[UserResolver] = None,
) -> FastAPI:
    services = services or build_services()
    resolve_user = resolve_user or header_user_resolver
    pipeline = CVUploadPipeline.from_services(services)

    app = FastAPI(title="CV Intake AI", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.services = services

    @app.post("/api/cv/upload", status_code=201)
    async def upload_cv(request: Request):
        user_id = resolve_user(request)
        if not user_id:
            return _error(401, "Unauthorized")

        form = await request.form()
        upload = await _read_upload(form.get("file"), pipeline.max_bytes)
        try:
            record = await pipeline.process_upload(user_id, upload)
        except EmptyFileError as e:
            return _error(400, e.message, details=e.details)
        except IntakeError as e:
            return _error(400, e.message)
        except StorageError:
            return _error(500, "Failed to upload CV")
        except Exception:
            logger.exception("Unexpected error while uploading CV for user %s", user_id)
            return _error(500, "Failed to upload CV")

        return JSONResponse(
            status_code=201,
            content={
                "cvId": record.id,
                "storageKey": record.storage_key,
                "filename": record.filename,
                "status": record.status.value,
            },
        )

    @app.get("/api/cv/{cv_id}/status")
    async def cv_status(cv_id: str, request: Request):
        user_id = resolve_user(request)
        if not user_id:
            return _error(401, "Unauthorized")
        record = await services.repository.get(cv_id)
        if record is None:
            return _error(404, "CV not found")
        if record.user_id != user_id:
            return _error(403, "Forbidden")

        body = {"cvId": record.id, "status": record.status.value}
        if record.status == AnalysisStatus.COMPLETED:
            body["improvementScore"] = record.improvement_score
        return body

    @app.post("/api/cv-improvement")
    async def cv_improvement(request: Request):
        user_id = resolve_user(request)
        if not user_id:
            return _error(401, "Unauthorized")

        try:
            raw = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _error(400, "Invalid CV data format", details={"root": ["Body must be valid JSON"]})
        if not isinstance(raw, dict):
            return _error(400, "Invalid CV data format", details={"root": ["Expected a JSON object"]})
        try:
            cv_data = ExtractedProfile.model_validate(raw)
        except ValidationError as e:
            return _error(400, "Invalid CV data format", details=field_errors(e))
        if cv_data.is_empty():
            return _error(400, "Invalid CV data format", details={"root": ["CV data is empty"]})

        try:
            return await services.suggestions.generate(cv_data)
        except ModelUnavailableError as e:
            return _error(503, e.kind, message=e.message)
        except RetryExhaustedError as e:
            logger.error("Suggestion generation exhausted for user %s: %s", user_id, e.message)
            return _error(
                503,
                e.kind,
                message=e.message,
                userMessage=RETRY_EXHAUSTED_USER_MESSAGE,
            )
        except Exception:
            logger.exception("Unexpected error while generating suggestions for user %s", user_id)
            return _error(500, "Failed to generate suggestions")

    return app
