import asyncio

import pytest

from cv_intake_ai.cv_pipeline.errors import EmptyFileError, StorageError
from cv_intake_ai.cv_pipeline.retry import CancellationToken
from cv_intake_ai.cv_pipeline.upload_pipeline import CVUploadPipeline
from cv_intake_ai.schemas.cv_record import DIRECT_EXTRACTION_TEXT_SENTINEL, AnalysisStatus
from cv_intake_ai.services.profile_sync import InMemoryProfileSync
from cv_intake_ai.services.repository import InMemoryCVRepository
from cv_intake_ai.services.storage import InMemoryObjectStorage

from conftest import StubModelClient, make_upload, profile_json


class RecordingRepository(InMemoryCVRepository):
    """Remembers every status written, to check the transition sequence."""

    def __init__(self):
        super().__init__()
        self.statuses = []

    async def update(self, cv_id, **fields):
        if "status" in fields:
            self.statuses.append(fields["status"])
        return await super().update(cv_id, **fields)


class FailingProfileSync(InMemoryProfileSync):
    async def sync(self, user_id, profile):
        raise RuntimeError("profile tables unavailable")


def _pipeline(make_services, stub, **kwargs):
    services = make_services(stub, **kwargs)
    return services, CVUploadPipeline.from_services(services)


def test_successful_upload_completes(make_services):
    repository = RecordingRepository()
    services, pipeline = _pipeline(make_services, StubModelClient([profile_json()]), repository=repository)

    record = asyncio.run(pipeline.process_upload("user-1", make_upload()))

    assert record.status == AnalysisStatus.COMPLETED
    assert record.improvement_score == 41
    assert record.extracted_text == DIRECT_EXTRACTION_TEXT_SENTINEL
    assert len(record.content_hash) == 64
    assert record.storage_key.startswith("cvs/user-1/") and record.storage_key.endswith(".pdf")
    assert repository.statuses == [AnalysisStatus.ANALYZING, AnalysisStatus.COMPLETED]
    assert record.storage_key in services.storage
    assert services.profile_sync.profiles["user-1"]["name"] == "Ada Lovelace"


def test_document_is_sent_to_model(make_services):
    stub = StubModelClient([profile_json()])
    _, pipeline = _pipeline(make_services, stub)
    upload = make_upload()
    asyncio.run(pipeline.process_upload("user-1", upload))
    assert stub.calls[0]["document"] == upload


@pytest.mark.parametrize(
    "responses",
    [
        ["not json"],
        [""],
        [RuntimeError("model down")],
        ['{"contactInfo": {}, "skills": []}'],
    ],
)
def test_every_accepted_upload_reaches_a_terminal_state(make_services, responses):
    repository = RecordingRepository()
    _, pipeline = _pipeline(make_services, StubModelClient(responses), repository=repository)

    record = asyncio.run(pipeline.process_upload("user-1", make_upload()))

    stored = asyncio.run(repository.get(record.id))
    assert stored.status == AnalysisStatus.FAILED
    assert stored.status.is_terminal
    assert stored.improvement_score is None
    assert repository.statuses == [AnalysisStatus.ANALYZING, AnalysisStatus.FAILED]


def test_extraction_failure_names_missing_strategy(make_services):
    _, pipeline = _pipeline(make_services, StubModelClient(["not json"]))
    record = asyncio.run(pipeline.process_upload("user-1", make_upload()))
    assert "All extraction strategies failed" in record.failure_reason


def test_profile_sync_failure_forces_failed(make_services):
    _, pipeline = _pipeline(
        make_services, StubModelClient([profile_json()]), profile_sync=FailingProfileSync()
    )
    record = asyncio.run(pipeline.process_upload("user-1", make_upload()))
    assert record.status == AnalysisStatus.FAILED
    assert "Profile sync failed" in record.failure_reason


def test_no_model_client_fails_upload(make_services):
    services, pipeline = _pipeline(make_services, StubModelClient([profile_json()]))
    for strategy in services.selector.strategies:
        strategy.model_client = None
    record = asyncio.run(pipeline.process_upload("user-1", make_upload()))
    assert record.status == AnalysisStatus.FAILED
    assert "No extraction strategy is available" in record.failure_reason


def test_traditional_fallback_when_enabled(make_services):
    stub = StubModelClient(["garbage", "garbage", "garbage", profile_json(contactInfo={"name": "Ada"})])
    _, pipeline = _pipeline(make_services, stub, enable_traditional=True)
    upload = make_upload(
        data=b"Ada Lovelace\nada@example.com\nSenior Engineer at Engines", content_type="text/plain", filename="cv.txt"
    )

    record = asyncio.run(pipeline.process_upload("user-1", upload))

    assert record.status == AnalysisStatus.COMPLETED
    assert "ada@example.com" in record.extracted_text
    assert stub.call_count == 4
    assert stub.calls[3]["document"] is None


def test_intake_errors_are_raised_before_storing(make_services):
    services, pipeline = _pipeline(make_services, StubModelClient([profile_json()]))
    with pytest.raises(EmptyFileError):
        asyncio.run(pipeline.process_upload("user-1", make_upload(data=b"", declared_size=0)))
    assert services.storage._objects == {}


def test_record_creation_failure_deletes_stored_file(make_services):
    class BrokenRepository(InMemoryCVRepository):
        async def create(self, record):
            raise ConnectionError("db down")

    storage = InMemoryObjectStorage()
    _, pipeline = _pipeline(
        make_services, StubModelClient([profile_json()]), storage=storage, repository=BrokenRepository()
    )
    with pytest.raises(StorageError):
        asyncio.run(pipeline.process_upload("user-1", make_upload()))
    assert storage._objects == {}


def test_cancelled_upload_ends_failed(make_services):
    repository = RecordingRepository()
    _, pipeline = _pipeline(make_services, StubModelClient([profile_json()]), repository=repository)
    token = CancellationToken()
    token.cancel()

    record = asyncio.run(pipeline.process_upload("user-1", make_upload(), cancel_token=token))

    assert record.status == AnalysisStatus.FAILED
    assert record.failure_reason == "Operation cancelled"


def test_status_write_failure_is_logged_not_raised(make_services, caplog):
    class FlakyRepository(InMemoryCVRepository):
        async def update(self, cv_id, **fields):
            if fields.get("status") in (AnalysisStatus.COMPLETED, AnalysisStatus.FAILED):
                raise ConnectionError("db down")
            return await super().update(cv_id, **fields)

    _, pipeline = _pipeline(make_services, StubModelClient([profile_json()]), repository=FlakyRepository())
    record = asyncio.run(pipeline.process_upload("user-1", make_upload()))

    assert record.status == AnalysisStatus.ANALYZING
    assert any(r.levelname == "CRITICAL" for r in caplog.records)
