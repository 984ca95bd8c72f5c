import asyncio

import pytest

from cv_intake_ai.cv_pipeline.cv_extractor import (
    DirectExtractionStrategy,
    ExtractionStrategySelector,
    TraditionalExtractionStrategy,
)
from cv_intake_ai.cv_pipeline.errors import (
    NoExtractionStrategyAvailableError,
    RetryExhaustedError,
    TextExtractionError,
)
from cv_intake_ai.cv_pipeline.text_extractor import extract_text_from_file
from cv_intake_ai.schemas.cv_record import DIRECT_EXTRACTION_TEXT_SENTINEL

from conftest import StubModelClient, make_upload, profile_json


def test_direct_strategy_returns_profile_and_sentinel(zero_delay_controller):
    stub = StubModelClient(["```json\n" + profile_json() + "\n```"])
    strategy = DirectExtractionStrategy(stub, zero_delay_controller(3), enabled=True)

    outcome = asyncio.run(strategy.extract(make_upload()))

    assert outcome.strategy == "direct"
    assert outcome.extracted_text == DIRECT_EXTRACTION_TEXT_SENTINEL
    assert outcome.profile.contact_info.name == "Ada Lovelace"
    assert outcome.attempt == 1


def test_strategy_availability(zero_delay_controller):
    stub = StubModelClient()
    assert DirectExtractionStrategy(stub, zero_delay_controller(), enabled=True).is_available()
    assert not DirectExtractionStrategy(stub, zero_delay_controller(), enabled=False).is_available()
    assert not DirectExtractionStrategy(None, zero_delay_controller(), enabled=True).is_available()
    assert not TraditionalExtractionStrategy(stub, zero_delay_controller()).is_available()


def test_traditional_strategy_backfills_email(zero_delay_controller):
    stub = StubModelClient([profile_json(contactInfo={"name": "Ada"})])
    strategy = TraditionalExtractionStrategy(
        stub,
        zero_delay_controller(3),
        text_extractor=lambda data, mime: "Ada\nContact: ada@example.com, backup ada@other.org",
        enabled=True,
    )

    outcome = asyncio.run(strategy.extract(make_upload()))

    assert outcome.profile.contact_info.email == "ada@example.com"
    assert outcome.profile.contact_info.name == "Ada"
    assert "ada@example.com" in stub.calls[0]["prompt"]


def test_traditional_strategy_keeps_model_email(zero_delay_controller):
    stub = StubModelClient([profile_json()])
    strategy = TraditionalExtractionStrategy(
        stub, zero_delay_controller(), text_extractor=lambda d, m: "other@example.com", enabled=True
    )
    outcome = asyncio.run(strategy.extract(make_upload()))
    assert outcome.profile.contact_info.email == "ada@example.com"


def test_traditional_strategy_truncates_prompt_text(zero_delay_controller):
    stub = StubModelClient([profile_json()])
    strategy = TraditionalExtractionStrategy(
        stub,
        zero_delay_controller(),
        text_extractor=lambda d, m: "A" * 50 + "B" * 50,
        enabled=True,
        max_prompt_chars=50,
    )
    asyncio.run(strategy.extract(make_upload()))
    assert "B" * 10 not in stub.calls[0]["prompt"]


def test_traditional_strategy_without_text(zero_delay_controller):
    stub = StubModelClient([profile_json()])
    strategy = TraditionalExtractionStrategy(
        stub, zero_delay_controller(), text_extractor=lambda d, m: None, enabled=True
    )
    with pytest.raises(TextExtractionError):
        asyncio.run(strategy.extract(make_upload()))
    assert stub.call_count == 0


def test_selector_falls_through_to_next_strategy(zero_delay_controller):
    failing = DirectExtractionStrategy(StubModelClient(["nope"]), zero_delay_controller(2), enabled=True)
    working = TraditionalExtractionStrategy(
        StubModelClient([profile_json()]),
        zero_delay_controller(2),
        text_extractor=lambda d, m: "cv text",
        enabled=True,
    )
    outcome = asyncio.run(ExtractionStrategySelector([failing, working]).extract(make_upload()))
    assert outcome.strategy == "traditional"


def test_selector_raises_when_direct_fails_and_traditional_disabled(zero_delay_controller):
    selector = ExtractionStrategySelector([
        DirectExtractionStrategy(StubModelClient(["nope"]), zero_delay_controller(2), enabled=True),
        TraditionalExtractionStrategy(StubModelClient(), zero_delay_controller(2), enabled=False),
    ])
    with pytest.raises(NoExtractionStrategyAvailableError) as exc:
        asyncio.run(selector.extract(make_upload()))
    assert isinstance(exc.value.__cause__, RetryExhaustedError)


def test_selector_with_nothing_available(zero_delay_controller):
    selector = ExtractionStrategySelector([
        DirectExtractionStrategy(None, zero_delay_controller(), enabled=True),
    ])
    with pytest.raises(NoExtractionStrategyAvailableError):
        asyncio.run(selector.extract(make_upload()))


def test_plain_text_extraction_normalizes_whitespace():
    text = extract_text_from_file("Ada   Lovelace\n\n\n\nEngineer".encode("utf-8"), "text/plain")
    assert text == "Ada Lovelace\n\nEngineer"


def test_unsupported_or_empty_text_extraction():
    assert extract_text_from_file(b"data", "image/png") is None
    assert extract_text_from_file(b"   ", "text/plain") is None
