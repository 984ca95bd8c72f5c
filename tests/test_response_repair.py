import json

import pytest

from cv_intake_ai.cv_pipeline.errors import JSONParseError
from cv_intake_ai.cv_pipeline.response_repair import parse_json_candidate, repair_json_text

SAMPLES = [
    "",
    "no json here at all",
    '{"a": 1}',
    '```json\n{"a": 1,}\n```',
    '```\n{"a": [1, 2,],}\n```',
    'Sure! Here is the result:\n{"a": {"b": 2}} Hope this helps.',
    '{"a":\n   "value"}',
    '{"a": 1} trailing {"b": 2}',
    '{"suggestions": [{"section": "about", "reasoning": "x"}, {"section": "skills", "reas',
    '{"suggestions": [',
    'prefix [1, 2] {"unterminated": "str',
    '{"text": "a brace } inside a string", "n": 1}',
    '```json\n{"suggestions": [{"a": 1},\n{"b": 2},\n',
]


@pytest.mark.parametrize("raw", SAMPLES)
def test_repair_is_idempotent(raw):
    once = repair_json_text(raw)
    assert repair_json_text(once) == once


@pytest.mark.parametrize("raw", SAMPLES + [None])
def test_repair_never_raises(raw):
    assert isinstance(repair_json_text(raw), str)


def test_fenced_json_with_trailing_comma_parses():
    raw = '```json\n{"name": "Ada", "skills": ["Python"],}\n```'
    assert parse_json_candidate(repair_json_text(raw)) == {"name": "Ada", "skills": ["Python"]}


def test_keeps_only_first_object_and_drops_prose():
    raw = 'Here you go: {"a": 1, "b": {"c": 2}} and also {"d": 3}'
    assert json.loads(repair_json_text(raw)) == {"a": 1, "b": {"c": 2}}


def test_nested_trailing_commas_removed():
    assert json.loads(repair_json_text('{"a": [1, {"b": 2,},],}')) == {"a": [1, {"b": 2}]}


def test_line_break_after_colon_collapsed():
    assert repair_json_text('{"about":\n\n   "text"}') == '{"about": "text"}'


def test_truncated_suggestions_cut_to_last_complete_item():
    raw = (
        '{"suggestions": [{"section": "about", "reasoning": "first one"}, '
        '{"section": "skills", "reasoning": "second one"}, {"section": "exp'
    )
    parsed = parse_json_candidate(repair_json_text(raw))
    assert [s["section"] for s in parsed["suggestions"]] == ["about", "skills"]


def test_parse_error_carries_bounded_excerpt():
    raw = "x" * 1000
    with pytest.raises(JSONParseError) as exc:
        parse_json_candidate(repair_json_text(raw), raw=raw)
    assert len(exc.value.head) == 200
    assert len(exc.value.tail) == 200
