"""Provider response parsing."""

import json

import pytest

from modules.validation.core.exceptions import ParseError
from modules.validation.core.interfaces import Citation, ParseMode, Requirement, ResultStatus
from modules.validation.parsing.response_parser import (
    FALLBACK_REASONING,
    ResponseParser,
    extract_json_object,
    infer_verdict,
    normalize_key,
    normalize_status,
)

KE_1 = Requirement(id=11, requirement_type="knowledge_evidence", number="1", text="Fatigue causes")
KE_2 = Requirement(id=12, requirement_type="knowledge_evidence", number="2", text="Fatigue controls")


def parse(text, requirements=(KE_1,), **kwargs):
    return ResponseParser().parse(text, "knowledge_evidence", "TLIF0025", list(requirements), **kwargs)


def test_normalize_key():
    assert normalize_key("smartQuestion") == "smart_question"
    assert normalize_key("Mapped Content") == "mapped_content"
    assert normalize_key("benchmark-answer") == "benchmark_answer"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Met", ResultStatus.COMPLIANT),
        ("Not Met", ResultStatus.NON_COMPLIANT),
        ("not_met", ResultStatus.NON_COMPLIANT),
        ("Partially Met", ResultStatus.NEEDS_REVIEW),
        ("maybe", ResultStatus.NEEDS_REVIEW),
        (None, ResultStatus.NEEDS_REVIEW),
    ],
)
def test_normalize_status(value, expected):
    assert normalize_status(value) == expected


def test_extract_json_from_fenced_block_with_prose():
    text = 'Here is my assessment:\n```json\n{"status": "Met"}\n```\nThanks.'
    assert extract_json_object(text) == {"status": "Met"}


def test_extract_json_embedded_in_prose():
    text = 'Result follows {"status": "Not Met", "reasoning": "missing"} end'
    assert extract_json_object(text)["status"] == "Not Met"


def test_extract_json_raises_without_json():
    with pytest.raises(ValueError):
        extract_json_object("no structure here")


def test_primary_parse_of_single_object():
    text = json.dumps(
        {
            "status": "Not Met",
            "reasoning": "No question covers fatigue causes",
            "mappedContent": "",
            "smartQuestion": "What are three causes of driver fatigue?",
            "benchmarkAnswer": "Long shifts, night driving, poor sleep",
            "unmapped_content": "Add a question on fatigue causes",
            "citations": [{"document": "guide.pdf", "pages": "4, 5", "quote": "Section 2"}],
        }
    )

    outcome = parse(text)

    assert outcome.mode == ParseMode.PRIMARY
    result = outcome.response.results[0]
    assert result.requirement_id == 11
    assert result.status == ResultStatus.NON_COMPLIANT
    assert result.smart_questions == "What are three causes of driver fatigue?"
    assert result.benchmark_answer == "Long shifts, night driving, poor sleep"
    assert result.recommendations == "Add a question on fatigue causes"
    assert result.citations == [Citation(document_name="guide.pdf", page_numbers=[4, 5], excerpt="Section 2")]


def test_compliant_result_gets_not_applicable_question_fields():
    text = json.dumps({"status": "Met", "smart_question": "unused", "benchmark_answer": "unused"})

    result = parse(text).response.results[0]

    assert result.status == ResultStatus.COMPLIANT
    assert result.smart_questions == "N/A"
    assert result.benchmark_answer == "N/A"


def test_batch_entries_match_by_number():
    text = json.dumps(
        {
            "validations": [
                {"requirement_number": "2", "status": "Met"},
                {"requirement_number": "1", "status": "Partially Met"},
            ]
        }
    )

    results = parse(text, requirements=(KE_1, KE_2)).response.results

    by_id = {r.requirement_id: r.status for r in results}
    assert by_id == {11: ResultStatus.NEEDS_REVIEW, 12: ResultStatus.COMPLIANT}


def test_fallback_parse_infers_verdict_and_is_tagged():
    text = "Requirement 1 is Not Met: the booklet never asks about fatigue causes."

    outcome = parse(text)

    assert outcome.mode == ParseMode.FALLBACK
    result = outcome.response.results[0]
    assert result.status == ResultStatus.NON_COMPLIANT
    assert result.reasoning == FALLBACK_REASONING
    assert "never asks" in result.mapped_content


def test_json_without_status_uses_fallback():
    outcome = parse('{"reasoning": "looks fine, met"}')
    assert outcome.mode == ParseMode.FALLBACK
    assert outcome.response.results[0].status == ResultStatus.COMPLIANT


@pytest.mark.parametrize("text", ['"Met"', "null", "42", "true"])
def test_scalar_json_reply_uses_fallback(text):
    outcome = parse(text)

    assert outcome.mode == ParseMode.FALLBACK
    assert [r.requirement_id for r in outcome.response.results] == [11]


def test_extract_json_rejects_bare_scalar():
    with pytest.raises(ValueError):
        extract_json_object("true")


def test_grounding_citations_fill_empty_citations():
    grounding = [Citation(document_name="store-doc.pdf", page_numbers=[3], excerpt="Q4")]

    result = parse(json.dumps({"status": "Met"}), grounding_citations=grounding).response.results[0]

    assert result.citations == grounding


def test_empty_response_raises():
    with pytest.raises(ParseError):
        parse("   ")


def test_no_requirements_raises():
    with pytest.raises(ParseError):
        parse('{"status": "Met"}', requirements=())


@pytest.mark.parametrize(
    "text,expected",
    [
        ("This requirement is not met.", ResultStatus.NON_COMPLIANT),
        ("Partially met, the task lacks detail", ResultStatus.NEEDS_REVIEW),
        ("Fully met by question 3", ResultStatus.COMPLIANT),
        ("Unclear", ResultStatus.NEEDS_REVIEW),
        ("", ResultStatus.NEEDS_REVIEW),
    ],
)
def test_infer_verdict(text, expected):
    assert infer_verdict(text) == expected
