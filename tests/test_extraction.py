import json

import pytest

from study_assistant.errors import MalformedModelOutput
from study_assistant.extraction import (
    ExtractionVariant,
    extract_flashcards,
    extract_json_array,
    extract_mcqs,
    extract_structured,
    extract_summary,
    parse_structured,
)

VALID_MCQ = {
    "question": "What is 2 + 2?",
    "options": {"A": "3", "B": "4", "C": "5", "D": "22"},
    "correct_answer": "B",
}


def test_flashcards_are_recovered_from_surrounding_commentary():
    text = 'Here are your cards: [{"question":"Q1","answer":"A1"}] Enjoy!'

    assert extract_flashcards(text) == [{"question": "Q1", "answer": "A1"}]


def test_extra_fields_on_flashcards_are_kept():
    text = '[{"question": "Q", "answer": "A", "difficulty": "easy"}]'

    assert extract_flashcards(text)[0]["difficulty"] == "easy"


def test_summary_points_are_returned_in_order():
    assert extract_summary('Summary:\n["first", "second", "third"]') == ["first", "second", "third"]


def test_valid_mcq_passes():
    assert extract_mcqs(json.dumps([VALID_MCQ])) == [VALID_MCQ]


def test_empty_array_is_valid():
    assert extract_flashcards("[]") == []


@pytest.mark.parametrize("variant", list(ExtractionVariant))
def test_output_without_brackets_is_malformed(variant):
    with pytest.raises(MalformedModelOutput) as excinfo:
        extract_structured(variant, "I could not find anything to summarise.")

    assert excinfo.value.variant == variant.value
    assert "No JSON array found" in excinfo.value.message


@pytest.mark.parametrize("variant", list(ExtractionVariant))
def test_opening_bracket_after_last_closing_bracket_is_malformed(variant):
    with pytest.raises(MalformedModelOutput) as excinfo:
        extract_structured(variant, "oops ] then [")

    assert excinfo.value.message == f"No JSON array found in model output for {variant.value}"


def test_unparseable_json_reports_the_variant():
    with pytest.raises(MalformedModelOutput) as excinfo:
        extract_json_array("[{'question': 'single quotes'}]", ExtractionVariant.FLASHCARDS)

    assert excinfo.value.message.startswith("Failed to parse flashcards JSON:")
    assert isinstance(excinfo.value.__cause__, ValueError)


def test_flashcard_missing_answer_names_index_and_rule():
    with pytest.raises(MalformedModelOutput) as excinfo:
        extract_flashcards('[{"question": "Q1", "answer": "A1"}, {"question": "Q2"}]')

    error = excinfo.value
    assert error.index == 1
    assert error.rule == "missing field 'answer'"
    assert error.message == "Invalid flashcards item at index 1: missing field 'answer'"
    assert error.status_code == 500


def test_flashcard_with_non_string_field_is_rejected():
    with pytest.raises(MalformedModelOutput) as excinfo:
        extract_flashcards('[{"question": 42, "answer": "A"}]')

    assert excinfo.value.rule == "field 'question' must be a string, got int"


def test_summary_point_must_be_string():
    with pytest.raises(MalformedModelOutput) as excinfo:
        extract_summary('["fine", {"point": "nested"}]')

    assert excinfo.value.index == 1
    assert excinfo.value.rule == "expected a string, got dict"


def test_mcq_with_three_options_is_rejected():
    mcq = '[{"question": "Q", "options": {"A": "1", "B": "2", "C": "3"}, "correct_answer": "A"}]'

    with pytest.raises(MalformedModelOutput) as excinfo:
        extract_mcqs(mcq)

    assert excinfo.value.index == 0
    assert "invalid option-key set" in excinfo.value.rule


def test_mcq_with_a_fifth_option_is_rejected():
    options = {"A": "1", "B": "2", "C": "3", "D": "4", "E": "5"}
    mcq = json.dumps([{"question": "Q", "options": options, "correct_answer": "A"}])

    with pytest.raises(MalformedModelOutput) as excinfo:
        extract_mcqs(mcq)

    assert excinfo.value.index == 0
    assert excinfo.value.rule == "invalid option-key set: expected A, B, C, D; got A, B, C, D, E"


def test_mcq_with_unknown_correct_answer_is_rejected():
    mcq = (
        '[{"question": "Q", "options": {"A": "1", "B": "2", "C": "3", "D": "4"}, '
        '"correct_answer": "E"}]'
    )

    with pytest.raises(MalformedModelOutput) as excinfo:
        extract_mcqs(mcq)

    assert excinfo.value.rule == "correct_answer must be one of A, B, C, D; got 'E'"


def test_top_level_object_is_not_an_array():
    with pytest.raises(MalformedModelOutput):
        extract_summary('{"items": "not a list"}')


def test_json_mode_wrapper_object_still_yields_the_array():
    text = '{"items": [{"question": "Q", "answer": "A"}]}'

    assert extract_flashcards(text) == [{"question": "Q", "answer": "A"}]


def test_parse_structured_returns_error_instead_of_raising():
    result = parse_structured(ExtractionVariant.SUMMARY, "no array here")

    assert not result.ok
    assert result.items == []
    with pytest.raises(MalformedModelOutput):
        result.unwrap()


def test_parse_structured_success_unwraps_items():
    result = parse_structured(ExtractionVariant.SUMMARY, '["only point"]')

    assert result.ok
    assert result.unwrap() == ["only point"]
