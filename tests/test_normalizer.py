import json

import pytest

from database.models import QuestionType
from generation.normalizer import (
    coerce_options,
    extract_json_candidate,
    locate_text,
    normalize_response,
    parse_candidate,
)
from services.errors import GenerationError


class TestStructuredResponses:
    """Responses that already carry a questions array."""

    def test_mirrors_questions_in_order(self, quiz_json):
        result = normalize_response(quiz_json)

        assert result.ok
        assert result.strategy == "structured"
        assert result.payload.title == "Cell Biology"
        assert [q.questionText for q in result.payload.questions] == [
            q["questionText"] for q in quiz_json["questions"]
        ]
        assert result.payload.questions[1].options == ["Atom", "Cell", "Organ"]

    def test_caps_at_num_questions(self, quiz_json):
        result = normalize_response(quiz_json, num_questions=2)

        assert len(result.payload.questions) == 2
        assert result.payload.questions[0].questionText == "Which organelle produces ATP?"

    def test_missing_title_falls_back(self):
        result = normalize_response({"questions": [{"questionText": "Q?"}]})

        assert result.payload.title == "Generated Quiz"


class TestTextLocation:
    """Finding the text blob inside provider envelopes."""

    def test_plain_string(self):
        assert locate_text("hello") == "hello"

    def test_text_field(self):
        assert locate_text({"text": "hello"}) == "hello"

    def test_candidates_content_parts_joined(self):
        raw = {"candidates": [
            {"content": [{"text": "first"}]},
            {"content": {"parts": [{"text": "second"}]}},
            {"output": "third"},
        ]}

        assert locate_text(raw) == "first\nsecond\nthird"

    def test_unknown_shape(self):
        assert locate_text({"foo": "bar"}) is None


class TestJsonExtraction:
    """Picking the JSON candidate out of noisy text."""

    def test_fenced_json_block_with_commentary(self, quiz_json):
        body = json.dumps(quiz_json, indent=2)
        text = f"Here you go!\n```json\n{body}\n```\nLet me know if you need more."

        candidate, strategy = extract_json_candidate(text)

        assert strategy == "fenced"
        assert json.loads(candidate) == quiz_json

    def test_untagged_fence_holding_object(self):
        candidate, strategy = extract_json_candidate('Result:\n```\n{"questions": []}\n```')

        assert strategy == "fenced"
        assert candidate == '{"questions": []}'

    def test_label_line_removed(self):
        candidate, strategy = extract_json_candidate('json:\n{"questions": []}')

        assert strategy == "stripped"
        assert candidate == '{"questions": []}'

    def test_greedy_braces(self):
        candidate, strategy = extract_json_candidate('The quiz is {"questions": []} as requested.')

        assert strategy == "brace"
        assert candidate == '{"questions": []}'

    def test_no_braces(self):
        candidate, strategy = extract_json_candidate("I cannot help with that.")

        assert strategy == "raw"
        assert candidate == "I cannot help with that."

    def test_scan_skips_non_json_braces(self):
        text = 'Notes {see below} then {"questions": [{"q": "a}b"}]} done {x}'

        parsed, error = parse_candidate("no json here", text)

        assert parsed == {"questions": [{"q": "a}b"}]}
        assert error is None

    def test_trailing_commas_are_repaired(self):
        parsed, error = parse_candidate('{"questions": [{"questionText": "Q1", "correctAnswer": "A",},],}', "")

        assert parsed == {"questions": [{"questionText": "Q1", "correctAnswer": "A"}]}
        assert error is None

    def test_repair_without_questions_is_rejected(self):
        parsed, error = parse_candidate("{title: 'only a title'", "{title: 'only a title'")

        assert parsed is None
        assert "invalid JSON" in error


class TestNormalizeText:
    """End-to-end normalization of text responses."""

    def test_fenced_response(self, quiz_json):
        raw = "Sure!\n```json\n" + json.dumps(quiz_json) + "\n```"

        result = normalize_response(raw)

        assert result.ok
        assert result.strategy == "fenced"
        assert len(result.payload.questions) == 3
        assert result.payload.questions[0].correctAnswer == "Mitochondria"

    def test_text_envelope(self, quiz_json):
        result = normalize_response({"text": json.dumps(quiz_json)})

        assert result.ok
        assert len(result.payload.questions) == 3

    def test_candidates_envelope(self, quiz_json):
        raw = {"candidates": [{"content": [{"text": json.dumps(quiz_json)}]}]}

        result = normalize_response(raw)

        assert result.payload.title == "Cell Biology"

    def test_recovers_object_after_non_json_braces(self):
        raw = 'Preface {oops} then {"title": "T", "questions": [{"question": "Q1", "answer": "A"}]} trailing'

        result = normalize_response(raw, quiz_type="text")

        assert result.ok
        assert result.payload.title == "T"
        assert result.payload.questions[0].questionText == "Q1"
        assert result.payload.questions[0].correctAnswer == "A"

    def test_unrecoverable_text_degrades_to_empty(self):
        result = normalize_response("I'm sorry, I can't produce a quiz from this document.")

        assert not result.ok
        assert result.payload.questions == []
        assert result.failure_reason

    def test_truncated_json_is_repaired(self):
        result = normalize_response('{"title": "Cut off", "questions": [{"questionText": "Q1"')

        assert result.ok
        assert result.payload.title == "Cut off"
        assert [q.questionText for q in result.payload.questions] == ["Q1"]

    def test_json_without_questions_degrades(self):
        result = normalize_response('{"title": "No questions here"}')

        assert result.payload.questions == []
        assert result.failure_reason == "parsed JSON has no questions array"

    def test_items_alias(self):
        result = normalize_response('{"items": [{"questionText": "Q"}]}')

        assert len(result.payload.questions) == 1

    @pytest.mark.parametrize("raw", [None, "", "   ", {}, []])
    def test_empty_response_is_an_error(self, raw):
        with pytest.raises(GenerationError):
            normalize_response(raw)

    def test_envelope_without_text_is_an_error(self):
        with pytest.raises(GenerationError):
            normalize_response({"candidates": [{"content": []}]})


class TestQuestionNormalization:
    """Field-level coercion of each question."""

    def test_pipe_delimited_options(self):
        result = normalize_response({"questions": [
            {"questionText": "Pick one", "options": "A|B|C", "correctAnswer": "B", "type": "multiple-choice"},
        ]})

        assert result.payload.questions[0].options == ["A", "B", "C"]

    def test_json_string_options(self):
        assert coerce_options('["x", "y"]') == ["x", "y"]

    def test_options_are_stringified(self):
        assert coerce_options([1, 2.5, 2.0, True, {"label": "A", "text": "Alpha"}]) == ["1", "2.5", "2", "true", "Alpha"]

    def test_non_string_correct_answer_matches_option_form(self):
        result = normalize_response({"questions": [
            {"questionText": "Pick", "options": [1, 2, 3], "correctAnswer": 2.0},
            {"questionText": "True?", "options": [True, False], "correctAnswer": True},
        ]})

        whole, flag = result.payload.questions
        assert whole.correctAnswer == "2" and whole.correctAnswer in whole.options
        assert flag.correctAnswer == "true" and flag.correctAnswer in flag.options

    def test_options_forced_null_for_text_questions(self):
        result = normalize_response({"questions": [
            {"questionText": "Explain osmosis", "options": ["a", "b"], "type": "text"},
        ]})

        assert result.payload.questions[0].options is None
        assert result.payload.questions[0].type == QuestionType.TEXT

    def test_type_defaults_to_requested(self):
        result = normalize_response({"questions": [{"questionText": "Q"}]}, quiz_type="text")

        assert result.payload.questions[0].type == QuestionType.TEXT

    def test_type_aliases(self):
        result = normalize_response({"questions": [{"questionText": "Q", "type": "MCQ", "options": ["a"]}]}, quiz_type="text")

        assert result.payload.questions[0].type == QuestionType.MULTIPLE_CHOICE

    def test_alternate_field_names(self):
        result = normalize_response({"questions": [
            {"question_text": "Q1", "correct_answer": "A1"},
            {"prompt": "Q2", "answer_key": 42},
        ]})

        q1, q2 = result.payload.questions
        assert (q1.questionText, q1.correctAnswer) == ("Q1", "A1")
        assert (q2.questionText, q2.correctAnswer) == ("Q2", "42")

    def test_missing_text_kept_as_empty(self):
        result = normalize_response({"questions": [{"correctAnswer": "x"}]})

        assert result.payload.questions[0].questionText == ""
        assert result.payload.questions[0].correctAnswer == "x"

    def test_missing_answer_is_none(self):
        result = normalize_response({"questions": [{"questionText": "Q"}]})

        assert result.payload.questions[0].correctAnswer is None

    def test_non_object_entries_skipped(self):
        result = normalize_response({"questions": ["just a string", {"questionText": "Real"}]})

        assert [q.questionText for q in result.payload.questions] == ["Real"]
