"""
Step 3: Response Normalizer

Turns whatever the provider sent back into a NormalizedQuizPayload.

Provider output is treated as untrusted text, not a typed API: it may be a
plain string, a {"text": ...} envelope, a {"candidates": [...]} envelope, an
already-structured {"questions": [...]} object, JSON wrapped in markdown
fences, JSON preceded by chatter, or no JSON at all.

Malformed output never raises. It degrades to an empty payload with a
failure_reason, which the orchestrator later rejects. Only an empty or
absent response raises GenerationError.
"""

import json
import logging
import re
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple

import json_repair

from database.models import QuestionType
from generation.schemas import (
    DEFAULT_NUM_QUESTIONS,
    DEFAULT_QUIZ_TITLE,
    NormalizationResult,
    NormalizedQuestion,
    NormalizedQuizPayload,
)
from services.errors import GenerationError
from services.grading import answer_text

log = logging.getLogger("quiz.pipeline")


# ─── Accepted field names (first present wins) ─────────────────────────────────

QUESTION_LIST_KEYS = ("questions", "items", "questions_list")
QUESTION_TEXT_KEYS = ("questionText", "question_text", "question", "prompt", "text")
CORRECT_ANSWER_KEYS = ("correctAnswer", "correct_answer", "answer", "answer_key")

_TYPE_ALIASES = {
    "multiple-choice": QuestionType.MULTIPLE_CHOICE,
    "multiple_choice": QuestionType.MULTIPLE_CHOICE,
    "multiple choice": QuestionType.MULTIPLE_CHOICE,
    "multiplechoice": QuestionType.MULTIPLE_CHOICE,
    "mcq": QuestionType.MULTIPLE_CHOICE,
    "text": QuestionType.TEXT,
    "short-answer": QuestionType.TEXT,
    "short_answer": QuestionType.TEXT,
    "short answer": QuestionType.TEXT,
    "free-text": QuestionType.TEXT,
    "open": QuestionType.TEXT,
    "descriptive": QuestionType.TEXT,
}


_FENCE_RE = re.compile(r"```[ \t]*([A-Za-z0-9_+-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)
_FENCE_MARKER_RE = re.compile(r"```[ \t]*[A-Za-z0-9_+-]*")
_LABEL_LINE_RE = re.compile(
    r"^\s*(?:(?:json|response|output|answer|result)[ \t]*:|json[ \t]*(?=\r?\n))\s*",
    re.IGNORECASE,
)


# ─── Shape probing ─────────────────────────────────────────────────────────────

def _field(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _is_empty(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, (str, bytes)):
        return not raw.strip()
    if isinstance(raw, (Mapping, list, tuple)):
        return len(raw) == 0
    return False


def _structured_questions(raw: Any) -> Optional[Tuple[Optional[Any], list]]:
    """Step 1: (title, questions) when the response is already structured."""
    if isinstance(raw, (str, bytes)):
        return None
    if isinstance(raw, (list, tuple)):
        return None, list(raw)
    questions = _field(raw, "questions")
    if isinstance(questions, list):
        return _field(raw, "title"), questions
    return None


def _part_text(part: Any) -> str:
    if isinstance(part, str):
        return part
    text = _field(part, "text")
    return text if isinstance(text, str) else ""


def _candidate_text(candidate: Any) -> str:
    """Text of one provider candidate: content (str | parts list | {parts}) or output."""
    if isinstance(candidate, str):
        return candidate

    content = _field(candidate, "content")
    if isinstance(content, str) and content:
        return content
    if isinstance(content, list):
        for part in content:
            text = _part_text(part)
            if text:
                return text
    elif content is not None:
        parts = _field(content, "parts")
        if isinstance(parts, list):
            for part in parts:
                text = _part_text(part)
                if text:
                    return text
        text = _part_text(content)
        if text:
            return text

    output = _field(candidate, "output")
    if isinstance(output, str):
        return output
    return ""


def locate_text(raw: Any) -> Optional[str]:
    """
    Step 2: find the one text blob inside a provider response.

    Probes, in order: the value itself as a string, a `text` field, then a
    `candidates` list (texts of all candidates joined with newlines).
    """
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        return raw

    text = _field(raw, "text")
    if isinstance(text, str):
        return text

    candidates = _field(raw, "candidates")
    if isinstance(candidates, list) and candidates:
        texts = [_candidate_text(c) for c in candidates]
        return "\n".join(t for t in texts if t)

    return None


# ─── JSON extraction ───────────────────────────────────────────────────────────

def _fenced_json(text: str) -> Optional[str]:
    """Content of the first ```json fence, or of an untagged fence holding an object."""
    for match in _FENCE_RE.finditer(text):
        tag = match.group(1).lower()
        body = match.group(2).strip()
        if tag == "json" or (not tag and body.startswith("{")):
            return body
    return None


def _strip_fences(text: str) -> str:
    cleaned = _FENCE_MARKER_RE.sub("", text).strip()
    return _LABEL_LINE_RE.sub("", cleaned, count=1).strip()


def extract_json_candidate(text: str) -> Tuple[str, str]:
    """
    Step 3: pick the substring most likely to be the quiz object.

    Returns:
        (candidate, strategy) where strategy is one of
        "fenced", "stripped", "brace", "raw"
    """
    fenced = _fenced_json(text)
    if fenced is not None:
        return fenced, "fenced"

    cleaned = _strip_fences(text)
    if cleaned.startswith("{") and cleaned.endswith("}"):
        return cleaned, "stripped"

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        return cleaned[start:end + 1], "brace"

    return cleaned, "raw"


def _repaired(candidate: str) -> Optional[Any]:
    """json_repair the candidate; only a value that holds questions is kept."""
    repaired = json_repair.loads(candidate)
    if isinstance(repaired, Mapping):
        return repaired if _question_list(repaired) is not None else None
    if isinstance(repaired, list) and repaired:
        # several top-level objects come back as a list
        for value in repaired:
            if isinstance(value, Mapping) and _question_list(value) is not None:
                return value
        if all(isinstance(v, Mapping) and _first_present(v, QUESTION_TEXT_KEYS) is not None for v in repaired):
            return repaired
    return None


def _first_decodable_object(text: str) -> Optional[Any]:
    """First `{` in `text` that decodes to an object holding questions."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except ValueError:
            value = None
        if isinstance(value, Mapping) and _question_list(value) is not None:
            return value
        start = text.find("{", start + 1)
    return None


def parse_candidate(candidate: str, text: str) -> Tuple[Optional[Any], Optional[str]]:
    """
    Step 4: json.loads the candidate, then json_repair it, then look for
    the first decodable questions object anywhere in the text.

    Returns:
        (parsed, error); exactly one of them is None
    """
    try:
        return json.loads(candidate), None
    except ValueError as e:
        error = f"invalid JSON ({e.__class__.__name__}: {e})"

    repaired = _repaired(candidate)
    if repaired is not None:
        log.info("[NORMALIZE] malformed JSON recovered with json_repair")
        return repaired, None

    parsed = _first_decodable_object(text)
    if parsed is not None:
        return parsed, None
    return None, error


# ─── Field coercion ────────────────────────────────────────────────────────────

def _first_present(item: Mapping, keys: Tuple[str, ...]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def coerce_type(value: Any, default: QuestionType) -> QuestionType:
    if isinstance(value, str):
        return _TYPE_ALIASES.get(value.strip().lower(), default)
    return default


def coerce_options(value: Any) -> Optional[List[str]]:
    """Options of a multiple-choice question as a list of strings, or None."""
    if isinstance(value, (list, tuple)):
        options = []
        for opt in value:
            if opt is None:
                continue
            if isinstance(opt, Mapping) and "text" in opt:
                opt = opt["text"]
            options.append(answer_text(opt))
        return options
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            parsed = json.loads(value)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return coerce_options(parsed)
        return [part.strip() for part in value.split("|") if part.strip()]
    return None


def normalize_question(item: Any, default_type: QuestionType) -> Optional[NormalizedQuestion]:
    """Step 5: one provider question → NormalizedQuestion (None for non-objects)."""
    if hasattr(item, "model_dump"):
        item = item.model_dump()
    if not isinstance(item, Mapping):
        log.debug(f"[NORMALIZE] skipping non-object question entry: {item!r:.80}")
        return None

    question_text = _first_present(item, QUESTION_TEXT_KEYS)
    qtype = coerce_type(item.get("type"), default_type)
    options = coerce_options(item.get("options")) if qtype == QuestionType.MULTIPLE_CHOICE else None
    correct = _first_present(item, CORRECT_ANSWER_KEYS)

    return NormalizedQuestion(
        questionText=answer_text(question_text) if question_text is not None else "",
        options=options,
        correctAnswer=answer_text(correct) if correct is not None else None,
        type=qtype,
    )


def _question_list(parsed: Any) -> Optional[Tuple[Optional[Any], list]]:
    if isinstance(parsed, list):
        return None, parsed
    if isinstance(parsed, Mapping):
        for key in QUESTION_LIST_KEYS:
            value = parsed.get(key)
            if isinstance(value, list):
                return parsed.get("title"), value
    return None


def _build_payload(title: Any, questions: list, default_type: QuestionType, num_questions: Optional[int]) -> NormalizedQuizPayload:
    if num_questions is not None:
        questions = questions[:max(num_questions, 0)]
    normalized = []
    for item in questions:
        question = normalize_question(item, default_type)
        if question is not None:
            normalized.append(question)

    if isinstance(title, str) and title.strip():
        quiz_title = title.strip()
    else:
        quiz_title = DEFAULT_QUIZ_TITLE
    return NormalizedQuizPayload(title=quiz_title, questions=normalized)


def _failed(reason: str, strategy: str, text: str) -> NormalizationResult:
    log.warning(f"[NORMALIZE] failed via {strategy}: {reason}; output starts: {text[:200]!r}")
    return NormalizationResult(
        payload=NormalizedQuizPayload(title=DEFAULT_QUIZ_TITLE, questions=[]),
        strategy=strategy,
        failure_reason=reason,
    )


# ─── Main entry ────────────────────────────────────────────────────────────────

def normalize_response(
    raw: Any,
    quiz_type: str = QuestionType.MULTIPLE_CHOICE.value,
    num_questions: Optional[int] = DEFAULT_NUM_QUESTIONS,
) -> NormalizationResult:
    """
    Normalize raw provider output into a quiz payload.

    Args:
        raw:           Provider response (string, envelope object, or structured payload)
        quiz_type:     Type applied to questions that do not state their own
        num_questions: Cap on the number of questions kept (None = no cap)

    Returns:
        NormalizationResult; payload.questions is empty when nothing was recoverable

    Raises:
        GenerationError: the response is empty or carries no text at all
    """
    if _is_empty(raw):
        raise GenerationError("Empty response from AI")

    default_type = coerce_type(quiz_type, QuestionType.MULTIPLE_CHOICE)

    structured = _structured_questions(raw)
    if structured is not None:
        title, questions = structured
        payload = _build_payload(title, questions, default_type, num_questions)
        log.info(f"[NORMALIZE] structured response, {len(payload.questions)} question(s)")
        return NormalizationResult(payload=payload, strategy="structured")

    text = locate_text(raw)
    if text is None or not text.strip():
        raise GenerationError("AI response contained no text")

    candidate, strategy = extract_json_candidate(text)
    parsed, error = parse_candidate(candidate, text)
    if parsed is None:
        return _failed(error, strategy, text)

    found = _question_list(parsed)
    if found is None:
        return _failed("parsed JSON has no questions array", strategy, text)

    title, questions = found
    payload = _build_payload(title, questions, default_type, num_questions)
    log.info(f"[NORMALIZE] {strategy}, {len(payload.questions)} question(s)")
    return NormalizationResult(payload=payload, strategy=strategy)
