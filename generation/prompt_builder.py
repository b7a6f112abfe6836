"""
Step 1: Prompt Builder

Renders the generation request for one quiz. The provider is asked for a
single JSON object and nothing else; the source text is embedded verbatim.
"""

from database.models import QuestionType
from generation.schemas import DEFAULT_NUM_QUESTIONS


# ─── Quiz Generation Prompt ────────────────────────────────────────────────────

QUIZ_PROMPT = """You are an assistant that creates quizzes from source text.
Input: the source text is provided below. Use it to create a quiz.

Requirements:
- Produce ONLY valid JSON (no explanatory text, no markdown fences).
- Output an object with keys: "title" (string) and "questions" (array).
- Each question must be an object with:
  - "questionText": string,
  - "options": array of strings (for multiple-choice) or null,
  - "correctAnswer": string (exact answer or option text),
  - "type": either "multiple-choice" or "text".
- For multiple-choice questions include 3-5 plausible options.
- Create exactly {num_questions} questions of type {quiz_type}.
- Keep questions closely tied to the provided source text (use facts, definitions, examples).
- Ensure the returned JSON parses without errors.

OUTPUT FORMAT:
{{
  "title": "<short quiz title>",
  "questions": [
    {{"questionText": "<question>", "options": {options_hint}, "correctAnswer": "<answer>", "type": "{quiz_type}"}}
  ]
}}

Source text:
\"\"\"
{source_text}
\"\"\"

Return the JSON object now."""


def build_quiz_prompt(
    source_text: str,
    quiz_type: str = QuestionType.MULTIPLE_CHOICE.value,
    num_questions: int = DEFAULT_NUM_QUESTIONS,
) -> str:
    """
    Build the provider prompt for one quiz.

    Args:
        source_text:   Text extracted from the uploaded document
        quiz_type:     "multiple-choice" or "text"
        num_questions: Positive number of questions to request

    Returns:
        The prompt string (same inputs always give the same prompt)
    """
    if not isinstance(source_text, str) or not source_text.strip():
        raise ValueError("source_text (non-empty string) is required")
    try:
        qtype = QuestionType(quiz_type)
    except ValueError:
        raise ValueError(f"Unsupported quiz type: {quiz_type!r}")
    if isinstance(num_questions, bool) or not isinstance(num_questions, int) or num_questions < 1:
        raise ValueError(f"num_questions must be a positive integer, got {num_questions!r}")

    if qtype == QuestionType.MULTIPLE_CHOICE:
        options_hint = '["<option>", "<option>", "<option>"]'
    else:
        options_hint = "null"

    return QUIZ_PROMPT.format(
        num_questions=num_questions,
        quiz_type=qtype.value,
        options_hint=options_hint,
        source_text=source_text,
    )
