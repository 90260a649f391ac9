"""
Parsing of provider responses and runtime state for a running session.
"""
import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List

from pydantic import TypeAdapter, ValidationError

from .models import Question, Feedback, ATSAnalysis, JobRecommendation
from ..infrastructure.llm.client import ProviderError


class SequencerState(str, Enum):
    """Lifecycle of one practice session."""
    INITIALIZING = "initializing"
    AWAITING_ANSWER = "awaiting_answer"
    ADVANCING = "advancing"
    EVALUATING = "evaluating"
    COMPLETE = "complete"
    FAILED = "failed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (SequencerState.COMPLETE, SequencerState.FAILED, SequencerState.ABANDONED)


@dataclass
class TranscriptBuffer:
    """Accumulates incremental transcription fragments for one speaker."""
    text: str = ""

    def append(self, fragment: str) -> None:
        self.text = f"{self.text} {fragment}".strip()

    def clear(self) -> None:
        self.text = ""

    def __bool__(self) -> bool:
        return bool(self.text)


@dataclass
class QuestionTimer:
    """
    Per-question countdown shown to the user. It never forces advancement;
    ``time_left`` bottoms out at zero.
    """
    budget: int
    clock: Callable[[], float] = time.monotonic
    started_at: float = field(default=0.0)

    def __post_init__(self):
        self.started_at = self.clock()

    def reset(self) -> None:
        self.started_at = self.clock()

    @property
    def elapsed(self) -> float:
        return max(0.0, self.clock() - self.started_at)

    @property
    def time_left(self) -> int:
        return max(0, self.budget - int(self.elapsed))

    @property
    def time_spent(self) -> int:
        return self.budget - self.time_left


def extract_json(text: str) -> Any:
    """
    Decode JSON from an LLM response with robust error handling.

    Tries the whole text first, then the outermost object or array found in
    it. Raises ProviderError if nothing decodes.
    """
    if not text or not text.strip():
        raise ProviderError("LLM returned an empty response")

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for open_char, close_char in (("[", "]"), ("{", "}")):
        start = text.find(open_char)
        end = text.rfind(close_char)
        if start != -1 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except json.JSONDecodeError:
                continue

    raise ProviderError(f"LLM did not return valid JSON: {text[:200]}")


_questions_adapter = TypeAdapter(List[Question])
_jobs_adapter = TypeAdapter(List[JobRecommendation])


def parse_questions(payload: Any) -> List[Question]:
    """
    Validate generated questions.

    Empty or malformed output is a ProviderError. Missing or duplicate ids
    are replaced with positional ids so feedback can be keyed by id.
    """
    if isinstance(payload, dict) and isinstance(payload.get("questions"), list):
        payload = payload["questions"]
    if not isinstance(payload, list) or not payload:
        raise ProviderError("Provider returned no questions")

    for item in payload:
        if isinstance(item, dict) and not str(item.get("id") or "").strip():
            item["id"] = ""
    try:
        questions = _questions_adapter.validate_python(payload)
    except ValidationError as e:
        raise ProviderError(f"Malformed questions from provider: {e}") from e

    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids) or not all(ids):
        questions = [q.model_copy(update={"id": f"q{i + 1}"}) for i, q in enumerate(questions)]
    return questions


def parse_feedback(payload: Any) -> Feedback:
    if not isinstance(payload, dict):
        raise ProviderError("Provider returned no feedback object")
    try:
        return Feedback.model_validate(payload)
    except ValidationError as e:
        raise ProviderError(f"Malformed feedback from provider: {e}") from e


def parse_ats_analysis(payload: Any) -> ATSAnalysis:
    if not isinstance(payload, dict):
        raise ProviderError("Provider returned no ATS analysis")
    try:
        return ATSAnalysis.model_validate(payload)
    except ValidationError as e:
        raise ProviderError(f"Malformed ATS analysis from provider: {e}") from e


def parse_job_recommendations(payload: Any) -> List[JobRecommendation]:
    if not isinstance(payload, list):
        raise ProviderError("Provider returned no job recommendations")
    try:
        return _jobs_adapter.validate_python(payload)
    except ValidationError as e:
        raise ProviderError(f"Malformed job recommendations from provider: {e}") from e
