"""
Service classes for the practice studio.

Everything here talks to the AI provider synchronously; callers running on
an event loop wrap the calls in ``asyncio.to_thread``.
"""
import logging
from typing import Dict, Any, List

from .models import Answer, ATSAnalysis, Feedback, JobRecommendation, Question, UserProfile
from .prompts import InterviewPrompts, ResponseSchemas
from .schemas import parse_questions, parse_feedback, parse_ats_analysis, parse_job_recommendations
from ..infrastructure.llm import VertexRestClient, ProviderError
from ..config import (
    QUESTION_MODEL, EVALUATION_MODEL, HINT_MODEL, COACH_MODEL,
    QUESTION_THINKING_BUDGET, EVALUATION_THINKING_BUDGET, ATS_THINKING_BUDGET,
    JOBS_THINKING_BUDGET, COACH_THINKING_BUDGET,
)

logger = logging.getLogger("services")


class InterviewProvider:
    """Question generation, hints, scoring, ATS diagnostics and job suggestions."""

    def __init__(self, client: VertexRestClient, temperature: float = 0.7):
        self.client = client
        self.temperature = temperature

    def generate_questions(self, profile: UserProfile, mode: str, count: int) -> List[Question]:
        """
        Generate ``count`` questions tailored to the profile and mode.

        Raises:
            ProviderError: On transport failure or an empty/malformed question list
        """
        logger.info(f"Generating {count} questions for mode={mode}, role={profile.target_role}")
        payload = self.client.generate_json(
            InterviewPrompts.question_generation(profile, mode, count),
            response_schema=ResponseSchemas.QUESTIONS,
            model=QUESTION_MODEL,
            temperature=self.temperature,
            thinking_budget=QUESTION_THINKING_BUDGET,
        )
        questions = parse_questions(payload)
        logger.info(f"Received {len(questions)} questions")
        return questions

    def get_instant_hint(self, question_text: str, profile: UserProfile) -> str:
        text = self.client.generate_content(
            InterviewPrompts.instant_hint(question_text, profile),
            model=HINT_MODEL,
            temperature=self.temperature,
            max_output_tokens=256,
        )
        return text.strip() or InterviewPrompts.fallback_messages()["hint"]

    def evaluate_answer(self, profile: UserProfile, answer: Answer) -> Feedback:
        """
        Score one answer.

        Raises:
            ProviderError: On transport failure or malformed feedback
        """
        logger.debug(f"Evaluating answer to {answer.question_id}")
        payload = self.client.generate_json(
            InterviewPrompts.answer_evaluation(profile, answer),
            response_schema=ResponseSchemas.FEEDBACK,
            model=EVALUATION_MODEL,
            temperature=0.0,
            thinking_budget=EVALUATION_THINKING_BUDGET,
        )
        return parse_feedback(payload)

    def analyze_resume_ats(self, resume_text: str, job_description: str) -> ATSAnalysis:
        logger.info("Running ATS diagnostic")
        payload = self.client.generate_json(
            InterviewPrompts.ats_diagnostic(resume_text, job_description),
            response_schema=ResponseSchemas.ATS,
            model=QUESTION_MODEL,
            temperature=0.0,
            thinking_budget=ATS_THINKING_BUDGET,
        )
        return parse_ats_analysis(payload)

    def recommend_jobs(self, profile: UserProfile, count: int = 4) -> List[JobRecommendation]:
        logger.info(f"Requesting {count} job recommendations")
        payload = self.client.generate_json(
            InterviewPrompts.job_recommendations(profile, count),
            response_schema=ResponseSchemas.JOBS,
            model=QUESTION_MODEL,
            temperature=self.temperature,
            thinking_budget=JOBS_THINKING_BUDGET,
        )
        return parse_job_recommendations(payload)


class CoachChat:
    """Multi-turn career-coach conversation kept in Vertex chat-history form."""

    def __init__(self, client: VertexRestClient):
        self.client = client
        self.history: List[Dict[str, Any]] = []

    @property
    def greeting(self) -> str:
        return InterviewPrompts.fallback_messages()["coach_greeting"]

    def send(self, message: str) -> str:
        """
        Send one user message and return the coach's reply.

        Provider failures are reported to the user as a canned apology; the
        failed exchange is not kept in the history.
        """
        contents = self.history + [{"role": "user", "parts": [{"text": message}]}]
        try:
            reply = self.client.generate_content(
                contents=contents,
                model=COACH_MODEL,
                temperature=0.7,
                system_instruction=InterviewPrompts.coach_system_instruction(),
                thinking_budget=COACH_THINKING_BUDGET,
            )
        except ProviderError as e:
            logger.error(f"Coach chat failed: {e}")
            return InterviewPrompts.fallback_messages()["coach_unavailable"]

        reply = reply.strip()
        if not reply:
            logger.warning("Coach returned an empty reply")
            return InterviewPrompts.fallback_messages()["coach_unavailable"]

        self.history = contents + [{"role": "model", "parts": [{"text": reply}]}]
        return reply

    def reset(self) -> None:
        self.history = []
