"""
Interview prompt templates and response schemas.

This module contains all the prompt templates used throughout the studio,
keeping them separate from the business logic for easier maintenance and editing.
"""

from typing import Any, Dict

from .models import Answer, UserProfile


def _string_array() -> Dict[str, Any]:
    return {"type": "ARRAY", "items": {"type": "STRING"}}


class ResponseSchemas:
    """Vertex ``responseSchema`` definitions for structured outputs."""

    QUESTIONS = {
        "type": "ARRAY",
        "items": {
            "type": "OBJECT",
            "properties": {
                "id": {"type": "STRING"},
                "text": {"type": "STRING"},
                "category": {"type": "STRING"},
                "tags": _string_array(),
                "difficulty": {"type": "STRING"},
            },
            "required": ["id", "text", "category", "tags", "difficulty"],
        },
    }

    FEEDBACK = {
        "type": "OBJECT",
        "properties": {
            "score": {"type": "NUMBER"},
            "strengths": _string_array(),
            "weaknesses": _string_array(),
            "improvedAnswer": {"type": "STRING"},
            "analysis": {"type": "STRING"},
        },
        "required": ["score", "strengths", "weaknesses", "improvedAnswer", "analysis"],
    }

    JOBS = {
        "type": "ARRAY",
        "items": {
            "type": "OBJECT",
            "properties": {
                "id": {"type": "STRING"},
                "company": {"type": "STRING"},
                "role": {"type": "STRING"},
                "location": {"type": "STRING"},
                "salaryRange": {"type": "STRING"},
                "matchScore": {"type": "NUMBER"},
                "reason": {"type": "STRING"},
            },
            "required": ["id", "company", "role", "location", "matchScore", "reason"],
        },
    }

    ATS = {
        "type": "OBJECT",
        "properties": {
            "score": {"type": "NUMBER"},
            "keywords": {
                "type": "OBJECT",
                "properties": {
                    "matched": _string_array(),
                    "missing": _string_array(),
                    "critical": _string_array(),
                },
                "required": ["matched", "missing", "critical"],
            },
            "skillGaps": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "skill": {"type": "STRING"},
                        "priority": {"type": "STRING"},
                        "suggestion": {"type": "STRING"},
                    },
                    "required": ["skill", "priority", "suggestion"],
                },
            },
            "formattingIssues": _string_array(),
            "suggestedBulletPoints": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "original": {"type": "STRING"},
                        "improved": {"type": "STRING"},
                        "rationale": {"type": "STRING"},
                    },
                    "required": ["original", "improved", "rationale"],
                },
            },
            "overallVerdict": {"type": "STRING"},
            "actionPlan": _string_array(),
        },
        "required": [
            "score", "keywords", "skillGaps", "formattingIssues",
            "suggestedBulletPoints", "overallVerdict", "actionPlan",
        ],
    }


class InterviewPrompts:
    """Collection of all interview-related prompts."""

    @staticmethod
    def candidate_context(profile: UserProfile) -> str:
        jd = profile.job_description or f"Standard {profile.target_role}"
        return (
            f"Candidate Resume: {profile.resume_text or 'Not provided'}. "
            f"Target Company: {profile.target_company or 'General'}. JD: {jd}"
        )

    @staticmethod
    def question_generation(profile: UserProfile, mode: str, count: int) -> str:
        return f"""
Generate {count} sophisticated interview questions for a {profile.skill_level} {profile.designation}.
Context: {InterviewPrompts.candidate_context(profile)}.
Mode: {mode}.
Ensure a mix of technical depth and behavioral insight.
Give every question a unique short id.
        """.strip()

    @staticmethod
    def instant_hint(question: str, profile: UserProfile) -> str:
        return f'Given the question: "{question}", provide a 1-sentence "cheat sheet" hint for a {profile.designation}.'

    @staticmethod
    def answer_evaluation(profile: UserProfile, answer: Answer) -> str:
        return f"""
Evaluate Interview Performance.
Question: {answer.question_text}
Candidate Answer: {answer.user_answer}
Role: {profile.target_role} ({profile.skill_level})
Score from 0 to 100.
        """.strip()

    @staticmethod
    def ats_diagnostic(resume_text: str, job_description: str) -> str:
        return f"""
ATS Diagnostic: Compare this Resume to the JD.
Resume: {resume_text}
JD: {job_description}
        """.strip()

    @staticmethod
    def job_recommendations(profile: UserProfile, count: int = 4) -> str:
        return (
            f"Based on this profile, suggest {count} high-impact career opportunities: "
            f"Name: {profile.name}, Role: {profile.designation}, Domain: {profile.domain}."
        )

    @staticmethod
    def coach_system_instruction() -> str:
        return (
            "You are an expert career coach named CogniFy AI. "
            "Provide concise, strategic, and high-impact career advice."
        )

    @staticmethod
    def live_interviewer_instruction(profile: UserProfile, mode: str) -> str:
        return f"""
You are a professional interviewer running a {mode} mock interview for a {profile.target_role} role
({profile.skill_level}, {profile.domain}). Ask exactly the questions you are given, one at a time,
in your own words. Listen to the full answer and keep your own turns short.
        """.strip()

    @staticmethod
    def live_opening(profile: UserProfile, first_question: str) -> str:
        return (
            f"Hello! I am your AI interviewer. We are practicing for a {profile.target_role} role. "
            f"Please greet the candidate and ask this first question: {first_question}"
        )

    @staticmethod
    def live_next_question(number: int, text: str) -> str:
        return f"Question {number}: {text}"

    @staticmethod
    def session_summary(mode: str, overall_score: int, first_strength: str) -> str:
        return (
            f"You completed a {mode} session with an overall readiness of {overall_score}%. "
            f"You showed particular strength in {first_strength}."
        )

    @staticmethod
    def fallback_messages() -> Dict[str, str]:
        return {
            "hint": "Focus on your core achievements.",
            "strength": "your technical clarity",
            "coach_unavailable": "I'm having trouble connecting to my neural network right now. Try again shortly!",
            "coach_greeting": (
                "Hello! I'm your CogniFy Coach. Ask me anything about career strategies, "
                "STAR method, or specific interview tips."
            ),
        }
