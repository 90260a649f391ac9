"""
Performance analysis over saved sessions.
Handles dashboard statistics, history rows, topic mastery and next-action suggestions.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import InterviewSession
from ..utils import mean_score

logger = logging.getLogger("interview_analysis")


@dataclass
class DashboardStats:
    """Headline numbers shown on the landing screen."""
    session_count: int
    average_score: int


@dataclass
class HistoryRow:
    """One line of the session history list."""
    session_id: str
    date: str
    mode: str
    target_role: str
    question_count: int
    overall_score: Optional[int]
    is_voice_mode: bool


@dataclass
class CategoryMastery:
    """Mean feedback score for one question category."""
    category: str
    score: int
    answered: int


@dataclass
class ActionSuggestion:
    title: str
    description: str
    urgent: bool


class SessionAnalytics:
    """Derives readiness insights from the saved session history."""

    def __init__(self, sessions: List[InterviewSession], weak_threshold: int = 60):
        self.sessions = sessions
        self.weak_threshold = weak_threshold

    def dashboard_stats(self) -> DashboardStats:
        """
        Session count plus the average overall score.

        Sessions scored 0 are left out of the average so a blank attempt does
        not drag it down.
        """
        scores = [s.results.overall_score for s in self.sessions if s.results and s.results.overall_score > 0]
        return DashboardStats(session_count=len(self.sessions), average_score=mean_score(scores))

    def history(self) -> List[HistoryRow]:
        return [
            HistoryRow(
                session_id=s.id,
                date=s.date,
                mode=s.mode,
                target_role=s.profile.target_role,
                question_count=len(s.questions),
                overall_score=s.results.overall_score if s.results else None,
                is_voice_mode=s.is_voice_mode,
            )
            for s in self.sessions
        ]

    def readiness_trend(self) -> List[int]:
        """Overall scores oldest first."""
        return [s.results.overall_score for s in reversed(self.sessions) if s.results]

    def category_mastery(self) -> List[CategoryMastery]:
        """Per-category mean of feedback scores, strongest first."""
        scores: Dict[str, List[float]] = defaultdict(list)
        for session in self.sessions:
            if not session.results:
                continue
            categories = {q.id: q.category for q in session.questions}
            for question_id, feedback in session.results.detailed_feedback.items():
                category = categories.get(question_id)
                if category:
                    scores[category].append(feedback.score)

        mastery = [
            CategoryMastery(category=category, score=mean_score(values), answered=len(values))
            for category, values in scores.items()
        ]
        mastery.sort(key=lambda m: (-m.score, m.category))
        logger.debug(f"Computed mastery for {len(mastery)} categories")
        return mastery

    def weakest_categories(self, limit: int = 2) -> List[CategoryMastery]:
        return sorted(self.category_mastery(), key=lambda m: (m.score, m.category))[:limit]

    def next_actions(self, limit: int = 2) -> List[ActionSuggestion]:
        """Practice suggestions for the weakest topics, plus one to keep the strongest sharp."""
        mastery = self.category_mastery()
        if not mastery:
            return []

        actions = []
        for weak in self.weakest_categories(limit):
            if weak.score < self.weak_threshold:
                actions.append(ActionSuggestion(
                    title=f"Improve {weak.category} articulation",
                    description=f"Your {weak.category} answers average {weak.score}% across {weak.answered} questions.",
                    urgent=True,
                ))

        best = mastery[0]
        if best.score >= self.weak_threshold:
            actions.append(ActionSuggestion(
                title=f"Maintain {best.category} accuracy",
                description=f"Strong performance in {best.category} at {best.score}%. Keep practicing advanced questions.",
                urgent=False,
            ))
        return actions
