"""
Data models for the practice studio.

Everything here is persisted or exchanged with the AI provider, so the
models serialise with camelCase keys (``model_dump(by_alias=True)``).
"""
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class UserProfile(CamelModel):
    """Candidate profile and job context used to tailor questions and scoring."""
    name: str
    designation: str
    target_role: str
    skill_level: str = "Mid-Level"
    domain: str = "Software Engineering"
    experience_years: float = 0
    profile_picture: Optional[str] = None
    age: Optional[int] = None
    dob: Optional[str] = None
    sex: Optional[str] = None
    school_name: Optional[str] = None
    college_name: Optional[str] = None
    course_degree: Optional[str] = None
    graduation_year: Optional[str] = None
    resume_text: Optional[str] = None
    target_company: Optional[str] = None
    job_description: Optional[str] = None


class Question(CamelModel):
    """A generated interview question. Read-only once created."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    text: str
    category: str
    tags: List[str] = Field(default_factory=list)
    difficulty: str


class Answer(CamelModel):
    """The candidate's response to one question."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    question_id: str
    question_text: str
    user_answer: str
    time_spent: int
    audio_url: Optional[str] = None


class Feedback(CamelModel):
    """Scoring result for one answer."""
    score: float
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    improved_answer: str = ""
    analysis: str = ""


class SessionResults(CamelModel):
    overall_score: int
    detailed_feedback: Dict[str, Feedback]
    summary: str


class InterviewSession(CamelModel):
    """
    One practice session.

    Answers are appended one per question; results are attached exactly
    once, after the last answer, and the session is final from then on.
    """
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:10])
    date: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    profile: UserProfile
    mode: str
    is_voice_mode: bool = False
    questions: List[Question]
    answers: List[Answer] = Field(default_factory=list)
    results: Optional[SessionResults] = None

    @property
    def is_complete(self) -> bool:
        return self.results is not None

    def record_answer(self, answer: Answer) -> None:
        if self.results is not None:
            raise ValueError(f"Session {self.id} is already finalized")
        if len(self.answers) >= len(self.questions):
            raise ValueError(f"Session {self.id} already has an answer for every question")
        self.answers.append(answer)

    def attach_results(self, results: SessionResults) -> None:
        if self.results is not None:
            raise ValueError(f"Session {self.id} already has results")
        if len(self.answers) != len(self.questions):
            raise ValueError(
                f"Session {self.id} has {len(self.answers)} answers for {len(self.questions)} questions"
            )
        self.results = results


class KeywordMatch(CamelModel):
    matched: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    critical: List[str] = Field(default_factory=list)


class SkillGap(CamelModel):
    skill: str
    priority: str
    suggestion: str


class BulletRewrite(CamelModel):
    original: str
    improved: str
    rationale: str


class ATSAnalysis(CamelModel):
    """Résumé-to-job-description match report."""
    score: float
    keywords: KeywordMatch
    skill_gaps: List[SkillGap] = Field(default_factory=list)
    formatting_issues: List[str] = Field(default_factory=list)
    suggested_bullet_points: List[BulletRewrite] = Field(default_factory=list)
    overall_verdict: str = ""
    action_plan: List[str] = Field(default_factory=list)


class JobRecommendation(CamelModel):
    id: str
    company: str
    role: str
    location: str
    salary_range: Optional[str] = None
    match_score: float
    reason: str


class AuthUser(CamelModel):
    """The signed-in user as shown in the UI."""
    id: str
    name: str
    email: str
    picture: str


class RegisteredUser(AuthUser):
    """
    Local account record.

    Placeholder authentication for a single-user desktop store; the salted
    hash keeps plaintext off disk but this is not a security design.
    """
    phone: str
    password_hash: str
    password_salt: str

    def public(self) -> AuthUser:
        return AuthUser(id=self.id, name=self.name, email=self.email, picture=self.picture)
