"""
Session sequencer: drives one practice session from question generation to saved results.

State machine:

    INITIALIZING -> AWAITING_ANSWER(0)
    AWAITING_ANSWER(i) -> ADVANCING(i) -> AWAITING_ANSWER(i+1) | EVALUATING
    EVALUATING -> COMPLETE
    any non-terminal -> FAILED | ABANDONED

Only COMPLETE persists anything.
"""
import asyncio
import logging
import time
import uuid
from typing import Callable, Dict, List, Optional

from .events import (
    SessionEventBus, SessionStartedEvent, QuestionPresentedEvent, AnswerRecordedEvent,
    VoiceFallbackEvent, EvaluationProgressEvent, SessionCompletedEvent,
    SessionFailedEvent, SessionAbandonedEvent, ErrorOccurredEvent,
)
from .models import Answer, Feedback, InterviewSession, Question, SessionResults, UserProfile
from .prompts import InterviewPrompts
from .schemas import SequencerState, QuestionTimer
from .services import InterviewProvider
from .voice import VoiceSession, LostCallback
from ..config import (
    QUESTION_TIME_BUDGET, VOICE_FALLBACK_TO_TEXT, EMPTY_VOICE_ANSWER, get_mode,
)
from ..infrastructure.audio.processing import MicrophoneUnavailableError
from ..infrastructure.llm import ChannelError, ProviderError
from ..utils import mean_score, round_half_up

logger = logging.getLogger("sequencer")

VoiceSessionFactory = Callable[[LostCallback], VoiceSession]


class SessionStartError(RuntimeError):
    """Questions could not be generated or the voice session could not be opened."""


class EvaluationError(RuntimeError):
    """Scoring failed for at least one answer; nothing was saved."""


class VoiceSessionLostError(RuntimeError):
    """The live channel dropped while the session was running."""


class SequencerStateError(RuntimeError):
    """An operation was requested in a state that does not allow it."""


class SessionSequencer:
    """
    Runs one session.

    Provider calls are blocking and run in worker threads. Scoring is
    strictly sequential: answer k+1 is not submitted until answer k has
    come back.
    """

    def __init__(self,
                 provider: InterviewProvider,
                 store,
                 profile: UserProfile,
                 mode: str = "Quick",
                 voice: bool = False,
                 voice_factory: Optional[VoiceSessionFactory] = None,
                 event_bus: Optional[SessionEventBus] = None,
                 time_budget: int = QUESTION_TIME_BUDGET,
                 voice_fallback_to_text: bool = VOICE_FALLBACK_TO_TEXT,
                 load_hints: bool = True,
                 clock: Callable[[], float] = time.monotonic):
        if voice and voice_factory is None:
            raise ValueError("voice_factory is required for voice sessions")

        self.provider = provider
        self.store = store
        self.profile = profile
        self.mode = get_mode(mode)
        self.voice_factory = voice_factory
        self.event_bus = event_bus or SessionEventBus()
        self.time_budget = time_budget
        self.voice_fallback_to_text = voice_fallback_to_text
        self.load_hints = load_hints
        self.clock = clock

        self.session_id = uuid.uuid4().hex[:10]
        self._voice_requested = voice
        self._is_voice = voice
        self._state = SequencerState.INITIALIZING
        self._started = False
        self._session: Optional[InterviewSession] = None
        self._index = 0
        self._timer = QuestionTimer(time_budget, clock=clock)
        self._answer_text = ""
        self._hint: Optional[str] = None
        self._hint_task: Optional[asyncio.Task] = None
        self._voice: Optional[VoiceSession] = None
        self._lost: Optional[Exception] = None
        self._progress = 0
        self.error: Optional[Exception] = None
        self.voice_fallback_used = False

    # ------------------------------------------------------------------
    # Read-only view for the UI
    # ------------------------------------------------------------------

    @property
    def state(self) -> SequencerState:
        return self._state

    @property
    def session(self) -> Optional[InterviewSession]:
        return self._session

    @property
    def questions(self) -> List[Question]:
        return list(self._session.questions) if self._session else []

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Optional[Question]:
        if self._session is None or self._index >= len(self._session.questions):
            return None
        return self._session.questions[self._index]

    @property
    def is_voice_mode(self) -> bool:
        return self._is_voice

    @property
    def time_left(self) -> int:
        return self._timer.time_left

    @property
    def answer_text(self) -> str:
        return self._answer_text

    @property
    def hint(self) -> Optional[str]:
        return self._hint

    @property
    def evaluation_progress(self) -> int:
        return self._progress

    @property
    def results(self) -> Optional[SessionResults]:
        return self._session.results if self._session else None

    @property
    def voice_session(self) -> Optional[VoiceSession]:
        return self._voice

    @property
    def user_transcript(self) -> str:
        return self._voice.user_transcript if self._voice else ""

    @property
    def is_user_speaking(self) -> bool:
        return self._voice.is_user_speaking if self._voice else False

    @property
    def is_ai_speaking(self) -> bool:
        return self._voice.is_ai_speaking if self._voice else False

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(self) -> SequencerState:
        """
        Generate questions and, in voice mode, open the live session.

        Raises:
            SessionStartError: Provider or channel failure; state is FAILED
            SequencerStateError: start() was already called
        """
        if self._started:
            raise SequencerStateError("Session was already started")
        self._started = True
        logger.info(f"Starting {self.mode.id} session {self.session_id} (voice={self._voice_requested})")

        try:
            questions = await asyncio.to_thread(
                self.provider.generate_questions, self.profile, self.mode.id, self.mode.count
            )
        except ProviderError as e:
            if self._state is not SequencerState.INITIALIZING:
                return self._state
            self._fail("initializing", e)
            raise SessionStartError(f"Could not generate questions: {e}") from e
        if self._state is not SequencerState.INITIALIZING:
            return self._state

        self._session = InterviewSession(
            id=self.session_id,
            profile=self.profile.model_copy(deep=True),
            mode=self.mode.id,
            is_voice_mode=self._is_voice,
            questions=questions,
        )

        if self._is_voice:
            try:
                await self._open_voice(questions[0])
            except (MicrophoneUnavailableError, ChannelError) as e:
                if self._state is SequencerState.INITIALIZING:
                    self._voice_open_failed(e)
            if self._state is not SequencerState.INITIALIZING:
                # abandon() ran while the session was opening
                await self._close_voice()
                return self._state

        self._index = 0
        self._state = SequencerState.AWAITING_ANSWER
        self.event_bus.emit(SessionStartedEvent(
            self.session_id, time.time(), self.mode.id, len(questions), self._is_voice
        ))
        self._present_question()
        return self._state

    def set_answer_text(self, text: str) -> None:
        """Update the typed answer for the current question."""
        if self._state is not SequencerState.AWAITING_ANSWER:
            raise SequencerStateError(f"Cannot edit the answer while {self._state.value}")
        self._answer_text = text

    async def wait_for_hint(self) -> Optional[str]:
        """Wait for the current question's hint, if one is being loaded."""
        if self._hint_task is not None:
            await asyncio.wait([self._hint_task])
        return self._hint

    async def advance(self) -> SequencerState:
        """
        Record the current answer and move on; after the last question, score
        everything and save.

        Raises:
            VoiceSessionLostError: The live channel dropped; state is FAILED
            EvaluationError: Scoring failed; state is FAILED, nothing saved
            SequencerStateError: Not waiting for an answer
        """
        if self._lost is not None:
            raise VoiceSessionLostError(f"Voice session lost: {self._lost}") from self._lost
        if self._state is not SequencerState.AWAITING_ANSWER:
            raise SequencerStateError(f"Cannot advance while {self._state.value}")

        self._state = SequencerState.ADVANCING
        question = self._session.questions[self._index]
        answer = Answer(
            question_id=question.id,
            question_text=question.text,
            user_answer=self._current_answer_text(),
            time_spent=self._timer.time_spent,
        )
        self._session.record_answer(answer)
        self.event_bus.emit(AnswerRecordedEvent(
            self.session_id, time.time(), self._index, question.id,
            answer.time_spent, len(answer.user_answer)
        ))

        if self._index + 1 >= len(self._session.questions):
            await self._evaluate()
            return self._state

        self._index += 1
        self._reset_transient()
        if self._voice is not None:
            next_question = self._session.questions[self._index]
            try:
                await self._voice.send_prompt(
                    InterviewPrompts.live_next_question(self._index + 1, next_question.text)
                )
            except ChannelError as e:
                self._on_voice_lost(e)
                raise VoiceSessionLostError(f"Voice session lost: {e}") from e
        if self._state is not SequencerState.ADVANCING:
            if self._lost is not None:
                raise VoiceSessionLostError(f"Voice session lost: {self._lost}") from self._lost
            return self._state

        self._state = SequencerState.AWAITING_ANSWER
        self._present_question()
        return self._state

    async def abandon(self) -> SequencerState:
        """Leave the session. Tears down the voice session; saves nothing."""
        if self._state.is_terminal:
            return self._state

        answered = len(self._session.answers) if self._session else 0
        total = len(self._session.questions) if self._session else self.mode.count
        self._state = SequencerState.ABANDONED
        self._cancel_hint()
        await self._close_voice()
        logger.info(f"Session {self.session_id} abandoned after {answered}/{total} answers")
        self.event_bus.emit(SessionAbandonedEvent(self.session_id, time.time(), answered, total))
        return self._state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _open_voice(self, first_question: Question) -> None:
        self._voice = self.voice_factory(self._on_voice_lost)
        await self._voice.open(
            InterviewPrompts.live_opening(self.profile, first_question.text),
            system_instruction=InterviewPrompts.live_interviewer_instruction(self.profile, self.mode.id),
        )

    def _voice_open_failed(self, error: Exception) -> None:
        if isinstance(error, MicrophoneUnavailableError) and self.voice_fallback_to_text:
            logger.warning(f"Microphone unavailable, continuing in text mode: {error}")
            self._voice = None
            self._is_voice = False
            self._session.is_voice_mode = False
            self.voice_fallback_used = True
            self.event_bus.emit(VoiceFallbackEvent(self.session_id, time.time(), str(error)))
            return

        self._voice = None
        self._fail("initializing", error)
        if isinstance(error, MicrophoneUnavailableError):
            raise SessionStartError(f"Microphone unavailable: {error}") from error
        raise SessionStartError(f"Could not open the live session: {error}") from error

    def _on_voice_lost(self, error: Exception) -> None:
        if self._state not in (SequencerState.AWAITING_ANSWER, SequencerState.ADVANCING):
            return
        self._lost = error
        self._fail("awaiting_answer", error)

    async def _close_voice(self) -> None:
        if self._voice is not None:
            await self._voice.close()

    def _current_answer_text(self) -> str:
        if self._is_voice:
            return self.user_transcript or EMPTY_VOICE_ANSWER
        return self._answer_text

    def _present_question(self) -> None:
        question = self.current_question
        self._timer.reset()
        self.event_bus.emit(QuestionPresentedEvent(
            self.session_id, time.time(), self._index, question.id, question.text
        ))
        if not self._is_voice and self.load_hints:
            self._hint_task = asyncio.create_task(self._load_hint(question))

    def _reset_transient(self) -> None:
        self._answer_text = ""
        self._cancel_hint()
        if self._voice is not None:
            self._voice.reset_transcripts()

    async def _load_hint(self, question: Question) -> None:
        try:
            hint = await asyncio.to_thread(self.provider.get_instant_hint, question.text, self.profile)
        except ProviderError as e:
            logger.warning(f"Hint unavailable for {question.id}: {e}")
            hint = ""
        if self.current_question is question:
            self._hint = hint

    def _cancel_hint(self) -> None:
        if self._hint_task is not None and not self._hint_task.done():
            self._hint_task.cancel()
        self._hint_task = None
        self._hint = None

    async def _evaluate(self) -> None:
        self._state = SequencerState.EVALUATING
        self._progress = 0
        self._cancel_hint()
        await self._close_voice()

        answers = list(self._session.answers)
        total = len(answers)
        feedback: Dict[str, Feedback] = {}
        logger.info(f"Evaluating {total} answers for session {self.session_id}")

        for answer in answers:
            try:
                result = await asyncio.to_thread(self.provider.evaluate_answer, self.profile, answer)
            except ProviderError as e:
                if self._state is not SequencerState.EVALUATING:
                    return
                self._fail("evaluating", e)
                raise EvaluationError(f"Could not evaluate answer to {answer.question_id}: {e}") from e
            if self._state is not SequencerState.EVALUATING:
                return
            feedback[answer.question_id] = result
            self._progress = round_half_up(len(feedback) / total * 100)
            self.event_bus.emit(EvaluationProgressEvent(
                self.session_id, time.time(), len(feedback), total, self._progress
            ))

        overall = mean_score(f.score for f in feedback.values())
        first = feedback[answers[0].question_id]
        strength = first.strengths[0] if first.strengths else InterviewPrompts.fallback_messages()["strength"]
        results = SessionResults(
            overall_score=overall,
            detailed_feedback=feedback,
            summary=InterviewPrompts.session_summary(self.mode.id, overall, strength),
        )
        self._session.attach_results(results)

        try:
            self.store.save_session(self._session)
        except OSError as e:
            self._fail("saving", e)
            raise EvaluationError(f"Could not save session: {e}") from e

        self._state = SequencerState.COMPLETE
        logger.info(f"Session {self.session_id} complete, overall score {overall}")
        self.event_bus.emit(SessionCompletedEvent(self.session_id, time.time(), overall, total))

    def _fail(self, stage: str, error: Exception) -> None:
        self._state = SequencerState.FAILED
        self.error = error
        self._cancel_hint()
        logger.error(f"Session {self.session_id} failed while {stage}: {error}")
        self.event_bus.emit(SessionFailedEvent(self.session_id, time.time(), stage, str(error)))
        self.event_bus.emit(ErrorOccurredEvent(
            self.session_id, time.time(), type(error).__name__, str(error), "sequencer"
        ))
