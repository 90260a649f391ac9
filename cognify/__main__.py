#!/usr/bin/env python3
"""
Main entry point for the Cognify practice studio.
Allows running the package with: python -m cognify
"""
import asyncio
import sys
from getpass import getpass
from typing import List, Optional

from .app import AppContext
from .config import get_config, get_mode, INTERVIEW_MODES, DOMAINS, SKILL_LEVELS, THEMES
from .infrastructure.llm import ProviderError
from .interview import (
    SessionSequencer, SessionAnalytics, SequencerState,
    SessionStartError, EvaluationError, VoiceSessionLostError,
    UserProfile, InterviewSession, create_voice_session,
)
from .utils import setup_logging


def _ask(prompt: str, default: str = "") -> str:
    value = input(f"{prompt}{f' [{default}]' if default else ''}: ").strip()
    return value or default


def _choose(prompt: str, options: List[str], default: str) -> str:
    """Numbered pick list; accepts the number or the exact option text."""
    for i, option in enumerate(options, 1):
        print(f"  {i}. {option}")
    value = _ask(prompt, default)
    if value.isdigit() and 1 <= int(value) <= len(options):
        return options[int(value) - 1]
    if value in options:
        return value
    print(f"⚠️  Unknown choice '{value}', keeping {default}")
    return default


def _ensure_profile(ctx: AppContext) -> UserProfile:
    if ctx.profile is not None:
        return ctx.profile
    print("👤 No profile yet. A few details first:")
    ctx.profile = UserProfile(
        name=_ask("Name", "Candidate"),
        designation=_ask("Current designation", "Software Engineer"),
        target_role=_ask("Target role", "Senior Software Engineer"),
        skill_level=_choose("Skill level", SKILL_LEVELS, "Mid-Level"),
        domain=_choose("Domain", DOMAINS, "Software Engineering"),
    )
    return ctx.profile


def _print_results(session: InterviewSession) -> None:
    results = session.results
    if results is None:
        print(f"❌ Session {session.id} has no results")
        return
    print(f"\n🏁 {session.mode} session {session.id} · {session.date[:10]}")
    print(f"📊 Overall readiness: {results.overall_score}%")
    print(f"📝 {results.summary}\n")
    for i, answer in enumerate(session.answers, 1):
        feedback = results.detailed_feedback.get(answer.question_id)
        print(f"Q{i}. {answer.question_text}")
        print(f"    Your answer: {answer.user_answer or '(blank)'}")
        if feedback:
            print(f"    Score: {feedback.score:.0f}")
            if feedback.strengths:
                print(f"    ✅ {'; '.join(feedback.strengths)}")
            if feedback.weaknesses:
                print(f"    ⚠️  {'; '.join(feedback.weaknesses)}")
            if feedback.improved_answer:
                print(f"    💡 {feedback.improved_answer}")


async def run_interview(ctx: AppContext, mode: str, voice: bool) -> int:
    profile = _ensure_profile(ctx)
    config = ctx.config
    sequencer = SessionSequencer(
        provider=ctx.provider,
        store=ctx.store,
        profile=profile,
        mode=mode,
        voice=voice,
        voice_factory=(lambda on_lost: create_voice_session(config, on_lost)) if voice else None,
        event_bus=ctx.event_bus,
        time_budget=config.question_time_budget,
        voice_fallback_to_text=config.voice_fallback_to_text,
    )
    try:
        return await _drive_session(sequencer, mode)
    finally:
        # Interrupted or crashed mid-session
        if not sequencer.state.is_terminal:
            await sequencer.abandon()


async def _drive_session(sequencer: SessionSequencer, mode: str) -> int:
    print(f"🧠 Preparing {get_mode(mode).label} ({get_mode(mode).count} questions)...")
    try:
        await sequencer.start()
    except SessionStartError as e:
        print(f"❌ Could not start the session: {e}")
        return 1

    if sequencer.voice_fallback_used:
        print("🎙️  Microphone unavailable - continuing in text mode")

    try:
        while sequencer.state is SequencerState.AWAITING_ANSWER:
            question = sequencer.current_question
            total = len(sequencer.questions)
            print(f"\n❓ Question {sequencer.current_index + 1}/{total} [{question.category} · {question.difficulty}]")
            print(f"   {question.text}")
            print(f"   ⏱️  {sequencer.time_left}s suggested")

            if sequencer.is_voice_mode:
                line = await asyncio.to_thread(input, "🎧 Answer out loud, then press Enter (or type 'quit'): ")
                if line.strip().lower() == "quit":
                    await sequencer.abandon()
                    print("🚪 Session abandoned - nothing was saved")
                    return 0
                if sequencer.state is not SequencerState.AWAITING_ANSWER:
                    break
                print(f"💬 \"{sequencer.user_transcript or '(nothing transcribed)'}\"")
            else:
                hint = await sequencer.wait_for_hint()
                if hint:
                    print(f"   💡 {hint}")
                line = await asyncio.to_thread(input, "✍️  Your answer (or 'quit'): ")
                if line.strip().lower() == "quit":
                    await sequencer.abandon()
                    print("🚪 Session abandoned - nothing was saved")
                    return 0
                sequencer.set_answer_text(line)

            if sequencer.current_index + 1 == total:
                print("🔍 Evaluating your answers...")
            await sequencer.advance()
    except VoiceSessionLostError as e:
        print(f"❌ Voice connection lost: {e}")
        return 1
    except EvaluationError as e:
        print(f"❌ Evaluation failed, nothing was saved: {e}")
        return 1

    if sequencer.state is SequencerState.FAILED:
        print(f"❌ Session failed: {sequencer.error}")
        return 1

    _print_results(sequencer.session)
    return 0


def show_history(ctx: AppContext) -> int:
    analytics = SessionAnalytics(ctx.store.get_sessions())
    stats = analytics.dashboard_stats()
    print(f"📈 Readiness score: {stats.average_score}% across {stats.session_count} sessions")
    trend = analytics.readiness_trend()
    if trend:
        print(f"   Trend: {' → '.join(f'{score}%' for score in trend)}")
    for row in analytics.history():
        voice = "🎙️" if row.is_voice_mode else "⌨️"
        score = f"{row.overall_score}%" if row.overall_score is not None else "-"
        print(f"  {row.session_id}  {row.date[:10]}  {voice}  {row.mode:<14} {row.target_role:<28} {score}")

    mastery = analytics.category_mastery()
    if mastery:
        print("\n🧩 Topic mastery")
        for m in mastery:
            print(f"  {m.category:<24} {m.score}% ({m.answered} answers)")
    for action in analytics.next_actions():
        print(f"{'⚠️ ' if action.urgent else '✅'} {action.title}: {action.description}")
    return 0


def show_results(ctx: AppContext, session_id: str) -> int:
    session = ctx.store.get_session(session_id)
    if session is None:
        print(f"❌ No saved session with id {session_id}")
        return 1
    _print_results(session)
    return 0


def run_ats(ctx: AppContext, paths: List[str]) -> int:
    if len(paths) != 2:
        print("❌ Use --ats=<resume.txt>,<job_description.txt>")
        return 1
    try:
        with open(paths[0], 'r', encoding='utf-8') as f:
            resume = f.read()
        with open(paths[1], 'r', encoding='utf-8') as f:
            jd = f.read()
    except OSError as e:
        print(f"❌ Could not read input: {e}")
        return 1

    print("🔍 Running ATS diagnostic...")
    try:
        report = ctx.provider.analyze_resume_ats(resume, jd)
    except ProviderError as e:
        print(f"❌ ATS diagnostic failed: {e}")
        return 1

    print(f"📊 ATS match: {report.score:.0f}%")
    print(f"✅ Matched: {', '.join(report.keywords.matched) or '-'}")
    print(f"❌ Missing: {', '.join(report.keywords.missing) or '-'}")
    print(f"🚨 Critical: {', '.join(report.keywords.critical) or '-'}")
    for gap in report.skill_gaps:
        print(f"  [{gap.priority}] {gap.skill}: {gap.suggestion}")
    for bullet in report.suggested_bullet_points:
        print(f"  ✏️  {bullet.original}\n     -> {bullet.improved} ({bullet.rationale})")
    print(f"🧾 {report.overall_verdict}")
    for step in report.action_plan:
        print(f"  • {step}")
    return 0


def run_jobs(ctx: AppContext) -> int:
    profile = _ensure_profile(ctx)
    try:
        jobs = ctx.provider.recommend_jobs(profile)
    except ProviderError as e:
        print(f"❌ Could not load recommendations: {e}")
        return 1
    for job in jobs:
        salary = f" · {job.salary_range}" if job.salary_range else ""
        print(f"💼 {job.role} @ {job.company} ({job.location}{salary}) - {job.match_score:.0f}% match")
        print(f"   {job.reason}")
    return 0


def run_coach(ctx: AppContext) -> int:
    chat = ctx.new_coach_chat()
    print(f"🤖 {chat.greeting}")
    print("   (empty line to exit)")
    while True:
        try:
            message = input("🧑 ").strip()
        except EOFError:
            break
        if not message:
            break
        print(f"🤖 {chat.send(message)}")
    return 0


def _ask_identifier(ctx: AppContext, prompt: str) -> str:
    while True:
        value = _ask(prompt)
        if not value:
            return value
        if ctx.store.is_identifier_available(value):
            return value
        print(f"⚠️  {value} is already registered")


def run_register(ctx: AppContext) -> int:
    print("🆕 Create a local account")
    name = _ask("Full name")
    email = _ask_identifier(ctx, "Email")
    phone = _ask_identifier(ctx, "Phone")
    password = getpass("Password: ")
    if not (name and email and phone and password):
        print("❌ Every field is required")
        return 1

    user = ctx.store.register_user(name, email, phone, password)
    if user is None:
        print("❌ That email or phone is already registered")
        return 1
    ctx.user = user
    print(f"✅ Welcome, {user.name}")
    return 0


def run_login(ctx: AppContext) -> int:
    identifier = _ask("Email or phone", ctx.store.get_last_identifier() or "")
    password = getpass("Password: ")
    user = ctx.store.login(identifier, password)
    if user is None:
        print("❌ Invalid credentials")
        return 1
    ctx.user = user
    print(f"✅ Signed in as {user.name}")
    return 0


def run_logout(ctx: AppContext) -> int:
    if ctx.user is None:
        print("ℹ️  Nobody is signed in")
        return 0
    name = ctx.user.name
    ctx.logout()
    print(f"👋 Signed out {name}")
    return 0


def run_settings(ctx: AppContext) -> int:
    if ctx.user is not None:
        print(f"👤 Signed in as {ctx.user.name} <{ctx.user.email}>")

    profile = ctx.profile
    if profile is None:
        _ensure_profile(ctx)
    else:
        print("✏️  Press Enter to keep a value")
        ctx.profile = profile.model_copy(update={
            "name": _ask("Name", profile.name),
            "designation": _ask("Current designation", profile.designation),
            "target_role": _ask("Target role", profile.target_role),
            "skill_level": _choose("Skill level", SKILL_LEVELS, profile.skill_level),
            "domain": _choose("Domain", DOMAINS, profile.domain),
        })

    theme_ids = list(THEMES)
    print("🎨 Theme")
    ctx.theme = _choose("Theme", theme_ids, ctx.theme)
    print(f"✅ Saved ({THEMES[ctx.theme]})")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface for the practice studio."""
    argv = sys.argv[1:] if argv is None else argv

    # Load configuration from environment
    try:
        config = get_config()
        setup_logging(config.log_file, config.log_level)
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        return 1

    ctx = AppContext(config)

    # Voice/text with explicit flags taking precedence
    explicit_voice = "--voice" in argv
    explicit_text = "--text" in argv
    if explicit_text:
        voice = False
    elif explicit_voice:
        voice = True
    else:
        voice = config.enable_voice

    mode = config.default_mode
    for arg in argv:
        if arg.startswith("--mode="):
            mode = arg.split("=", 1)[1]
            if mode not in {m.id for m in INTERVIEW_MODES}:
                print(f"❌ Unknown mode '{mode}'. Choose one of: {', '.join(m.id for m in INTERVIEW_MODES)}")
                return 1
        elif arg.startswith("--results="):
            return show_results(ctx, arg.split("=", 1)[1])
        elif arg.startswith("--ats="):
            return run_ats(ctx, arg.split("=", 1)[1].split(","))
        elif arg == "--history":
            return show_history(ctx)
        elif arg == "--coach":
            return run_coach(ctx)
        elif arg == "--jobs":
            return run_jobs(ctx)
        elif arg == "--register":
            return run_register(ctx)
        elif arg == "--login":
            return run_login(ctx)
        elif arg == "--logout":
            return run_logout(ctx)
        elif arg == "--settings":
            return run_settings(ctx)

    if voice:
        print("🎙️  Voice Mode: the interviewer speaks and listens live")
        print("   (Use --text to type your answers)")
    else:
        print("📝 Text Mode: questions are shown as text, answers are typed")

    try:
        return asyncio.run(run_interview(ctx, mode, voice))
    except KeyboardInterrupt:
        print("\n🚪 Interrupted - nothing was saved")
        return 1


if __name__ == "__main__":
    sys.exit(main())
