import asyncio

import pytest

import cognify.__main__ as cli
from cognify.app import AppContext
from cognify.config import Config
from cognify.infrastructure.audio.playback import PlaybackScheduler
from cognify.interview.models import Answer, Feedback, InterviewSession, SessionResults
from cognify.interview.testing import (
    FakeAudioOutput,
    MockCapture,
    MockChannel,
    MockProvider,
    make_profile,
    make_questions,
)
from cognify.interview.voice import VoiceSession


@pytest.fixture
def ctx(store):
    return AppContext(Config(google_cloud_project="demo", workdir=store.workdir),
                      store=store, provider=MockProvider())


def _feed(monkeypatch, *answers):
    """Answer input() prompts in order."""
    replies = list(answers)

    def fake_input(prompt=""):
        if not replies:
            raise EOFError
        return replies.pop(0)

    monkeypatch.setattr("builtins.input", fake_input)


def _completed_session(profile, score):
    questions = make_questions(1)
    session = InterviewSession(profile=profile, mode="Quick", questions=questions)
    session.record_answer(Answer(question_id="q1", question_text=questions[0].text, user_answer="ok", time_spent=30))
    session.attach_results(SessionResults(
        overall_score=score, detailed_feedback={"q1": Feedback(score=score)}, summary="done",
    ))
    return session


def test_closed_stdin_mid_voice_interview_releases_devices(ctx, monkeypatch):
    ctx.profile = make_profile()
    channel, capture, output = MockChannel(), MockCapture(), FakeAudioOutput()

    def voice_session(config, on_lost):
        return VoiceSession(channel, capture, PlaybackScheduler(output), output=output, on_lost=on_lost)

    monkeypatch.setattr(cli, "create_voice_session", voice_session)
    _feed(monkeypatch)

    with pytest.raises(EOFError):
        asyncio.run(cli.run_interview(ctx, "Quick", voice=True))

    assert channel.close_calls == 1
    assert capture.stop_calls == 1
    assert output.closed
    assert ctx.store.get_sessions() == []


def test_quit_ends_text_interview_without_saving(ctx, monkeypatch, capsys):
    ctx.profile = make_profile()
    _feed(monkeypatch, "I would use a heap.", "quit")

    assert asyncio.run(cli.run_interview(ctx, "Quick", voice=False)) == 0
    assert "abandoned" in capsys.readouterr().out
    assert ctx.store.get_sessions() == []


def test_register_then_logout_then_login(ctx, monkeypatch):
    monkeypatch.setattr(cli, "getpass", lambda prompt="": "s3cret")
    _feed(monkeypatch, "Grace Hopper", "grace@example.com", "555-0100")
    assert cli.run_register(ctx) == 0
    assert ctx.user.name == "Grace Hopper"
    assert ctx.store.get_user().email == "grace@example.com"

    assert cli.run_logout(ctx) == 0
    assert ctx.user is None
    assert ctx.store.get_user() is None

    # Enter accepts the remembered identifier
    _feed(monkeypatch, "")
    assert cli.run_login(ctx) == 0
    assert ctx.user.email == "grace@example.com"

    monkeypatch.setattr(cli, "getpass", lambda prompt="": "wrong")
    _feed(monkeypatch, "555-0100")
    assert cli.run_login(ctx) == 1


def test_register_asks_again_for_a_taken_email(ctx, monkeypatch, capsys):
    ctx.store.register_user("Grace", "grace@example.com", "555-0100", "cobol")
    monkeypatch.setattr(cli, "getpass", lambda prompt="": "pw")
    _feed(monkeypatch, "Ada", "grace@example.com", "ada@example.com", "555-0199")

    assert cli.run_register(ctx) == 0
    assert "already registered" in capsys.readouterr().out
    assert ctx.user.email == "ada@example.com"
    assert len(ctx.store.get_registered_users()) == 2


def test_settings_update_profile_from_catalogues_and_theme(ctx, monkeypatch):
    ctx.profile = make_profile()
    # name, designation, target role kept; skill level 4 = Lead; domain kept; theme 2
    _feed(monkeypatch, "", "", "", "4", "", "2")

    assert cli.run_settings(ctx) == 0
    assert ctx.profile.skill_level == "Lead"
    assert ctx.profile.name == "Ada"
    assert ctx.theme == "pro-dark"
    assert ctx.store.get_theme() == "pro-dark"
    assert ctx.store.get_profile().skill_level == "Lead"


def test_unknown_choice_keeps_the_current_value(monkeypatch, capsys):
    _feed(monkeypatch, "Astronaut")
    assert cli._choose("Skill level", ["Junior", "Senior"], "Senior") == "Senior"
    assert "Unknown choice" in capsys.readouterr().out


def test_history_prints_readiness_trend_oldest_first(ctx, capsys):
    ctx.store.save_session(_completed_session(make_profile(), 60))
    ctx.store.save_session(_completed_session(make_profile(), 90))

    assert cli.show_history(ctx) == 0
    assert "Trend: 60% → 90%" in capsys.readouterr().out
