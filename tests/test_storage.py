import json
import os

import pytest

from cognify.interview.models import Answer, Feedback, InterviewSession, SessionResults
from cognify.interview.testing import make_questions


def _completed_session(profile, score=80, mode="Quick"):
    questions = make_questions(2)
    session = InterviewSession(profile=profile, mode=mode, questions=questions)
    for q in questions:
        session.record_answer(Answer(question_id=q.id, question_text=q.text, user_answer="ok", time_spent=5))
    session.attach_results(SessionResults(
        overall_score=score,
        detailed_feedback={q.id: Feedback(score=score) for q in questions},
        summary="done",
    ))
    return session


def test_sessions_are_prepended_and_round_trip(store, profile):
    first = _completed_session(profile, score=60)
    second = _completed_session(profile, score=90)
    store.save_session(first)
    store.save_session(second)

    sessions = store.get_sessions()
    assert [s.id for s in sessions] == [second.id, first.id]
    assert sessions[0].results.overall_score == 90
    assert store.get_session(first.id).results.detailed_feedback["q1"].score == 60
    assert store.get_session("missing") is None


def test_incomplete_sessions_are_refused(store, profile):
    session = InterviewSession(profile=profile, mode="Quick", questions=make_questions(2))
    with pytest.raises(ValueError):
        store.save_session(session)
    assert store.get_sessions() == []


def test_writes_leave_no_temp_files(store, profile):
    store.save_session(_completed_session(profile))
    store.save_profile(profile)
    leftovers = [f for f in os.listdir(store.workdir) if f.endswith(".tmp")]
    assert leftovers == []
    with open(os.path.join(store.workdir, "sessions.json"), encoding="utf-8") as f:
        assert json.load(f)[0]["results"]["overallScore"] == 80


def test_failed_serialisation_leaves_no_temp_file_and_keeps_old_data(store, profile):
    store.save_profile(profile)
    with pytest.raises(TypeError):
        store._write("profile.json", {"name": object()})

    assert [f for f in os.listdir(store.workdir) if f.endswith(".tmp")] == []
    assert store.get_profile().name == profile.name


def test_profile_and_theme_persist(store, profile):
    assert store.get_profile() is None
    store.save_profile(profile)
    store.save_theme("pro-dark")
    assert store.get_profile().target_role == profile.target_role
    assert store.get_theme() == "pro-dark"


def test_register_rejects_duplicate_email_or_phone(store):
    user = store.register_user("Grace Hopper", "grace@example.com", "555-0100", "cobol")
    assert user is not None
    assert user.picture.startswith("https://ui-avatars.com/api/?name=Grace%20Hopper")

    assert store.register_user("Other", "grace@example.com", "555-0199", "x") is None
    assert store.register_user("Other", "other@example.com", "555-0100", "x") is None
    assert not store.is_identifier_available("555-0100")
    assert store.is_identifier_available("new@example.com")
    assert len(store.get_registered_users()) == 1


def test_login_by_email_or_phone(store):
    store.register_user("Grace", "grace@example.com", "555-0100", "cobol")
    assert store.login("grace@example.com", "cobol").name == "Grace"
    assert store.login("555-0100", "cobol") is not None
    assert store.login("grace@example.com", "wrong") is None

    raw = json.dumps([u.to_dict() for u in store.get_registered_users()])
    assert "cobol" not in raw


def test_save_user_records_last_identifier_and_logout_clears(store):
    user = store.register_user("Grace", "grace@example.com", "555-0100", "cobol")
    store.save_user(user)
    assert store.get_user().email == "grace@example.com"
    assert store.get_last_identifier() == "grace@example.com"

    store.save_user(None)
    assert store.get_user() is None
    assert store.get_last_identifier() == "grace@example.com"
