from cognify.interview.analysis import SessionAnalytics
from cognify.interview.models import Answer, Feedback, InterviewSession, Question, SessionResults
from cognify.interview.testing import make_profile


def _session(scores_by_category, overall):
    questions, feedback = [], {}
    for i, (category, score) in enumerate(scores_by_category):
        qid = f"q{i + 1}"
        questions.append(Question(id=qid, text="?", category=category, tags=[], difficulty="Medium"))
        feedback[qid] = Feedback(score=score)
    session = InterviewSession(profile=make_profile(), mode="Mixed", questions=questions)
    for q in questions:
        session.record_answer(Answer(question_id=q.id, question_text=q.text, user_answer="a", time_spent=1))
    session.attach_results(SessionResults(overall_score=overall, detailed_feedback=feedback, summary=""))
    return session


def test_dashboard_average_ignores_zero_scores_and_rounds_half_up():
    sessions = [
        _session([("DSA", 81)], 81),
        _session([("DSA", 0)], 0),
        _session([("DSA", 80)], 80),
    ]
    stats = SessionAnalytics(sessions).dashboard_stats()
    assert stats.session_count == 3
    assert stats.average_score == 81


def test_empty_history():
    analytics = SessionAnalytics([])
    stats = analytics.dashboard_stats()
    assert (stats.session_count, stats.average_score) == (0, 0)
    assert analytics.category_mastery() == []
    assert analytics.next_actions() == []


def test_category_mastery_and_next_actions():
    sessions = [
        _session([("System Design", 40), ("Behavioral", 90), ("DSA", 70)], 67),
        _session([("System Design", 50), ("Behavioral", 80)], 65),
    ]
    analytics = SessionAnalytics(sessions)

    mastery = {m.category: (m.score, m.answered) for m in analytics.category_mastery()}
    assert mastery == {"Behavioral": (85, 2), "DSA": (70, 1), "System Design": (45, 2)}
    assert analytics.category_mastery()[0].category == "Behavioral"
    assert [m.category for m in analytics.weakest_categories(1)] == ["System Design"]

    actions = analytics.next_actions()
    assert actions[0].urgent and "System Design" in actions[0].title
    assert not actions[-1].urgent and "Behavioral" in actions[-1].title


def test_history_rows_and_trend_oldest_first():
    newest = _session([("DSA", 90)], 90)
    oldest = _session([("DSA", 60)], 60)
    analytics = SessionAnalytics([newest, oldest])

    rows = analytics.history()
    assert [r.session_id for r in rows] == [newest.id, oldest.id]
    assert rows[0].overall_score == 90
    assert rows[0].target_role == "Senior Backend Engineer"
    assert analytics.readiness_trend() == [60, 90]
