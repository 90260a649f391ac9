import json

import pytest
from google.auth.exceptions import DefaultCredentialsError

from cognify.config import EVALUATION_MODEL, HINT_MODEL
from cognify.infrastructure.llm import ProviderError, VertexRestClient
from cognify.interview.models import Answer
from cognify.interview.services import CoachChat, InterviewProvider
from cognify.interview.testing import make_profile


class FakeClient:
    """Records generate_content calls and replays canned texts."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def generate_content(self, prompt_text=None, **kwargs):
        self.calls.append(dict(kwargs, prompt_text=prompt_text))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def generate_json(self, prompt, response_schema=None, **kwargs):
        from cognify.interview.schemas import extract_json
        return extract_json(self.generate_content(prompt, response_schema=response_schema, **kwargs))


def _question(qid):
    return {"id": qid, "text": "Why?", "category": "HR", "tags": [], "difficulty": "Easy"}


def test_generate_questions_uses_schema_and_thinking_budget():
    client = FakeClient([json.dumps([_question("a"), _question("b")])])
    provider = InterviewProvider(client)
    questions = provider.generate_questions(make_profile(), "Technical", 2)

    assert [q.id for q in questions] == ["a", "b"]
    call = client.calls[0]
    assert call["response_schema"]["type"] == "ARRAY"
    assert call["thinking_budget"] == 8192
    assert "Generate 2 sophisticated interview questions" in call["prompt_text"]
    assert "Mode: Technical" in call["prompt_text"]


def test_generate_questions_rejects_empty_list():
    provider = InterviewProvider(FakeClient(["[]"]))
    with pytest.raises(ProviderError):
        provider.generate_questions(make_profile(), "Quick", 5)


def test_hint_falls_back_on_empty_reply():
    client = FakeClient(["   "])
    provider = InterviewProvider(client)
    assert provider.get_instant_hint("Why us?", make_profile()) == "Focus on your core achievements."
    assert client.calls[0]["model"] == HINT_MODEL


def test_evaluate_answer_parses_feedback():
    client = FakeClient([json.dumps({
        "score": 88, "strengths": ["clarity"], "weaknesses": ["depth"],
        "improvedAnswer": "More depth.", "analysis": "Good.",
    })])
    answer = Answer(question_id="q1", question_text="Why?", user_answer="Because.", time_spent=12)
    feedback = InterviewProvider(client).evaluate_answer(make_profile(), answer)

    assert feedback.score == 88
    assert client.calls[0]["model"] == EVALUATION_MODEL
    assert "Candidate Answer: Because." in client.calls[0]["prompt_text"]


def test_recommend_jobs_asks_for_four():
    client = FakeClient([json.dumps([{
        "id": "1", "company": "Acme", "role": "SRE", "location": "Remote", "matchScore": 90, "reason": "fit",
    }])])
    jobs = InterviewProvider(client).recommend_jobs(make_profile())
    assert jobs[0].company == "Acme"
    assert "suggest 4 high-impact career opportunities" in client.calls[0]["prompt_text"]


def test_coach_keeps_history_and_apologises_on_failure():
    client = FakeClient(["Use the STAR method.", ProviderError("503")])
    coach = CoachChat(client)

    assert coach.send("How do I answer behavioral questions?") == "Use the STAR method."
    assert [c["role"] for c in coach.history] == ["user", "model"]
    assert client.calls[0]["system_instruction"].startswith("You are an expert career coach named CogniFy AI.")

    reply = coach.send("And for system design?")
    assert reply.startswith("I'm having trouble connecting")
    assert len(coach.history) == 2
    assert len(client.calls[1]["contents"]) == 3


class _Response:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload)

    def json(self):
        return self._payload


def test_vertex_client_skips_thought_parts(monkeypatch):
    client = VertexRestClient(project="p", credentials_json=None)
    client._token = "token"
    sent = {}

    def fake_post(url, headers=None, json=None, timeout=None):
        sent.update(url=url, body=json)
        return _Response(200, {"candidates": [{"content": {"parts": [
            {"text": "thinking...", "thought": True}, {"text": "answer"},
        ]}}]})

    monkeypatch.setattr("cognify.infrastructure.llm.client.requests.post", fake_post)
    text = client.generate_content("hello", response_schema={"type": "OBJECT"}, thinking_budget=128)

    assert text == "answer"
    assert sent["url"].endswith(":generateContent")
    assert sent["body"]["generationConfig"]["responseMimeType"] == "application/json"
    assert sent["body"]["generationConfig"]["thinkingConfig"] == {"thinkingBudget": 128}


def test_vertex_client_raises_provider_error_on_http_failure(monkeypatch):
    client = VertexRestClient(project="p")
    client._token = "stale"
    monkeypatch.setattr(
        "cognify.infrastructure.llm.client.requests.post",
        lambda *a, **k: _Response(401, {"error": "expired"}),
    )
    with pytest.raises(ProviderError):
        client.generate_content("hello")
    assert client._token is None


def test_generate_json_decodes_response(monkeypatch):
    client = VertexRestClient(project="p")
    monkeypatch.setattr(client, "generate_content", lambda *a, **k: '```json\n{"ok": true}\n```')
    assert client.generate_json("prompt") == {"ok": True}

    monkeypatch.setattr(client, "generate_content", lambda *a, **k: "")
    with pytest.raises(ProviderError):
        client.generate_json("prompt")


def test_vertex_client_wraps_credential_failures(monkeypatch):
    def no_credentials(scopes=None):
        raise DefaultCredentialsError("no application default credentials")

    monkeypatch.setattr("cognify.infrastructure.llm.client.google.auth.default", no_credentials)
    client = VertexRestClient(project="p")
    with pytest.raises(ProviderError, match="authentication failed"):
        client.generate_content("hello")

    client = VertexRestClient(project="p", credentials_json="/nonexistent/key.json")
    with pytest.raises(ProviderError):
        client.generate_content("hello")


def test_vertex_client_wraps_non_json_success(monkeypatch):
    class HtmlResponse:
        status_code = 200
        text = "<html>proxy login</html>"

        def json(self):
            raise ValueError("Expecting value")

    client = VertexRestClient(project="p")
    client._token = "token"
    monkeypatch.setattr("cognify.infrastructure.llm.client.requests.post", lambda *a, **k: HtmlResponse())
    with pytest.raises(ProviderError, match="invalid JSON"):
        client.generate_content("hello")

    monkeypatch.setattr("cognify.infrastructure.llm.client.requests.post",
                        lambda *a, **k: _Response(200, ["not", "an", "object"]))
    with pytest.raises(ProviderError):
        client.generate_content("hello")
