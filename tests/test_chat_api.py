from core.errors import AnswerGenerationError
from api.deps import get_answer_backend_dep
from main import app
from services.usage_service import consume_message


def test_free_messages_then_quota_exceeded(client):
    for expected_left in (2, 1, 0):
        r = client.post("/api/chat/messages", json={"question": "  What is a bundle?  "})
        assert r.status_code == 200, r.text
        data = r.json()
        assert data["message"]["question"] == "What is a bundle?"
        assert data["message"]["source"] == "free"
        assert data["remaining_free"] == expected_left

    r = client.post("/api/chat/messages", json={"question": "one more"})
    assert r.status_code == 403, r.text
    assert r.json()["error"] == "QUOTA_EXCEEDED"


def test_bundle_pays_after_free_quota(client):
    bundle = client.post("/api/subscriptions", json={"tier": "Basic", "billing_cycle": "monthly"}).json()
    for _ in range(3):
        client.post("/api/chat/messages", json={"question": "free"})

    r = client.post("/api/chat/messages", json={"question": "paid"})
    assert r.status_code == 200, r.text
    assert r.json()["message"]["source"] == bundle["id"]
    assert r.json()["remaining_bundle"] == 9

    active = client.get("/api/subscriptions/active").json()["subscriptions"]
    assert active[0]["messages_used"] == 1


def test_enterprise_bundle_reports_unlimited(client):
    client.post("/api/subscriptions", json={"tier": "Enterprise", "billing_cycle": "yearly"})
    for _ in range(4):
        r = client.post("/api/chat/messages", json={"question": "q"})
    assert r.status_code == 200, r.text
    assert r.json()["remaining_bundle"] is None


def test_blank_question_is_rejected(client):
    r = client.post("/api/chat/messages", json={"question": "   "})
    assert r.status_code == 422, r.text


def test_history_newest_first_with_limit(client):
    for q in ("first", "second", "third"):
        client.post("/api/chat/messages", json={"question": q})

    r = client.get("/api/chat/messages", params={"limit": 2})
    assert r.status_code == 200, r.text
    msgs = r.json()["messages"]
    assert len(msgs) == 2
    assert [m["question"] for m in msgs] == ["third", "second"]
    assert msgs[0]["answer"].startswith("This is a mock answer")


def test_answer_failure_surfaces_as_502(client):
    class Broken:
        def answer(self, question):
            raise AnswerGenerationError("Answer service is unavailable, please try again later")

    app.dependency_overrides[get_answer_backend_dep] = lambda: Broken()
    r = client.post("/api/chat/messages", json={"question": "hello"})
    assert r.status_code == 502, r.text
    assert r.json()["error"] == "ANSWER_FAILED"


def test_usage_summary(client):
    client.post("/api/subscriptions", json={"tier": "Pro", "billing_cycle": "monthly"})
    client.post("/api/chat/messages", json={"question": "hi"})

    r = client.get("/api/usage/me")
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["free_messages_used"] == 1
    assert data["free_remaining"] == 2
    assert data["can_send"] is True
    assert data["bundles"][0]["tier"] == "Pro"
    assert data["bundles"][0]["remaining"] == 100


def test_admin_resets_free_usage(admin_client, make_user, db_session):
    target = make_user("chatty")
    for _ in range(3):
        consume_message(db_session, target.id)

    r = admin_client.post(f"/api/admin/usage/{target.id}/reset")
    assert r.status_code == 200, r.text
    assert r.json()["messages_used"] == 0
    assert r.json()["free_remaining"] == 3

    r = admin_client.post("/api/admin/usage/999999/reset")
    assert r.status_code == 404, r.text
