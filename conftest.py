"""
Shared fixtures: an in-memory store seeded with a small mentoring setup
"""
import base64

import pytest
from fastapi.testclient import TestClient

from auth.jwt_handler import create_access_token
from models import Principal
from services.document_store import InMemoryDocumentStore


def encode(source: str) -> str:
    return base64.b64encode(source.encode("utf-8")).decode("ascii")


def principal(user_id: str, is_groot: bool = False) -> Principal:
    return Principal(id=user_id, name=user_id.title(), is_groot=is_groot)


QUIZ_SCRIPT = """
function compute(context)
  local answer = context.input["quiz-answer"].value
  local score = 0
  if answer == "paris" then score = 10 end
  log("scored " .. score)
  return { attributes = { ["quiz-score"] = { value = score } } }
end
"""


def seed_documents() -> dict:
    """
    alice mentors bob in group g1, carol is a mentee in g2. Mentees and
    mentors of g1 may take conversation c1, which has two questions.
    """
    return {
        "users/alice": {"id": "alice", "name": "Alice", "email": "alice@example.com"},
        "users/bob": {"id": "bob", "name": "Bob", "email": "bob@example.com"},
        "users/carol": {"id": "carol", "name": "Carol"},
        "users/groot": {"id": "groot", "name": "Groot"},
        "groups/g1": {
            "id": "g1",
            "name": "Mentoring circle",
            "participants": {"alice": "mentor", "bob": "mentee"},
            "conversations": {"c1": ["mentee", "mentor"]},
            "reports": {"r1": ["mentor"]},
            "code": "join-g1",
            "tags": [],
        },
        "groups/g2": {
            "id": "g2",
            "name": "Another circle",
            "participants": {"carol": "mentee"},
            "conversations": {},
            "reports": {},
            "code": "join-g2",
            "tags": [],
        },
        "conversations/c1": {"id": "c1", "name": "Quiz", "description": "A short quiz", "once": False, "tags": []},
        "conversations/c1/questions/q1": {
            "id": "q1",
            "text": "Hi {{ context.user.name }}, how are you?",
            "options": [
                {
                    "position": 2,
                    "type": "select",
                    "text": "Not great",
                    "attribute": {"id": "mood", "value": "bad"},
                    "next": {"conversation": "c1", "question": "q2"},
                },
                {
                    "position": 1,
                    "type": "select",
                    "text": "Good",
                    "attribute": {"id": "mood", "value": "good"},
                    "next": {"conversation": "c1", "question": "q2"},
                },
            ],
            "first": True,
            "last": False,
            "randomize_option_order": False,
            "tags": [],
            "conversation_id": "c1",
        },
        "conversations/c1/questions/q2": {
            "id": "q2",
            "text": "You said you are feeling {{ context.input.mood.value }}. What is the capital of France?",
            "options": [
                {
                    "position": 1,
                    "type": "input",
                    "text": "Type your answer",
                    "attribute": {"id": "quiz-answer", "value": "unknown"},
                    "script": "s1",
                },
            ],
            "first": False,
            "last": True,
            "randomize_option_order": False,
            "tags": [],
            "conversation_id": "c1",
        },
        "attributes/mood": {"id": "mood", "name": "Mood", "description": "How the user feels", "tags": [], "conversations": ["c1"]},
        "attributes/quiz-answer": {"id": "quiz-answer", "name": "Quiz answer", "description": "", "tags": [], "conversations": ["c1"]},
        "attributes/quiz-score": {"id": "quiz-score", "name": "Quiz score", "description": "", "tags": [], "conversations": []},
        "scripts/s1": {
            "id": "s1",
            "name": "Quiz score",
            "description": "Scores the quiz answer",
            "tags": [],
            "input": [{"id": "quiz-answer", "optional": False}],
            "computed": [{"id": "quiz-score", "optional": False}],
            "content": encode(QUIZ_SCRIPT),
        },
        "reports/r1": {
            "id": "r1",
            "name": "Mood report",
            "description": "",
            "tags": [],
            "template": encode("<p>{{ context.user.name }} feels {{ context.input.mood.value }}</p>"),
            "input": [{"id": "mood", "optional": False}],
        },
    }


@pytest.fixture
def store():
    return InMemoryDocumentStore(seed_documents())


@pytest.fixture
def alice():
    return principal("alice")


@pytest.fixture
def bob():
    return principal("bob")


@pytest.fixture
def carol():
    return principal("carol")


@pytest.fixture
def groot():
    return principal("groot", is_groot=True)


@pytest.fixture
def client(store):
    from main import create_app

    with TestClient(create_app(store=store)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Build the Authorization header for a user"""
    def build(user_id: str, groot: bool = False) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id, groot=groot)}"}

    return build
