"""
Tests for answering questions in a conversation
"""
import random
from unittest.mock import AsyncMock

import pytest

from errors import BackendError, EntityNotFound
from services.attribute_service import UserAttributeService
from services.conversation_runner import ConversationRunner, Selection, answer_value
from services.question_service import QuestionService
from models import Option


@pytest.mark.asyncio
async def test_first_answer_leads_to_the_rendered_second_question(store, bob):
    runner = ConversationRunner(store)

    following = await runner.answer("c1", "q1", bob, Selection(position=2))

    assert following.id == "q2"
    assert following.text == "You said you are feeling bad. What is the capital of France?"

    mood = await UserAttributeService(store).get("bob", "mood")
    assert mood.value == "bad"
    assert len(mood.history) == 1
    assert mood.history[0].observer == "questioner"
    assert mood.history[0].message.in_ == "conversation"
    assert mood.history[0].message.id == "c1"


@pytest.mark.asyncio
async def test_raw_keeps_the_template_text(store, bob):
    following = await ConversationRunner(store).answer("c1", "q1", bob, Selection(position=1), raw=True)
    assert following.text == "You said you are feeling {{ context.input.mood.value }}. What is the capital of France?"


@pytest.mark.asyncio
async def test_unknown_option_writes_nothing(store, bob):
    with pytest.raises(EntityNotFound):
        await ConversationRunner(store).answer("c1", "q1", bob, Selection(position=7))

    assert not await store.exists("users/bob/attributes/mood")


@pytest.mark.asyncio
async def test_unknown_question(store, bob):
    with pytest.raises(EntityNotFound):
        await ConversationRunner(store).answer("c1", "nope", bob, Selection(position=1))


@pytest.mark.asyncio
async def test_select_option_ignores_input(store, bob):
    await ConversationRunner(store).answer("c1", "q1", bob, Selection(position=1, input="terrible"))

    mood = await UserAttributeService(store).get("bob", "mood")
    assert mood.value == "good"


@pytest.mark.asyncio
async def test_each_answer_appends_exactly_one_snapshot(store, bob):
    runner = ConversationRunner(store)

    await runner.answer("c1", "q1", bob, Selection(position=1))
    await runner.answer("c1", "q1", bob, Selection(position=2))
    await runner.answer("c1", "q1", bob, Selection(position=1))

    mood = await UserAttributeService(store).get("bob", "mood")
    assert [snapshot.value for snapshot in mood.history] == ["good", "bad", "good"]
    assert mood.value == "good"


@pytest.mark.asyncio
async def test_last_question_ends_the_conversation_and_runs_its_script(store, bob):
    following = await ConversationRunner(store).answer("c1", "q2", bob, Selection(position=1, input="paris"))

    assert following is None

    attributes = UserAttributeService(store)
    assert (await attributes.get("bob", "quiz-answer")).value == "paris"

    score = await attributes.get("bob", "quiz-score")
    assert score.value == 10
    assert score.history[0].observer == "bot"
    assert score.history[0].message.in_ == "script"
    assert score.history[0].message.id == "s1"


@pytest.mark.asyncio
async def test_input_option_falls_back_to_its_default(store, bob):
    await ConversationRunner(store).answer("c1", "q2", bob, Selection(position=1))

    attributes = UserAttributeService(store)
    assert (await attributes.get("bob", "quiz-answer")).value == "unknown"
    assert (await attributes.get("bob", "quiz-score")).value == 0


@pytest.mark.asyncio
async def test_attribute_is_kept_when_the_script_fails(store, bob):
    scripts = AsyncMock()
    scripts.run.side_effect = RuntimeError("lua exploded")
    runner = ConversationRunner(store, scripts=scripts)

    with pytest.raises(BackendError):
        await runner.answer("c1", "q2", bob, Selection(position=1, input="paris"))

    scripts.run.assert_awaited_once_with("s1", "bob")
    assert (await UserAttributeService(store).get("bob", "quiz-answer")).value == "paris"


@pytest.mark.asyncio
async def test_attribute_is_recorded_before_the_script_runs(store, bob):
    seen = {}

    async def run(script_id, user_id):
        seen["answer"] = (await UserAttributeService(store).get(user_id, "quiz-answer")).value

    scripts = AsyncMock()
    scripts.run.side_effect = run

    await ConversationRunner(store, scripts=scripts).answer("c1", "q2", bob, Selection(position=1, input="rome"))

    assert seen["answer"] == "rome"


@pytest.mark.asyncio
async def test_next_question_may_be_in_another_conversation(store, bob):
    await store.set("conversations/c2", {"id": "c2", "name": "Follow up", "description": ""})
    await store.set(
        "conversations/c2/questions/x1",
        {
            "id": "x1",
            "text": "Welcome to part two",
            "options": [{"position": 2, "text": "b"}, {"position": 1, "text": "a"}],
            "conversation_id": "c2",
        },
    )
    await store.set(
        "conversations/c1/questions/q3",
        {
            "id": "q3",
            "text": "Continue?",
            "options": [{"position": 1, "text": "Yes", "next": {"conversation": "c2", "question": "x1"}}],
            "conversation_id": "c1",
        },
    )

    following = await ConversationRunner(store).answer("c1", "q3", bob, Selection(position=1))

    assert following.id == "x1"
    assert following.conversation_id == "c2"
    assert [option.position for option in following.options] == [1, 2]
    # The option set no attribute
    assert await UserAttributeService(store).find("bob") == []


@pytest.mark.asyncio
async def test_missing_next_question(store, bob):
    await store.set(
        "conversations/c1/questions/q4",
        {
            "id": "q4",
            "text": "Dead end",
            "options": [{"position": 1, "text": "Go", "next": {"conversation": "c1", "question": "gone"}}],
            "conversation_id": "c1",
        },
    )

    with pytest.raises(EntityNotFound):
        await ConversationRunner(store).answer("c1", "q4", bob, Selection(position=1))


def test_answer_value():
    select = Option(position=1, text="a", attribute={"id": "x", "value": True})
    typed = Option(position=2, type="input", text="b", attribute={"id": "x", "value": "default"})

    assert answer_value(select, Selection(1, input="ignored")) is True
    assert answer_value(typed, Selection(2, input="typed")) == "typed"
    assert answer_value(typed, Selection(2)) == "default"


@pytest.mark.asyncio
async def test_next_question_options_are_shuffled_when_asked(store, bob):
    question = await store.get("conversations/c1/questions/q2")
    question["randomize_option_order"] = True
    question["options"] = [
        {"position": n, "type": "select", "text": str(n), "attribute": {"id": "quiz-answer", "value": str(n)}}
        for n in range(1, 9)
    ]
    await store.set("conversations/c1/questions/q2", question)

    expected = list(range(1, 9))
    random.Random(3).shuffle(expected)
    runner = ConversationRunner(store, questions=QuestionService(store, rng=random.Random(3)))

    following = await runner.answer("c1", "q1", bob, Selection(position=1))

    assert following.id == "q2"
    assert [option.position for option in following.options] == expected
    assert following.text.startswith("You said you are feeling good.")
