"""
Tests for the group, conversation, question, attribute, report and user services
"""
import random

import pytest

from conftest import encode
from errors import BackendError, EntityAlreadyExists, EntityNotFound, ImproperPayload, NotAllowed, PreconditionFailed
from services.attribute_service import AttributeService, UserAttributeService
from services.conversation_service import ConversationService, permitted_ids
from services.group_service import GroupService
from services.question_service import QuestionService
from services.report_service import ReportService
from services.user_service import UserService
from models import Group


# =============================================================================
# GROUPS
# =============================================================================

@pytest.mark.asyncio
async def test_join_adds_the_caller_as_mentee(store, carol):
    group = await GroupService(store).join(carol, "join-g1")

    assert group.id == "g1"
    assert group.participants["carol"] == "mentee"
    assert (await store.get("groups/g1"))["participants"]["carol"] == "mentee"


@pytest.mark.asyncio
async def test_join_keeps_an_existing_role(store, alice):
    group = await GroupService(store).join(alice, "join-g1")
    assert group.participants["alice"] == "mentor"


@pytest.mark.asyncio
async def test_join_with_unknown_code(store, carol):
    with pytest.raises(EntityNotFound):
        await GroupService(store).join(carol, "no-such-code")


@pytest.mark.asyncio
async def test_groups_are_filtered_for_non_groot(store, bob, groot):
    groups = GroupService(store)

    assert [group.id for group in await groups.find(bob)] == ["g1"]
    assert [group.id for group in await groups.find(groot)] == ["g1", "g2"]
    assert [group.id for group in await groups.find(groot, code="join-g2")] == ["g2"]


@pytest.mark.asyncio
async def test_create_group_generates_an_id(store):
    group = await GroupService(store).create({"name": "New", "code": "new-code"})

    assert group.id
    assert await store.exists(f"groups/{group.id}")


@pytest.mark.asyncio
async def test_update_missing_group(store):
    with pytest.raises(EntityNotFound):
        await GroupService(store).update("nope", {"name": "x", "code": "y"})


# =============================================================================
# CONVERSATIONS AND QUESTIONS
# =============================================================================

def test_permitted_ids():
    groups = [
        Group(id="a", name="a", code="a", participants={"u": "mentee"}, conversations={"c1": ["mentee"], "c2": ["mentor"]}),
        Group(id="b", name="b", code="b", participants={"u": "mentor"}, conversations={"c1": ["mentor"], "c2": ["mentor"]}),
    ]
    assert permitted_ids(groups, "u", "conversations") == ["c1", "c2"]


@pytest.mark.asyncio
async def test_conversations_are_filtered_by_role(store, bob, carol, groot):
    await store.set("conversations/c2", {"id": "c2", "name": "Hidden", "description": ""})
    conversations = ConversationService(store)

    assert [c.id for c in await conversations.find(bob)] == ["c1"]
    assert await conversations.find(carol) == []
    assert [c.id for c in await conversations.find(groot)] == ["c1", "c2"]
    assert await conversations.find(bob, name="Hidden") == []


@pytest.mark.asyncio
async def test_deleting_a_conversation_deletes_its_questions(store):
    await ConversationService(store).delete("c1")

    assert not await store.exists("conversations/c1")
    assert await store.find("conversations/c1/questions") == []


@pytest.mark.asyncio
async def test_questions_are_rendered_for_the_user(store, bob):
    questions = await QuestionService(store).find(bob, "c1", first=True)

    assert [question.id for question in questions] == ["q1"]
    assert questions[0].text == "Hi Bob, how are you?"
    assert [option.position for option in questions[0].options] == [1, 2]


@pytest.mark.asyncio
async def test_raw_questions_are_not_rendered(store, bob):
    question = await QuestionService(store).get(bob, "c1", "q1", raw=True)
    assert question.text == "Hi {{ context.user.name }}, how are you?"


@pytest.mark.asyncio
async def test_options_are_shuffled_when_asked(store, bob):
    await store.set(
        "conversations/c1/questions/q5",
        {
            "id": "q5",
            "text": "Pick one",
            "options": [{"position": n, "text": str(n)} for n in range(1, 9)],
            "randomize_option_order": True,
            "conversation_id": "c1",
        },
    )
    rng = random.Random(7)
    expected = list(range(1, 9))
    random.Random(7).shuffle(expected)

    question = await QuestionService(store, rng=rng).get(bob, "c1", "q5")

    assert [option.position for option in question.options] == expected


@pytest.mark.asyncio
async def test_broken_template_is_a_backend_error(store, bob):
    await store.set(
        "conversations/c1/questions/q6",
        {"id": "q6", "text": "Hi {{ context.user.name ", "options": [], "conversation_id": "c1"},
    )
    with pytest.raises(BackendError):
        await QuestionService(store).get(bob, "c1", "q6")


@pytest.mark.asyncio
async def test_create_question_with_duplicate_positions(store):
    with pytest.raises(ValueError):
        await QuestionService(store).create(
            "c1", {"text": "x", "options": [{"position": 1, "text": "a"}, {"position": 1, "text": "b"}]}
        )


# =============================================================================
# ATTRIBUTES
# =============================================================================

@pytest.mark.asyncio
async def test_attribute_create_keeps_a_chosen_id(store):
    attribute = await AttributeService(store).create({"id": "streak", "name": "Streak", "description": ""})

    assert attribute.id == "streak"
    with pytest.raises(EntityAlreadyExists):
        await AttributeService(store).create({"id": "streak", "name": "Streak", "description": ""})


@pytest.mark.asyncio
async def test_attribute_update_keeps_unset_fields(store):
    attribute = await AttributeService(store).update("mood", {"name": "Feeling"})

    assert attribute.name == "Feeling"
    assert attribute.description == "How the user feels"


@pytest.mark.asyncio
async def test_user_attribute_must_be_defined(store):
    with pytest.raises(NotAllowed):
        await UserAttributeService(store).create("bob", "undefined", 1, observer="alice")


@pytest.mark.asyncio
async def test_user_attribute_create_then_update(store):
    attributes = UserAttributeService(store)

    created = await attributes.create("bob", "mood", "good", observer="alice")
    assert created.history[0].observer == "alice"

    with pytest.raises(EntityAlreadyExists):
        await attributes.create("bob", "mood", "bad", observer="alice")

    updated = await attributes.update("bob", "mood", "bad", observer="bob")
    assert updated.value == "bad"
    assert [snapshot.observer for snapshot in updated.history] == ["alice", "bob"]
    assert [a.id for a in await attributes.find("bob", value="bad")] == ["mood"]


@pytest.mark.asyncio
async def test_template_input_merges_definitions(store):
    await UserAttributeService(store).record("bob", "mood", "good", observer="questioner")

    input = await UserAttributeService(store).template_input("bob")

    assert input["mood"]["name"] == "Mood"
    assert input["mood"]["value"] == "good"


# =============================================================================
# REPORTS
# =============================================================================

@pytest.mark.asyncio
async def test_render_report(store):
    await UserAttributeService(store).record("bob", "mood", "<b>great</b>", observer="questioner")

    html = await ReportService(store).render("r1", "bob")

    assert html == "<p>Bob feels &lt;b&gt;great&lt;/b&gt;</p>"


@pytest.mark.asyncio
async def test_render_report_without_required_input(store):
    with pytest.raises(PreconditionFailed):
        await ReportService(store).render("r1", "bob")


@pytest.mark.asyncio
async def test_reports_are_filtered_by_role(store, alice, bob, groot):
    reports = ReportService(store)

    assert [report.id for report in await reports.find(alice)] == ["r1"]
    assert await reports.find(bob) == []
    assert [report.id for report in await reports.find(groot)] == ["r1"]


@pytest.mark.asyncio
async def test_report_template_must_be_base64(store):
    with pytest.raises(ImproperPayload):
        await ReportService(store).create({"name": "x", "description": "", "template": "not base64!"})

    report = await ReportService(store).create({"name": "x", "description": "", "template": encode("hi")})
    assert report.template == encode("hi")


# =============================================================================
# USERS
# =============================================================================

@pytest.mark.asyncio
async def test_update_user_profile(store):
    user = await UserService(store).update("bob", {"phone": "+100"})

    assert user.phone == "+100"
    assert user.email == "bob@example.com"


@pytest.mark.asyncio
async def test_delete_user_removes_attributes_and_memberships(store):
    await UserAttributeService(store).record("bob", "mood", "good", observer="questioner")

    await UserService(store).delete("bob")

    assert not await store.exists("users/bob")
    assert await store.find("users/bob/attributes") == []
    assert "bob" not in (await store.get("groups/g1"))["participants"]


@pytest.mark.asyncio
async def test_find_user_attributes_by_boolean_value(store):
    attributes = UserAttributeService(store)
    await attributes.record("bob", "quiz-score", 1, observer="bot")
    await attributes.record("bob", "mood", True, observer="questioner")

    assert [a.id for a in await attributes.find("bob", value=True)] == ["mood"]
    assert [a.id for a in await attributes.find("bob", value=1)] == ["quiz-score"]
