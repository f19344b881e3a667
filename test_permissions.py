"""
Tests for the authorization engine
"""
from unittest.mock import AsyncMock

import pytest

from auth.permissions import (
    GROOT,
    AuthorizationEngine,
    ConversationContext,
    GroupContext,
    ReportContext,
    ResourceParams,
    UserContext,
)
from errors import EntityNotFound


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "context, params",
    [
        (GROOT, ResourceParams()),
        (UserContext(("supermentor",)), ResourceParams(user_id="someone")),
        (GroupContext(("supermentor",)), ResourceParams(group_id="missing")),
        (ConversationContext(), ResourceParams(conversation_id="c9")),
        (ReportContext(), ResourceParams(report_id="r9", user_id="someone")),
    ],
)
async def test_groot_is_allowed_without_touching_the_store(groot, context, params):
    store = AsyncMock()
    engine = AuthorizationEngine(store)

    decision = await engine.authorize(groot, context, params)

    assert decision.allowed
    store.get.assert_not_called()
    store.find.assert_not_called()


@pytest.mark.asyncio
async def test_no_principal_is_denied(store):
    decision = await AuthorizationEngine(store).authorize(None, UserContext(("self",)), ResourceParams(user_id="bob"))
    assert not decision.allowed


@pytest.mark.asyncio
async def test_groot_context_denies_everyone_else(store, alice):
    decision = await AuthorizationEngine(store).authorize(alice, GROOT)
    assert not decision


@pytest.mark.asyncio
async def test_self_may_access_own_data(store, bob):
    engine = AuthorizationEngine(store)

    assert await engine.authorize(bob, UserContext(("self",)), ResourceParams(user_id="bob"))
    assert not await engine.authorize(bob, UserContext(("self",)), ResourceParams(user_id="alice"))


@pytest.mark.asyncio
async def test_mentor_may_access_mentee_but_not_the_reverse(store, alice, bob):
    engine = AuthorizationEngine(store)
    context = UserContext(("self", "mentor"))

    assert await engine.authorize(alice, context, ResourceParams(user_id="bob"))
    assert not await engine.authorize(bob, context, ResourceParams(user_id="alice"))


@pytest.mark.asyncio
async def test_mentor_role_requires_a_shared_group(store, alice):
    decision = await AuthorizationEngine(store).authorize(
        alice, UserContext(("mentor",)), ResourceParams(user_id="carol")
    )
    assert not decision


@pytest.mark.asyncio
async def test_mentor_is_not_a_supermentor(store, alice):
    decision = await AuthorizationEngine(store).authorize(
        alice, UserContext(("supermentor",)), ResourceParams(user_id="bob")
    )
    assert not decision


@pytest.mark.asyncio
async def test_user_context_without_a_user_is_denied(store, alice):
    assert not await AuthorizationEngine(store).authorize(alice, UserContext(("self", "mentor")))


@pytest.mark.asyncio
async def test_decisions_are_repeatable(store, alice):
    engine = AuthorizationEngine(store)
    context = UserContext(("mentor",))
    params = ResourceParams(user_id="bob")

    first = await engine.authorize(alice, context, params)
    second = await engine.authorize(alice, context, params)

    assert first == second


@pytest.mark.asyncio
async def test_group_participant_and_role(store, alice, bob, carol):
    engine = AuthorizationEngine(store)
    params = ResourceParams(group_id="g1")

    assert await engine.authorize(bob, GroupContext(("participant",)), params)
    assert await engine.authorize(alice, GroupContext(("mentor",)), params)
    assert not await engine.authorize(bob, GroupContext(("mentor", "supermentor")), params)
    assert not await engine.authorize(carol, GroupContext(("participant",)), params)


@pytest.mark.asyncio
async def test_unknown_group_raises(store, alice):
    with pytest.raises(EntityNotFound):
        await AuthorizationEngine(store).authorize(
            alice, GroupContext(("participant",)), ResourceParams(group_id="nope")
        )


@pytest.mark.asyncio
async def test_conversation_access_follows_group_roles(store, bob, carol):
    engine = AuthorizationEngine(store)
    params = ResourceParams(conversation_id="c1")

    assert await engine.authorize(bob, ConversationContext(), params)
    assert not await engine.authorize(carol, ConversationContext(), params)
    assert not await engine.authorize(bob, ConversationContext(), ResourceParams())


@pytest.mark.asyncio
async def test_report_access_follows_group_roles(store, alice, bob):
    engine = AuthorizationEngine(store)

    assert await engine.authorize(alice, ReportContext(), ResourceParams(report_id="r1"))
    assert await engine.authorize(alice, ReportContext(), ResourceParams(report_id="r1", user_id="bob"))
    # Only mentors may view r1
    assert not await engine.authorize(bob, ReportContext(), ResourceParams(report_id="r1", user_id="bob"))


@pytest.mark.asyncio
async def test_report_for_user_outside_the_group_is_denied(store, alice):
    decision = await AuthorizationEngine(store).authorize(
        alice, ReportContext(), ResourceParams(report_id="r1", user_id="carol")
    )
    assert not decision


def test_role_lists_must_not_be_empty():
    with pytest.raises(ValueError):
        UserContext(())
    with pytest.raises(ValueError):
        GroupContext(())
