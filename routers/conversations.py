"""
Conversations, their questions, and answering them
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from auth.dependencies import get_current_user, permit
from auth.permissions import GROOT, ConversationContext
from database import get_store
from models import Conversation, Option, Principal, Question
from services.conversation_runner import ConversationRunner, Selection
from services.conversation_service import ConversationService
from services.document_store import DocumentStore
from services.question_service import QuestionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conversations", tags=["Conversations"])

# Access to a conversation is granted per group, by role
TAKERS = ConversationContext()


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class ConversationRequest(BaseModel):
    """Request to create or replace a conversation"""
    name: str
    description: str
    once: bool = False
    tags: List[str] = Field(default_factory=list)


class QuestionRequest(BaseModel):
    """Request to create or replace a question"""
    text: str
    options: List[Option] = Field(default_factory=list)
    first: bool = False
    last: bool = False
    randomize_option_order: bool = False
    tags: List[str] = Field(default_factory=list)


class AnswerRequest(BaseModel):
    """The option chosen, and the text typed if it is an input option"""
    position: int
    input: Optional[str] = None


class AnswerResponse(BaseModel):
    """The question to ask next, or null if the conversation is over"""
    next: Optional[Question] = None


# =============================================================================
# CONVERSATION ENDPOINTS
# =============================================================================

@router.get("", response_model=List[Conversation])
async def list_conversations(
    name: Optional[str] = Query(None),
    description: Optional[str] = Query(None),
    once: Optional[bool] = Query(None),
    tags: Optional[List[str]] = Query(None),
    user: Principal = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    """
    List conversations. Groot sees all of them, anyone else the ones their
    roles in their groups allow.
    """
    return await ConversationService(store).find(user, name=name, description=description, once=once, tags=tags)


@router.post("", response_model=Conversation, status_code=201)
async def create_conversation(
    body: ConversationRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await ConversationService(store).create(body.model_dump())


@router.get("/{conversation_id}", response_model=Conversation)
async def get_conversation(
    conversation_id: str,
    user: Principal = Depends(permit(TAKERS)),
    store: DocumentStore = Depends(get_store),
):
    return await ConversationService(store).get(conversation_id)


@router.put("/{conversation_id}", response_model=Conversation)
async def update_conversation(
    conversation_id: str,
    body: ConversationRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await ConversationService(store).update(conversation_id, body.model_dump())


@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: str,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    """Delete a conversation and every question in it"""
    await ConversationService(store).delete(conversation_id)
    return Response(status_code=204)


# =============================================================================
# QUESTION ENDPOINTS
# =============================================================================

@router.get("/{conversation_id}/questions", response_model=List[Question])
async def list_questions(
    conversation_id: str,
    first: Optional[bool] = Query(None),
    last: Optional[bool] = Query(None),
    randomize_option_order: Optional[bool] = Query(None),
    tags: Optional[List[str]] = Query(None),
    raw: bool = Query(False, description="Return the template text instead of rendering it"),
    user: Principal = Depends(permit(TAKERS)),
    store: DocumentStore = Depends(get_store),
):
    return await QuestionService(store).find(
        user,
        conversation_id,
        first=first,
        last=last,
        randomize_option_order=randomize_option_order,
        tags=tags,
        raw=raw,
    )


@router.post("/{conversation_id}/questions", response_model=Question, status_code=201)
async def create_question(
    conversation_id: str,
    body: QuestionRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await QuestionService(store).create(conversation_id, body.model_dump())


@router.get("/{conversation_id}/questions/{question_id}", response_model=Question)
async def get_question(
    conversation_id: str,
    question_id: str,
    raw: bool = Query(False, description="Return the template text instead of rendering it"),
    user: Principal = Depends(permit(TAKERS)),
    store: DocumentStore = Depends(get_store),
):
    return await QuestionService(store).get(user, conversation_id, question_id, raw=raw)


@router.put("/{conversation_id}/questions/{question_id}", response_model=Question)
async def update_question(
    conversation_id: str,
    question_id: str,
    body: QuestionRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await QuestionService(store).update(conversation_id, question_id, body.model_dump())


@router.delete("/{conversation_id}/questions/{question_id}", status_code=204)
async def delete_question(
    conversation_id: str,
    question_id: str,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    await QuestionService(store).delete(conversation_id, question_id)
    return Response(status_code=204)


@router.put("/{conversation_id}/questions/{question_id}/answer", response_model=AnswerResponse)
async def answer_question(
    conversation_id: str,
    question_id: str,
    body: AnswerRequest,
    raw: bool = Query(False, description="Return the next question's template text instead of rendering it"),
    user: Principal = Depends(permit(TAKERS)),
    store: DocumentStore = Depends(get_store),
):
    """
    Answer a question by choosing one of its options.

    Records the attribute the option sets and runs its script, then returns
    the question to ask next.
    """
    runner = ConversationRunner(store)
    following = await runner.answer(
        conversation_id,
        question_id,
        user,
        Selection(position=body.position, input=body.input),
        raw=raw,
    )
    return AnswerResponse(next=following)
