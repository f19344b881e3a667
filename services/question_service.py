"""
Questions of a conversation, and how they are presented to a user
"""
import logging
import random
from typing import Any, Callable, Dict, List, Optional

from models import Principal, Question
from services.attribute_service import UserAttributeService
from services.document_store import DocumentStore, Query
from services.repository import Repository, generate_id
from services.template_service import render_text

logger = logging.getLogger(__name__)

Renderer = Callable[[str, Dict[str, Any], Dict[str, Any]], str]


class QuestionService:
    """Service for the questions in a conversation"""

    def __init__(
        self,
        store: DocumentStore,
        renderer: Renderer = render_text,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.renderer = renderer
        self.rng = rng or random.Random()
        self.user_attributes = UserAttributeService(store)

    def _repository(self, conversation_id: str) -> Repository[Question]:
        return Repository(self.store, Question, f"conversations/{conversation_id}/questions")

    async def load(self, conversation_id: str, question_id: str) -> Question:
        """Fetch a question as stored"""
        return await self._repository(conversation_id).get(question_id)

    async def find(
        self,
        principal: Principal,
        conversation_id: str,
        first: Optional[bool] = None,
        last: Optional[bool] = None,
        randomize_option_order: Optional[bool] = None,
        tags: Optional[List[str]] = None,
        raw: bool = False,
    ) -> List[Question]:
        queries = []
        for field, value in (("first", first), ("last", last), ("randomize_option_order", randomize_option_order)):
            if value is not None:
                queries.append(Query(field, "==", bool(value)))
        for tag in tags or []:
            queries.append(Query("tags", "includes", tag))

        questions = await self._repository(conversation_id).find(queries)
        return await self.present(principal, questions, raw=raw)

    async def get(self, principal: Principal, conversation_id: str, question_id: str, raw: bool = False) -> Question:
        question = await self.load(conversation_id, question_id)
        return (await self.present(principal, [question], raw=raw))[0]

    async def create(self, conversation_id: str, data: Dict[str, Any]) -> Question:
        question = Question(**{**data, "id": generate_id(), "conversation_id": conversation_id})
        return await self._repository(conversation_id).create(question)

    async def update(self, conversation_id: str, question_id: str, data: Dict[str, Any]) -> Question:
        question = Question(**{**data, "id": question_id, "conversation_id": conversation_id})
        return await self._repository(conversation_id).update(question)

    async def delete(self, conversation_id: str, question_id: str) -> None:
        await self._repository(conversation_id).delete(question_id)

    async def delete_all(self, conversation_id: str) -> int:
        repository = self._repository(conversation_id)
        questions = await repository.find()
        for question in questions:
            await repository.delete(question.id)
        return len(questions)

    async def present(self, principal: Principal, questions: List[Question], raw: bool = False) -> List[Question]:
        """
        Order each question's options and render its text for the user.

        Options are shuffled when the question asks for it, otherwise sorted
        by position. Raw questions keep their template text and are always
        sorted, so they can be edited.
        """
        if not questions:
            return questions

        if raw:
            for question in questions:
                question.options.sort(key=lambda option: option.position)
            return questions

        input = await self.user_attributes.template_input(principal.id)
        user = principal.model_dump(mode="json")

        for question in questions:
            if question.randomize_option_order:
                self.rng.shuffle(question.options)
            else:
                question.options.sort(key=lambda option: option.position)
            question.text = self.renderer(question.text, input, user)

        return questions
