"""
Taking a conversation: answering a question and moving to the next one

Each question is a state and each of its options a transition. Choosing an
option may record a user attribute and run a script, then leads to the
question the option points at, or ends the conversation. Options may point
back at earlier questions, so a conversation can loop.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from errors import BackendError, EntityNotFound, ServerError
from models import AttributeValue, Option, Principal, Question, SnapshotBlame
from services.attribute_service import UserAttributeService
from services.document_store import DocumentStore
from services.question_service import QuestionService
from services.script_service import ScriptService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """The option a user chose, and what they typed if it takes input"""
    position: int
    input: Optional[str] = None


class ScriptRunner(Protocol):
    async def run(self, script_id: str, user_id: str) -> Any:
        ...


def answer_value(option: Option, selection: Selection) -> AttributeValue:
    """
    The value to record for a chosen option. Input options record what the
    user typed, falling back to the option's default; select options always
    record their fixed value.
    """
    if option.type == "input" and selection.input is not None:
        return selection.input
    return option.attribute.value


class ConversationRunner:
    """Applies answers to questions and resolves the next question"""

    def __init__(
        self,
        store: DocumentStore,
        scripts: Optional[ScriptRunner] = None,
        questions: Optional[QuestionService] = None,
        user_attributes: Optional[UserAttributeService] = None,
    ):
        self.scripts = scripts or ScriptService(store)
        self.questions = questions or QuestionService(store)
        self.user_attributes = user_attributes or UserAttributeService(store)

    async def answer(
        self,
        conversation_id: str,
        question_id: str,
        principal: Principal,
        selection: Selection,
        raw: bool = False,
    ) -> Optional[Question]:
        """
        Answer a question on behalf of a user.

        Returns:
            The next question, ready to present, or None if the chosen option
            ends the conversation

        Raises:
            EntityNotFound: the question, the chosen option or the next question does not exist
            BackendError: the option's script failed; the attribute it set is kept
        """
        question = await self.questions.load(conversation_id, question_id)

        option = next((o for o in question.options if o.position == selection.position), None)
        if option is None:
            raise EntityNotFound("Could not find that option in the question.")

        logger.info(
            f"[ANSWER] user={principal.id} conversation={conversation_id} "
            f"question={question_id} position={selection.position}"
        )

        if option.attribute is not None:
            await self.user_attributes.record(
                principal.id,
                option.attribute.id,
                answer_value(option, selection),
                observer="questioner",
                message=SnapshotBlame(in_="conversation", id=conversation_id),
            )

        if option.script is not None:
            await self._run_script(option.script, principal)

        if option.next is None:
            logger.info(f"[ANSWER] user={principal.id} reached the end of conversation={conversation_id}")
            return None

        following = await self.questions.load(option.next.conversation, option.next.question)
        return (await self.questions.present(principal, [following], raw=raw))[0]

    async def _run_script(self, script_id: str, principal: Principal) -> None:
        try:
            await self.scripts.run(script_id, principal.id)
        except Exception as e:
            detail = e.message if isinstance(e, ServerError) else repr(e)
            logger.exception(f"[ANSWER] script={script_id} failed for user={principal.id}: {detail}")
            raise BackendError(f"The answer was saved, but the script {script_id} failed to run.") from e
