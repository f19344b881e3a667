"""
Script management and execution

Scripts compute user attributes from other user attributes. Their Lua source
is stored base64-encoded.
"""
import asyncio
import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

from config import settings
from errors import BackendError, EntityNotFound, ImproperPayload, PreconditionFailed
from models import Script, SnapshotBlame, User, UserAttribute
from services.attribute_service import UserAttributeService
from services.document_store import DocumentStore, Query
from services.lua_runner import ScriptExecutionError, run_lua
from services.repository import Repository, generate_id

logger = logging.getLogger(__name__)


def decode_source(encoded: str) -> str:
    try:
        return base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ImproperPayload("Content must be base64 encoded UTF-8 text.") from e


class ScriptService:
    """CRUD for scripts, and running them for a user"""

    def __init__(self, store: DocumentStore, max_instructions: Optional[int] = None):
        self.scripts = Repository(store, Script, "scripts")
        self.users = Repository(store, User, "users")
        self.user_attributes = UserAttributeService(store)
        self.max_instructions = settings.SCRIPT_MAX_INSTRUCTIONS if max_instructions is None else max_instructions

    async def find(
        self,
        name: Optional[str] = None,
        tags: Optional[List[str]] = None,
        input: Optional[List[str]] = None,
        computed: Optional[List[str]] = None,
    ) -> List[Script]:
        scripts = await self.scripts.find(
            [Query("name", "==", name)] if name is not None else []
        )
        # input/computed hold objects, so match on their ids here
        return [
            script for script in scripts
            if set(tags or []) <= set(script.tags)
            and set(input or []) <= {dependency.id for dependency in script.input}
            and set(computed or []) <= {attribute.id for attribute in script.computed}
        ]

    async def create(self, data: Dict[str, Any]) -> Script:
        script = Script(**{**data, "id": generate_id()})
        decode_source(script.content)
        return await self.scripts.create(script)

    async def get(self, script_id: str) -> Script:
        return await self.scripts.get(script_id)

    async def update(self, script_id: str, data: Dict[str, Any]) -> Script:
        script = Script(**{**data, "id": script_id})
        decode_source(script.content)
        return await self.scripts.update(script)

    async def delete(self, script_id: str) -> None:
        await self.scripts.delete(script_id)

    async def run(self, script_id: str, user_id: str) -> List[UserAttribute]:
        """
        Run a script for a user and store the attributes it computes.

        Raises:
            EntityNotFound: the script or user does not exist
            PreconditionFailed: a required input attribute is missing
            BackendError: the script failed to run
        """
        script = await self.scripts.get(script_id)
        user = await self.users.get(user_id)
        code = decode_source(script.content)

        # Collect the attributes the script needs
        input = {}
        for dependency in script.input:
            try:
                attribute = await self.user_attributes.get(user_id, dependency.id)
            except EntityNotFound:
                if dependency.optional:
                    continue
                raise PreconditionFailed(f"Could not find the required attribute {dependency.id} for the user.")
            input[dependency.id] = attribute.model_dump(mode="json", by_alias=True)

        context = {"input": input, "user": user.model_dump(mode="json")}

        logger.info(f"[SCRIPT] running script={script_id} for user={user_id}")
        try:
            output = await asyncio.to_thread(run_lua, code, context, self.max_instructions)
        except ScriptExecutionError as e:
            logger.error(f"[SCRIPT] script={script_id} failed: {e}")
            raise BackendError(f"The script {script_id} failed to run.") from e

        computed = output.get("attributes") or {}
        if not isinstance(computed, dict):
            logger.error(f"[SCRIPT] script={script_id} returned malformed attributes: {computed!r}")
            raise BackendError(f"The script {script_id} returned malformed attributes.")

        results = []
        for attribute_id, snapshot in computed.items():
            if not isinstance(snapshot, dict) or "value" not in snapshot:
                logger.error(f"[SCRIPT] script={script_id} returned no value for {attribute_id}")
                raise BackendError(f"The script {script_id} returned malformed attributes.")

            results.append(
                await self.user_attributes.record(
                    user_id,
                    str(attribute_id),
                    snapshot["value"],
                    observer="bot",
                    message=SnapshotBlame(in_="script", id=script.id),
                )
            )

        logger.info(f"[SCRIPT] script={script_id} computed {len(results)} attribute(s) for user={user_id}")
        return results
