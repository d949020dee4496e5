"""System-instruction personas that prefix every analysis prompt.

Exactly one instruction is active at a time. The ``default`` persona can be
edited but never deleted, and deleting the active persona hands the active
flag back to ``default``.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field

from tube_insight.exceptions import ProtectedRecordError, RecordNotFoundError
from tube_insight.storage import read_json, write_json

if TYPE_CHECKING:
    from tube_insight.storage import KeyValueStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

STORAGE_KEY = "tube_insight.instructions"
DEFAULT_ID = "default"


class SystemInstruction(BaseModel):
    """A named persona prompt."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    content: str
    is_active: bool = Field(default=False, alias="isActive")


DEFAULT_INSTRUCTIONS: tuple[SystemInstruction, ...] = (
    SystemInstruction(
        id=DEFAULT_ID,
        name="Default (YouTube expert)",
        content=(
            "You are a world-class YouTube data analyst and strategist. Ground every "
            "insight in the data, give creators concrete advice they can act on, and "
            "explain technical terms in plain language."
        ),
        is_active=True,
    ),
    SystemInstruction(
        id="witty",
        name="Witty storyteller",
        content=(
            "You are a YouTube consultant with a sharp sense of humour who loves "
            "metaphors. Deliver the analysis the way a friend would in conversation, "
            "with memorable and playful phrasing instead of dry statistics."
        ),
    ),
    SystemInstruction(
        id="critic",
        name="Blunt critic",
        content=(
            "You are a cold, direct critic. Point out the channel's problems without "
            "sugar-coating, focus on what must improve rather than on praise, and skip "
            "every unnecessary flourish."
        ),
    ),
    SystemInstruction(
        id="coach",
        name="Patient coach",
        content=(
            "You are a kind coach explaining things so a beginner can follow. Break "
            "hard concepts down, use concrete examples, and be generous with "
            "encouragement."
        ),
    ),
)


class InstructionStore:
    """Persona instructions persisted in a key-value store."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def _save(self, instructions: list[SystemInstruction]) -> None:
        write_json(
            self._store,
            STORAGE_KEY,
            [item.model_dump(by_alias=True) for item in instructions],
        )

    def load(self) -> list[SystemInstruction]:
        """Return all instructions, seeding the defaults on first use."""
        raw = read_json(self._store, STORAGE_KEY, None)
        if not isinstance(raw, list) or not raw:
            seeded = [item.model_copy() for item in DEFAULT_INSTRUCTIONS]
            self._save(seeded)
            return seeded
        return [SystemInstruction.model_validate(item) for item in raw if isinstance(item, dict)]

    def get(self, instruction_id: str) -> SystemInstruction:
        for item in self.load():
            if item.id == instruction_id:
                return item
        raise RecordNotFoundError(f"Unknown instruction: {instruction_id!r}")

    def active(self) -> SystemInstruction:
        """Return the active instruction, or the first one if none is flagged."""
        instructions = self.load()
        for item in instructions:
            if item.is_active:
                return item
        return instructions[0] if instructions else DEFAULT_INSTRUCTIONS[0]

    def activate(self, instruction_id: str) -> SystemInstruction:
        instructions = self.load()
        if not any(item.id == instruction_id for item in instructions):
            raise RecordNotFoundError(f"Unknown instruction: {instruction_id!r}")
        updated = [
            item.model_copy(update={"is_active": item.id == instruction_id})
            for item in instructions
        ]
        self._save(updated)
        logger.info("instruction_activated", instruction_id=instruction_id)
        return next(item for item in updated if item.is_active)

    def add(self, name: str, content: str) -> SystemInstruction:
        instruction = SystemInstruction(id=uuid.uuid4().hex[:12], name=name, content=content)
        self._save([*self.load(), instruction])
        return instruction

    def update(self, instruction_id: str, name: str, content: str) -> SystemInstruction:
        instructions = self.load()
        for index, item in enumerate(instructions):
            if item.id == instruction_id:
                instructions[index] = item.model_copy(update={"name": name, "content": content})
                self._save(instructions)
                return instructions[index]
        raise RecordNotFoundError(f"Unknown instruction: {instruction_id!r}")

    def delete(self, instruction_id: str) -> None:
        """Delete an instruction.

        Raises:
            ProtectedRecordError: If ``instruction_id`` is the default persona.
            RecordNotFoundError: If no such instruction exists.
        """
        if instruction_id == DEFAULT_ID:
            raise ProtectedRecordError("The default instruction cannot be deleted.")

        instructions = self.load()
        target = next((item for item in instructions if item.id == instruction_id), None)
        if target is None:
            raise RecordNotFoundError(f"Unknown instruction: {instruction_id!r}")

        remaining = [item for item in instructions if item.id != instruction_id]
        if not remaining:
            remaining = [item.model_copy() for item in DEFAULT_INSTRUCTIONS]
        elif target.is_active:
            fallback_id = (
                DEFAULT_ID if any(item.id == DEFAULT_ID for item in remaining) else remaining[0].id
            )
            remaining = [
                item.model_copy(update={"is_active": item.id == fallback_id}) for item in remaining
            ]
        self._save(remaining)
        logger.info("instruction_deleted", instruction_id=instruction_id)

    def apply(self, prompt: str) -> str:
        """Prefix ``prompt`` with the active persona."""
        return f"{self.active().content}\n\n{prompt}"
