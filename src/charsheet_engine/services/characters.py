"""Character lifecycle: creation, lookup, deletion and cloning."""

from __future__ import annotations

from uuid import uuid4

from charsheet_engine.core.constants import CLONE_NAME_SUFFIX
from charsheet_engine.core.exceptions import NotFoundError
from charsheet_engine.core.logging import get_logger
from charsheet_engine.models.character import Character
from charsheet_engine.models.enums import RecordType
from charsheet_engine.models.requests import CharacterCreationRequest, Changes, CreationResult
from charsheet_engine.rules.assembly import CharacterBuilder
from charsheet_engine.services.protocol import SheetService, operation_context


logger = get_logger(__name__)


class CharacterService(SheetService):
    """Creates, reads, deletes and clones stored characters."""

    def create_character(self, user_id: str, request: CharacterCreationRequest) -> CreationResult:
        """Assemble a new character, store it and write history record #1.

        Nothing is stored unless every assembly step succeeds.
        """
        with operation_context("create_character", user_id):
            creation = (
                CharacterBuilder()
                .set_general_information(request.general_information)
                .set_advantages_and_disadvantages(request.advantages, request.disadvantages)
                .set_attributes(request.attributes)
                .activate_skills(request.activated_skills)
                .set_combat_skills_start_values(request.combat_skills_start_values)
                .build(user_id)
            )
            character = creation.character
            self._db.create_character(character)

            summary = {
                "generation_points": {
                    "through_disadvantages": creation.generation_points_through_disadvantages,
                    "spent": creation.generation_points_spent,
                    "total": creation.generation_points_total,
                },
                "activated_skills": creation.activated_skills,
            }
            name = character.character_sheet.general_information.name
            record = self._record(
                character.character_id,
                RecordType.CHARACTER_CREATED,
                name,
                Changes(new=summary),
            )
            logger.info("Character created", character_id=character.character_id, name=name)
            return CreationResult(
                user_id=user_id,
                character_id=character.character_id,
                character_name=name,
                generation_points_through_disadvantages=creation.generation_points_through_disadvantages,
                generation_points_spent=creation.generation_points_spent,
                generation_points_total=creation.generation_points_total,
                activated_skills=creation.activated_skills,
                history_record=record,
            )

    def get_character(self, user_id: str, character_id: str) -> Character:
        """Raises NotFoundError if the user has no such character."""
        with operation_context("get_character", user_id, character_id):
            return self._load(user_id, character_id)

    def list_characters(self, user_id: str) -> list[Character]:
        with operation_context("list_characters", user_id):
            return self._db.list_characters(user_id)

    def delete_character(self, user_id: str, character_id: str) -> None:
        """Delete a character together with its history.

        Raises:
            NotFoundError: If the user has no such character.
        """
        with operation_context("delete_character", user_id, character_id):
            if not self._db.delete_character(user_id, character_id):
                raise NotFoundError("Character not found", user_id=user_id, character_id=character_id)

    def clone_character(self, source_user_id: str, character_id: str, target_user_id: str) -> Character:
        """Copy a character, including its history, to ``target_user_id``.

        The copy gets a new id and its name is suffixed with `` (Copy)``.
        History records keep their numbers but get new record ids.
        """
        with operation_context("clone_character", source_user_id, character_id):
            source = self._load(source_user_id, character_id)
            sheet = source.character_sheet.model_copy(deep=True)
            sheet.general_information.name = f"{sheet.general_information.name}{CLONE_NAME_SUFFIX}"
            clone = Character(user_id=target_user_id, character_id=str(uuid4()), character_sheet=sheet)
            self._db.create_character(clone)

            for record in self._db.get_history(character_id):
                self._db.append_history_record(clone.character_id, record.model_copy(update={"id": str(uuid4())}))

            logger.info(
                "Character cloned",
                clone_id=clone.character_id,
                target_user_id=target_user_id,
            )
            return clone


__all__ = ["CharacterService"]
