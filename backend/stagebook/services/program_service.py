"""
Program records: creation, lifecycle toggle and baseline conditions.
"""

from typing import Union

from stagebook.core.exceptions import InvalidStatus, ProgramNotFound
from stagebook.core.logging import get_logger
from stagebook.domain import Program, ProgramConditions, ProgramStatus, ProgramType
from stagebook.services.interfaces import ProgrammingStore

logger = get_logger(__name__)


def _conditions(raw: Union[ProgramConditions, dict, None]) -> ProgramConditions:
    if isinstance(raw, ProgramConditions):
        return raw
    return ProgramConditions.from_json(raw)


def _status(value: Union[ProgramStatus, str]) -> ProgramStatus:
    if isinstance(value, ProgramStatus):
        return value
    status = ProgramStatus.from_label(value)
    if status is None:
        raise InvalidStatus(details={"status": value})
    return status


async def create_program(
    store: ProgrammingStore,
    title: str,
    program_type: ProgramType,
    conditions: Union[ProgramConditions, dict, None] = None,
    status: Union[ProgramStatus, str] = ProgramStatus.DRAFT,
) -> Program:
    program = await store.add_program(title.strip(), program_type, _status(status), _conditions(conditions))
    logger.info("program_created", program_id=program.id, program_type=program_type.value)
    return program


async def get_program(store: ProgrammingStore, program_id: int) -> Program:
    program = await store.get_program(program_id)
    if program is None:
        raise ProgramNotFound(program_id)
    return program


async def set_program_status(
    store: ProgrammingStore,
    program_id: int,
    status: Union[ProgramStatus, str],
) -> Program:
    """Programs are archived, never deleted. Legacy labels are accepted, unknown ones rejected."""
    status = _status(status)
    program = await store.set_program_status(program_id, status)
    if program is None:
        raise ProgramNotFound(program_id)
    logger.info("program_status_changed", program_id=program_id, status=status.value)
    return program


async def update_program_conditions(
    store: ProgrammingStore,
    program_id: int,
    conditions: Union[ProgramConditions, dict, None],
) -> Program:
    program = await store.update_program_conditions(program_id, _conditions(conditions))
    if program is None:
        raise ProgramNotFound(program_id)
    logger.info("program_conditions_updated", program_id=program_id)
    return program
