"""Mentorship enrollment capacity.

WHAT:
    Moves `mentorship.current_students` up or down with a single conditional
    UPDATE, so `0 <= current_students <= max_students` holds under
    concurrent enrollment.
WHY:
    Read-then-write would let two requests both see one free seat and both
    take it. The WHERE clause makes the database arbitrate: the loser's
    UPDATE matches zero rows and changes nothing, so the caller's session
    is left as it was.
REFERENCES:
    - trading_academy/models.py:MentorshipProgram (ck_mentorship_capacity)
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..errors import CapacityExceeded, DomainViolation, RowNotFound
from ..models import MentorshipProgram

logger = logging.getLogger(__name__)


def _ensure_program(db: Session, program_id: UUID):
    """Current seat state of a program, read without touching the session's objects."""
    program = db.execute(
        select(
            MentorshipProgram.program_name,
            MentorshipProgram.current_students,
            MentorshipProgram.max_students,
            MentorshipProgram.is_active,
        ).where(MentorshipProgram.id == program_id)
    ).one_or_none()
    if program is None:
        raise RowNotFound(f"mentorship {program_id} not found")
    return program


def enroll(db: Session, program_id: UUID) -> int:
    """Take one seat in an active mentorship program.

    Returns:
        The new `current_students` value.

    Raises:
        RowNotFound: unknown program.
        DomainViolation: program is inactive.
        CapacityExceeded: program is full.
    """
    stmt = (
        update(MentorshipProgram)
        .where(
            MentorshipProgram.id == program_id,
            MentorshipProgram.is_active.is_(True),
            MentorshipProgram.current_students < MentorshipProgram.max_students,
        )
        .values(current_students=MentorshipProgram.current_students + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount != 1:
        program = _ensure_program(db, program_id)
        logger.info(
            "[ENROLL] Rejected enrollment into %s (%s/%s, active=%s)",
            program.program_name, program.current_students, program.max_students, program.is_active,
        )
        if not program.is_active:
            raise DomainViolation(
                f"{program.program_name} is not accepting enrollments",
                details={"program_id": str(program_id), "is_active": False},
            )
        raise CapacityExceeded(
            f"{program.program_name} has no free seats",
            details={
                "program_id": str(program_id),
                "current_students": program.current_students,
                "max_students": program.max_students,
            },
        )
    db.commit()
    current = db.scalar(select(MentorshipProgram.current_students).where(MentorshipProgram.id == program_id))
    logger.info("[ENROLL] Enrolled into %s (now %s students)", program_id, current)
    return current


def release(db: Session, program_id: UUID) -> int:
    """Give back one seat (cancellation, refund). Never goes below zero."""
    stmt = (
        update(MentorshipProgram)
        .where(
            MentorshipProgram.id == program_id,
            MentorshipProgram.current_students > 0,
        )
        .values(current_students=MentorshipProgram.current_students - 1)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount != 1:
        _ensure_program(db, program_id)
        raise DomainViolation(
            "mentorship enrollment counter is already zero",
            details={"program_id": str(program_id)},
        )
    db.commit()
    current = db.scalar(select(MentorshipProgram.current_students).where(MentorshipProgram.id == program_id))
    logger.info("[ENROLL] Released seat in %s (now %s students)", program_id, current)
    return current
