"""Public course and mentorship catalog endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from .. import schemas
from ..deps import get_store
from ..models import Course, MentorshipProgram
from ..store import Store


router = APIRouter(
    tags=["Catalog"],
    responses={
        403: {"model": schemas.ErrorResponse, "description": "Forbidden"},
        404: {"model": schemas.ErrorResponse, "description": "Not Found"},
    },
)


@router.get(
    "/courses",
    response_model=List[schemas.CourseOut],
    summary="List active courses",
    description="Active courses, cheapest first. Inactive courses are hidden by the read policy.",
)
def list_courses(store: Store = Depends(get_store)):
    return store.select(Course, order_by=Course.price)


@router.get("/courses/{course_id}", response_model=schemas.CourseOut, summary="Get a course")
def get_course(course_id: UUID, store: Store = Depends(get_store)):
    return store.get(Course, course_id)


@router.get(
    "/mentorship",
    response_model=List[schemas.MentorshipOut],
    summary="List active mentorship programs",
)
def list_mentorship(store: Store = Depends(get_store)):
    return store.select(MentorshipProgram, order_by=MentorshipProgram.price)


@router.get("/mentorship/{program_id}", response_model=schemas.MentorshipOut, summary="Get a mentorship program")
def get_mentorship(program_id: UUID, store: Store = Depends(get_store)):
    return store.get(MentorshipProgram, program_id)
