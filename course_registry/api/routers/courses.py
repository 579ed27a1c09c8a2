from __future__ import annotations

from typing import Any, List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from course_registry.courses.errors import CourseError
from course_registry.courses.models import ConsistencyReport, Course
from course_registry.courses.service import CourseService, get_course_service

router = APIRouter(prefix="/courses", tags=["courses"])


def _raise_http(exc: CourseError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


@router.post("", response_model=Course, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: Any = Body(default=None),
    service: CourseService = Depends(get_course_service),
) -> Course:
    try:
        return service.create(payload)
    except CourseError as exc:
        _raise_http(exc)


@router.get("", response_model=List[Optional[Course]])
def list_courses(
    service: CourseService = Depends(get_course_service),
) -> List[Optional[Course]]:
    return service.list_all()


@router.get("/_consistency", response_model=ConsistencyReport)
def course_consistency(
    service: CourseService = Depends(get_course_service),
) -> ConsistencyReport:
    return service.check_consistency()


@router.get("/{code}", response_model=Course)
def get_course(
    code: str,
    service: CourseService = Depends(get_course_service),
) -> Course:
    try:
        return service.get(code)
    except CourseError as exc:
        _raise_http(exc)


@router.put("/{code}", response_model=Course)
def update_course(
    code: str,
    payload: Any = Body(default=None),
    service: CourseService = Depends(get_course_service),
) -> Course:
    try:
        return service.update(code, payload)
    except CourseError as exc:
        _raise_http(exc)


@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    code: str,
    service: CourseService = Depends(get_course_service),
) -> Response:
    try:
        service.delete(code)
    except CourseError as exc:
        _raise_http(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = [
    "router",
    "create_course",
    "list_courses",
    "course_consistency",
    "get_course",
    "update_course",
    "delete_course",
]
