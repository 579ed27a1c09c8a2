from __future__ import annotations

from typing import Annotated, Any, List

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PositiveInt = Annotated[int, Field(ge=1)]

REQUIRED_FIELDS = ("program", "semester", "code", "title", "credits")
# path segments under /courses that are not course codes
RESERVED_CODES = frozenset({"_consistency"})


def _none_to_empty(value: Any) -> Any:
    return [] if value is None else value


def _check_code(value: Any) -> Any:
    if value in RESERVED_CODES:
        raise ValueError(f"code '{value}' is reserved")
    return value


class Course(BaseModel):
    id: str
    code: str
    program: str
    title: str
    semester: int
    credits: int
    prerequisites: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class CourseCreate(BaseModel):
    program: NonBlankStr
    semester: PositiveInt
    code: NonBlankStr
    title: NonBlankStr
    credits: PositiveInt
    prerequisites: List[NonBlankStr] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("prerequisites", mode="before")
    @classmethod
    def default_prerequisites(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("code")
    @classmethod
    def code_not_reserved(cls, value: Any) -> Any:
        return _check_code(value)


class CourseUpdate(BaseModel):
    """Partial update; only the fields actually sent are merged."""

    program: NonBlankStr | None = None
    semester: PositiveInt | None = None
    code: NonBlankStr | None = None
    title: NonBlankStr | None = None
    credits: PositiveInt | None = None
    prerequisites: List[NonBlankStr] | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator(*REQUIRED_FIELDS, mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("prerequisites", mode="before")
    @classmethod
    def default_prerequisites(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("code")
    @classmethod
    def code_not_reserved(cls, value: Any) -> Any:
        return _check_code(value)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ConsistencyReport(BaseModel):
    consistent: bool
    indexed: int
    stored: int
    orphaned_members: List[str] = Field(default_factory=list)
    unindexed_records: List[str] = Field(default_factory=list)


__all__ = [
    "REQUIRED_FIELDS",
    "RESERVED_CODES",
    "ConsistencyReport",
    "Course",
    "CourseCreate",
    "CourseUpdate",
]
