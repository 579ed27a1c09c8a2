from .errors import ConflictError, CourseError, NotFoundError, PartialFailure, ValidationError
from .models import ConsistencyReport, Course, CourseCreate, CourseUpdate
from .service import CourseService, get_course_service
from .store import IndexSet, RecordStore

__all__ = [
    "ConflictError",
    "ConsistencyReport",
    "Course",
    "CourseCreate",
    "CourseError",
    "CourseService",
    "CourseUpdate",
    "IndexSet",
    "NotFoundError",
    "PartialFailure",
    "RecordStore",
    "ValidationError",
    "get_course_service",
]
