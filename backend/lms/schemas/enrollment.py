from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from lms.schemas.course import CategorySummary


class EnrollmentSummary(BaseModel):
    id: str
    status: str
    enrolled_at: Optional[datetime] = None


class EnrollResponse(BaseModel):
    message: str
    enrollment: EnrollmentSummary


class EnrolledCourse(BaseModel):
    id: str
    full_name: str
    short_name: str
    code: str
    summary: Optional[str] = None
    thumbnail_image: Optional[str] = None
    category: Optional[CategorySummary] = None


class EnrollmentResponse(BaseModel):
    id: str
    course_id: str
    status: str
    progress: int = 0
    final_grade: Optional[float] = None
    enrolled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    course: Optional[EnrolledCourse] = None

    class Config:
        from_attributes = True


class MyEnrollmentsResponse(BaseModel):
    enrollments: List[EnrollmentResponse]
