from pydantic import BaseModel, Field, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime


class CourseCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    short_name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=50)
    category_id: str
    summary: Optional[str] = None
    description: Optional[str] = None
    format: str = Field("topics", max_length=50)
    start_date: datetime
    end_date: Optional[datetime] = None
    is_visible: bool = True
    enrollment_enabled: bool = True
    max_students: int = Field(0, ge=0)
    credits: int = Field(0, ge=0)
    language: str = Field("en", max_length=10)
    thumbnail_image: Optional[str] = None

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("The end date must be after the start date")
        return self


class CourseUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    short_name: Optional[str] = Field(None, min_length=1, max_length=100)
    category_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    format: Optional[str] = Field(None, max_length=50)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_visible: Optional[bool] = None
    enrollment_enabled: Optional[bool] = None
    max_students: Optional[int] = Field(None, ge=0)
    credits: Optional[int] = Field(None, ge=0)
    language: Optional[str] = Field(None, max_length=10)
    thumbnail_image: Optional[str] = None

    @model_validator(mode="after")
    def end_after_start(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("The end date must be after the start date")
        return self


class CategorySummary(BaseModel):
    id: str
    name: str


class TeacherSummary(BaseModel):
    id: str
    full_name: str
    email: Optional[str] = None
    role: str


class SectionResponse(BaseModel):
    id: str
    name: Optional[str] = None
    summary: Optional[str] = None
    position: int


class CourseResponse(BaseModel):
    id: str
    full_name: str
    short_name: str
    code: str
    category_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    format: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_visible: bool = True
    enrollment_enabled: bool = True
    max_students: int = 0
    credits: int = 0
    language: Optional[str] = None
    thumbnail_image: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    enrollment_count: int = 0
    category: Optional[CategorySummary] = None

    class Config:
        from_attributes = True


class CourseDetailResponse(CourseResponse):
    teachers: List[TeacherSummary] = []
    sections: List[SectionResponse] = []
    is_enrolled: bool = False
    is_teacher: bool = False


class Pagination(BaseModel):
    page: int
    limit: int
    total: int


class CourseListResponse(BaseModel):
    courses: List[CourseResponse]
    pagination: Pagination


class ActivityCreate(BaseModel):
    module: str = Field(..., min_length=1, max_length=50)
    section_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=255)
    settings: Dict[str, Any] = {}


class ActivityResponse(BaseModel):
    id: str
    course_id: str
    section_id: Optional[str] = None
    module: str
    instance_id: str
    visible: bool = True
    created_at: Optional[datetime] = None


class ActivityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    section_id: Optional[str] = None
    visible: Optional[bool] = None
    settings: Dict[str, Any] = {}


class ActivityDetailResponse(ActivityResponse):
    name: Optional[str] = None
    instance: Dict[str, Any] = {}
    navigation: Dict[str, str] = {}
    grading: Optional[Dict[str, Any]] = None


class ActivityListResponse(BaseModel):
    activities: List[ActivityDetailResponse]


class ActivitySearchResult(BaseModel):
    module: str
    title: str
    url: str
    content: str = ""


class CompletionUpdate(BaseModel):
    # 0 incomplete, 1 complete, 2 complete with pass, 3 complete with fail
    completion_state: int = Field(1, ge=0, le=3)


class CompletionResponse(BaseModel):
    activity_id: str
    completed: bool
    completion_state: int
    viewed: bool
    timemodified: int = 0


class GradesUpdate(BaseModel):
    grades: Dict[str, float] = Field(..., min_length=1)
