from pydantic import BaseModel


class DashboardUser(BaseModel):
    id: str
    full_name: str
    email: str


class DashboardStats(BaseModel):
    enrolled_courses: int = 0
    completed_courses: int = 0
    teaching_courses: int = 0


class DashboardResponse(BaseModel):
    user: DashboardUser
    stats: DashboardStats
