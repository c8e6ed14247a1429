"""API endpoints package."""

from . import (
    activities,
    auth,
    blocks,
    courses,
    dashboard,
    enrollments,
    i18n,
    plugins,
    profile,
)

__all__ = [
    "activities",
    "auth",
    "blocks",
    "courses",
    "dashboard",
    "enrollments",
    "i18n",
    "plugins",
    "profile",
]
