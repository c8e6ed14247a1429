#!/usr/bin/env python3
"""
Sample Data Seeder for the LMS
Creates categories, demo users, courses with sections and the default blocks
"""

import sys
from datetime import datetime, timedelta, timezone

from lms.core.block.manager import BlockManager
from lms.core.plugin.manager import plugin_manager
from lms.core.security import get_password_hash
from lms.core.supabase_client import get_supabase_client
from lms.config import settings
from lms.utils.exceptions import PluginError

if not settings.supabase_service_role_key:
    print("❌ ERROR: SUPABASE_SERVICE_ROLE_KEY is not set. Cannot seed data.")
    sys.exit(1)

# Service role client bypasses RLS
db = get_supabase_client()

USERS = [
    {
        "username": "admin",
        "email": "admin@lms.local",
        "password": "Admin123!",
        "first_name": "Admin",
        "last_name": "User",
        "role": "admin"
    },
    {
        "username": "teacher",
        "email": "teacher@lms.local",
        "password": "Teacher123!",
        "first_name": "Sarah",
        "last_name": "Johnson",
        "role": "teacher"
    },
    {
        "username": "student1",
        "email": "student1@lms.local",
        "password": "Student123!",
        "first_name": "John",
        "last_name": "Smith",
        "role": "student"
    },
    {
        "username": "student2",
        "email": "student2@lms.local",
        "password": "Student123!",
        "first_name": "Emily",
        "last_name": "Davis",
        "role": "student",
        "language": "de"
    }
]

CATEGORIES = [
    {"name": "Computer Science", "description": "Programming and software engineering", "sort_order": 1},
    {"name": "Mathematics", "description": "Pure and applied mathematics", "sort_order": 2}
]


def create_categories():
    """Create course categories"""
    print("\n🗂️  Creating categories...")

    created = {}
    for category in CATEGORIES:
        existing = db.table("course_categories").select("id").eq("name", category["name"]).execute()
        if existing.data:
            print(f"   ⚠️  Category {category['name']} already exists")
            created[category["name"]] = existing.data[0]["id"]
            continue

        result = db.table("course_categories").insert(category).execute()
        created[category["name"]] = result.data[0]["id"]
        print(f"   ✅ Created category: {category['name']}")

    return created


def create_sample_users():
    """Create sample users"""
    print("\n👥 Creating sample users...")

    created_users = {}

    for user_data in USERS:
        try:
            existing = db.table("users").select("id").eq("username", user_data["username"]).execute()

            if existing.data:
                print(f"   ⚠️  User {user_data['username']} already exists")
                created_users[user_data["username"]] = existing.data[0]["id"]
                continue

            now = datetime.now(timezone.utc).isoformat()
            profile = {key: value for key, value in user_data.items() if key != "password"}
            profile.update({
                "password_hash": get_password_hash(user_data["password"]),
                "language": user_data.get("language", "en"),
                "email_verified": True,
                "is_active": True,
                "created_at": now,
                "updated_at": now
            })

            result = db.table("users").insert(profile).execute()
            created_users[user_data["username"]] = result.data[0]["id"]

            print(f"   ✅ Created {user_data['role']}: {user_data['username']}")
            print(f"      Password: {user_data['password']}")

        except Exception as e:
            print(f"   ❌ Error creating {user_data['username']}: {e}")

    return created_users


def create_sample_courses(teacher_id, categories):
    """Create sample courses with sections"""
    print("\n📚 Creating sample courses...")

    start = datetime.now(timezone.utc)
    courses_data = [
        {
            "full_name": "Introduction to Python Programming",
            "short_name": "Python 101",
            "code": "CS101",
            "category_id": categories.get("Computer Science"),
            "summary": "Learn Python from scratch",
            "max_students": 50,
            "sections": ["Getting started", "Control flow", "Functions"]
        },
        {
            "full_name": "Linear Algebra",
            "short_name": "LinAlg",
            "code": "MATH201",
            "category_id": categories.get("Mathematics"),
            "summary": "Vectors, matrices and linear maps",
            "max_students": 0,
            "sections": ["Vectors", "Matrices"]
        }
    ]

    courses = []
    for course_data in courses_data:
        try:
            existing = db.table("courses").select("*").eq("code", course_data["code"]).execute()
            if existing.data:
                print(f"   ⚠️  Course {course_data['code']} already exists")
                courses.append(existing.data[0])
                continue

            sections = course_data.pop("sections")
            now = start.isoformat()
            course = db.table("courses").insert({
                **course_data,
                "format": "topics",
                "start_date": now,
                "end_date": (start + timedelta(days=90)).isoformat(),
                "is_visible": True,
                "enrollment_enabled": True,
                "credits": 3,
                "language": "en",
                "created_by": teacher_id,
                "created_at": now,
                "updated_at": now
            }).execute().data[0]

            db.table("course_teachers").insert({
                "course_id": course["id"],
                "user_id": teacher_id,
                "role": "manager"
            }).execute()

            # Section 0 is the general section
            db.table("course_sections").insert([
                {"course_id": course["id"], "name": name, "position": position, "is_visible": True}
                for position, name in enumerate(["General"] + sections)
            ]).execute()

            courses.append(course)
            print(f"   ✅ Created course: {course['full_name']}")

        except Exception as e:
            print(f"   ❌ Error creating course {course_data['code']}: {e}")

    return courses


def enroll_students(courses, student_ids):
    """Enroll students in all sample courses"""
    print("\n🎓 Enrolling students...")

    for course in courses:
        for student_id in student_ids:
            try:
                db.table("enrollments").insert({
                    "user_id": student_id,
                    "course_id": course["id"],
                    "status": "active",
                    "progress": 0,
                    "enrolled_at": datetime.now(timezone.utc).isoformat()
                }).execute()
                print(f"   ✅ Enrolled student in: {course['full_name']}")
            except Exception:
                print(f"   ⚠️  Student may already be enrolled: {course['full_name']}")


def create_default_blocks():
    """Place the navigation block on the dashboard and course pages"""
    print("\n🧱 Creating default blocks...")

    blocks = BlockManager(db, plugin_manager)

    for page_type in ("dashboard", "course-view"):
        try:
            blocks.create_block_instance("navigation", page_type, "side-pre")
            print(f"   ✅ Added navigation block to: {page_type}")
        except PluginError as e:
            print(f"   ⚠️  {page_type}: {e.message}")


def main():
    """Main seeding function"""
    print("=" * 60)
    print("🌱 LMS - Sample Data Seeder")
    print("=" * 60)

    try:
        categories = create_categories()
        users = create_sample_users()

        teacher_id = users.get("teacher")
        if not teacher_id:
            print("\n❌ Error: Could not create teacher user")
            sys.exit(1)

        courses = create_sample_courses(teacher_id, categories)

        student_ids = [users[name] for name in ("student1", "student2") if name in users]
        if student_ids:
            enroll_students(courses, student_ids)

        create_default_blocks()

        print("\n" + "=" * 60)
        print("✅ Sample data created successfully!")
        print("=" * 60)

        print("\n📋 Login Credentials:")
        for user in USERS:
            print(f"\n   {user['role'].title()}:")
            print(f"   Username: {user['username']}")
            print(f"   Password: {user['password']}")

        print("\n🚀 You can now start the server and login with these credentials!")
        print("   Run: python run.py")

    except Exception as e:
        print(f"\n❌ Error during seeding: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
