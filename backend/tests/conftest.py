"""
Pytest configuration and fixtures for backend tests
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest")
os.environ.setdefault("ENVIRONMENT", "testing")

import copy
import re
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from starlette.testclient import TestClient

from lms.config import settings
from lms.main import app
from lms.core.block.manager import block_cache
from lms.core.localization.i18n_manager import I18nManager
from lms.core.plugin.manager import PluginManager
from lms.core.security import create_access_token, get_password_hash
from lms.core.supabase_client import get_db
from lms.dependencies import get_plugin_manager

TEST_PASSWORD = "Password123!"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


# ============ In-memory Supabase ============

class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    """Subset of the PostgREST query builder used by the application"""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload = None
        self.on_conflict = None
        self.count_mode = None
        self.filters = []
        self.orders = []
        self.offset = 0
        self.max_rows = None

    # actions

    def select(self, columns="*", count=None):
        self.action = "select"
        self.count_mode = count
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def upsert(self, payload, on_conflict=None):
        self.action = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    # filters

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def ilike(self, column, pattern):
        matcher = _like(pattern)
        self.filters.append(lambda row: matcher(row.get(column)))
        return self

    def or_(self, expression):
        conditions = []
        for part in _split_logic(expression):
            column, operator, pattern = part.split(".", 2)
            assert operator == "ilike"
            conditions.append((column, _like(_unquote(pattern))))
        self.filters.append(lambda row: any(match(row.get(column)) for column, match in conditions))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self.offset = start
        self.max_rows = end - start + 1
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def execute(self):
        rows = self.db.tables.setdefault(self.table, [])

        if self.action in ("insert", "upsert"):
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in payload:
                existing = self._conflicting(rows, item)
                if existing is not None:
                    existing.update(copy.deepcopy(item))
                    created.append(copy.deepcopy(existing))
                    continue
                row = {"id": str(uuid.uuid4()), **copy.deepcopy(item)}
                rows.append(row)
                created.append(copy.deepcopy(row))
            return FakeResponse(created)

        matched = [row for row in rows if all(check(row) for check in self.filters)]

        if self.action == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matched))

        if self.action == "delete":
            self.db.tables[self.table] = [row for row in rows if row not in matched]
            return FakeResponse(copy.deepcopy(matched))

        for column, desc in reversed(self.orders):
            matched.sort(key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)

        count = len(matched) if self.count_mode else None
        end = None if self.max_rows is None else self.offset + self.max_rows
        return FakeResponse(copy.deepcopy(matched[self.offset:end]), count)

    def _conflicting(self, rows, item):
        if self.action != "upsert" or not self.on_conflict:
            return None
        keys = self.on_conflict.split(",")
        for row in rows:
            if all(row.get(key) == item.get(key) for key in keys):
                return row
        return None


def _split_logic(expression):
    """Split a PostgREST logic expression on the commas outside double quotes"""
    parts, current, quoted, escaped = [], "", False, False
    for char in expression:
        if escaped:
            escaped = False
        elif quoted and char == "\\":
            escaped = True
        elif char == '"':
            quoted = not quoted
        elif char == "," and not quoted:
            parts.append(current)
            current = ""
            continue
        current += char
    assert not quoted, f"unbalanced quotes in {expression!r}"
    parts.append(current)
    return parts


def _unquote(value):
    if not (value.startswith('"') and value.endswith('"')):
        # Unquoted values may not carry reserved characters
        assert not any(char in value for char in ',()"'), f"unquoted reserved character in {value!r}"
        return value
    return re.sub(r"\\(.)", r"\1", value[1:-1])


def _like(pattern):
    regex = "".join(
        ".*" if char == "%" else "." if char == "_" else re.escape(char)
        for char in pattern
    )
    compiled = re.compile(f"^{regex}$", re.IGNORECASE | re.DOTALL)
    return lambda value: value is not None and compiled.match(str(value)) is not None


class FakeSupabase:
    def __init__(self):
        self.tables = {}

    def table(self, name):
        return FakeQuery(self, name)

    def seed(self, name, *rows):
        created = []
        for row in rows:
            row = {"id": str(uuid.uuid4()), **row}
            self.tables.setdefault(name, []).append(row)
            created.append(row)
        return created[0] if len(created) == 1 else created

    def rows(self, name):
        return self.tables.get(name, [])


# ============ Application fixtures ============

@pytest.fixture
def db():
    """Empty in-memory database"""
    return FakeSupabase()


@pytest.fixture
def i18n():
    return I18nManager(lang_path=settings.LANG_PATH, plugins_path=settings.PLUGINS_PATH, default_locale="en")


@pytest.fixture
def plugin_manager(tmp_path, db, i18n):
    """Manager over the bundled plugins with its state file in a temp dir"""
    return PluginManager(
        plugins_path=settings.PLUGINS_PATH,
        state_file=tmp_path / "plugins" / "enabled.json",
        i18n=i18n,
        db_factory=lambda: db,
    )


@pytest.fixture(autouse=True)
def clear_block_cache():
    block_cache.clear()
    yield
    block_cache.clear()


@pytest.fixture
def client(db, plugin_manager):
    """FastAPI test client wired to the in-memory database"""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_plugin_manager] = lambda: plugin_manager
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============ Users ============

def _make_user(db, username, role, **extra):
    now = datetime.now(timezone.utc).isoformat()
    return db.seed("users", {
        "username": username,
        "email": f"{username}@example.com",
        "password_hash": TEST_PASSWORD_HASH,
        "first_name": username.title(),
        "last_name": "Tester",
        "phone": None,
        "city": None,
        "country": None,
        "language": "en",
        "timezone": None,
        "role": role,
        "is_active": True,
        "email_verified": True,
        "last_login": None,
        "created_at": now,
        "updated_at": now,
        **extra,
    })


@pytest.fixture
def student(db):
    return _make_user(db, "student", "student")


@pytest.fixture
def teacher(db):
    return _make_user(db, "teacher", "teacher")


@pytest.fixture
def admin(db):
    return _make_user(db, "admin", "admin")


@pytest.fixture
def make_user(db):
    return lambda username, role="student", **extra: _make_user(db, username, role, **extra)


def _headers(user):
    token = create_access_token({"sub": user["id"], "role": user["role"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(student):
    """Generate auth headers with valid token"""
    return _headers(student)


@pytest.fixture
def teacher_auth_headers(teacher):
    return _headers(teacher)


@pytest.fixture
def admin_auth_headers(admin):
    return _headers(admin)


@pytest.fixture
def headers_for():
    return _headers


# ============ Courses ============

@pytest.fixture
def category(db):
    return db.seed("course_categories", {"name": "Programming", "description": None, "parent_id": None, "sort_order": 1})


@pytest.fixture
def make_course(db, category):
    counter = {"n": 0}

    def make(teacher=None, teacher_role="manager", **fields):
        counter["n"] += 1
        start = datetime(2024, 1, 15, tzinfo=timezone.utc) + timedelta(days=counter["n"])
        course = db.seed("courses", {
            "full_name": f"Course {counter['n']}",
            "short_name": f"C{counter['n']}",
            "code": f"CODE{counter['n']}",
            "category_id": category["id"],
            "summary": "Summary",
            "description": "Description",
            "format": "topics",
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=90)).isoformat(),
            "is_visible": True,
            "enrollment_enabled": True,
            "max_students": 0,
            "credits": 3,
            "language": "en",
            "thumbnail_image": None,
            "created_by": teacher["id"] if teacher else None,
            "created_at": start.isoformat(),
            "updated_at": start.isoformat(),
            **fields,
        })
        if teacher:
            db.seed("course_teachers", {"course_id": course["id"], "user_id": teacher["id"], "role": teacher_role})
        return course

    return make


@pytest.fixture
def course(make_course, teacher):
    return make_course(teacher=teacher, full_name="Python Basics", short_name="PY101", code="PY101")


@pytest.fixture
def enroll(db):
    def make(user, course, status="active", **fields):
        return db.seed("enrollments", {
            "user_id": user["id"],
            "course_id": course["id"],
            "status": status,
            "progress": 0,
            "final_grade": None,
            "enrolled_at": datetime.now(timezone.utc).isoformat(),
            "completed_at": None,
            **fields,
        })
    return make
