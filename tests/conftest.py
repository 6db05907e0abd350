"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app import create_app  # noqa: E402
from config import TestConfig  # noqa: E402
from constants import (  # noqa: E402
    ROLE_ACADEMIC_STAFF,
    ROLE_ADMIN_OFFICER,
    ROLE_DEAN,
    ROLE_REGISTRAR,
    ROLE_SYS_ADMIN,
    TYPE_LEAVE,
    USER_STATUS_ACTIVE,
)
from extensions import db as _db  # noqa: E402
from models import Department, Faculty, User  # noqa: E402
from workflow.config_store import ensure_default_workflows  # noqa: E402

PASSWORD = "secret123"


@pytest.fixture
def app():
    """Fresh app + in-memory schema per test, with default workflows."""
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()

    _db.create_all()
    ensure_default_workflows()

    yield app

    _db.session.remove()
    _db.drop_all()
    ctx.pop()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role, department=None, faculty=None, status=USER_STATUS_ACTIVE, name=None):
        counter["n"] += 1
        n = counter["n"]
        u = User(
            staff_number=f"S{n:04d}",
            email=f"user{n}@example.edu",
            full_name=name or f"{role.title()} {n}",
            role=role,
            department_id=department.id if department else None,
            faculty_id=faculty.id if faculty else None,
            status=status,
        )
        u.set_password(PASSWORD)
        db.session.add(u)
        db.session.commit()
        return u

    return _make


@pytest.fixture
def faculty(db):
    f = Faculty(name="Science", code="SCI")
    db.session.add(f)
    db.session.commit()
    return f


@pytest.fixture
def department(db, faculty):
    d = Department(name="Computer Science", code="CSC", faculty_id=faculty.id)
    db.session.add(d)
    db.session.commit()
    return d


@pytest.fixture
def org(db, faculty, department, make_user):
    """A complete directory: one of every role, HOD and dean appointed."""
    sysadmin = make_user(ROLE_SYS_ADMIN, name="Sys Admin")
    registrar = make_user(ROLE_REGISTRAR, name="Registrar One")
    dean = make_user(ROLE_DEAN, faculty=faculty, name="Dean Science")
    hod = make_user(ROLE_ADMIN_OFFICER, department=department, name="HOD Computing")
    staff = make_user(ROLE_ACADEMIC_STAFF, department=department, name="Staff Member")

    department.hod_id = hod.id
    faculty.dean_id = dean.id
    db.session.commit()

    return {
        "faculty": faculty,
        "department": department,
        "sysadmin": sysadmin,
        "registrar": registrar,
        "dean": dean,
        "hod": hod,
        "staff": staff,
    }


@pytest.fixture
def leave_payload():
    return {
        "requestType": TYPE_LEAVE,
        "title": "Annual leave",
        "description": "Annual leave for the end of year break.",
        "leaveType": "annual",
        "startDate": "2026-12-21",
        "endDate": "2026-12-31",
        "substituteStaffName": "Dr. Jane Smith",
    }


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(user, password=PASSWORD):
        return client.post("/api/auth/login", json={"email": user.email, "password": password})

    return _login
