"""
init_db.py
----------
Initialize the database and seed the default workflows plus a demo
directory (faculty, departments, users).
DEVELOPMENT USE ONLY
"""

import os

from config import INSTANCE_DIR
from constants import (
    ROLE_ACADEMIC_STAFF,
    ROLE_ADMIN_OFFICER,
    ROLE_DEAN,
    ROLE_REGISTRAR,
    ROLE_SYS_ADMIN,
    USER_STATUS_ACTIVE,
)

DEMO_PASSWORD = "password123"

DEPARTMENTS = [
    ("Computer Science", "CSC"),
    ("Mathematics", "MAT"),
    ("Physics", "PHY"),
]

# (staff_number, email, full_name, phone, role, department code)
USERS = [
    ("ADMIN001", "admin@university.edu", "System Administrator", "+234 800 000 0001", ROLE_SYS_ADMIN, "CSC"),
    ("REG001", "registrar@university.edu", "Dr. Ibrahim Musa", "+234 800 000 0002", ROLE_REGISTRAR, None),
    ("DEAN001", "dean.science@university.edu", "Prof. Amina Bello", "+234 800 000 0003", ROLE_DEAN, None),
    ("HOD001", "hod.cs@university.edu", "Dr. Chukwudi Okafor", "+234 800 000 0004", ROLE_ADMIN_OFFICER, "CSC"),
    ("STAFF001", "john.doe@university.edu", "Dr. John Doe", "+234 800 000 0005", ROLE_ACADEMIC_STAFF, "CSC"),
    ("STAFF002", "jane.smith@university.edu", "Dr. Jane Smith", "+234 800 000 0006", ROLE_ACADEMIC_STAFF, "MAT"),
    ("STAFF003", "ahmed.ali@university.edu", "Prof. Ahmed Ali", "+234 800 000 0007", ROLE_ACADEMIC_STAFF, "PHY"),
]


def seed_directory(db):
    from models import Department, Faculty, User

    faculty = Faculty.query.filter_by(code="SCI").first()
    if not faculty:
        faculty = Faculty(name="Science", code="SCI")
        db.session.add(faculty)
        db.session.flush()

    departments = {}
    for name, code in DEPARTMENTS:
        d = Department.query.filter_by(code=code).first()
        if not d:
            d = Department(name=name, code=code, faculty_id=faculty.id)
            db.session.add(d)
            db.session.flush()
        departments[code] = d

    users = {}
    for staff_number, email, full_name, phone, role, dept_code in USERS:
        u = User.query.filter_by(email=email).first()
        if not u:
            u = User(
                staff_number=staff_number,
                email=email,
                full_name=full_name,
                phone=phone,
                role=role,
                department_id=departments[dept_code].id if dept_code else None,
                status=USER_STATUS_ACTIVE,
            )
            u.set_password(DEMO_PASSWORD)
            db.session.add(u)
            db.session.flush()
        users[staff_number] = u

    dean = users["DEAN001"]
    dean.faculty_id = faculty.id
    faculty.dean_id = dean.id

    # Every department gets the demo HOD so all routes resolve
    for d in departments.values():
        if d.hod_id is None:
            d.hod_id = users["HOD001"].id

    db.session.commit()
    return users


def init_database():
    os.makedirs(INSTANCE_DIR, exist_ok=True)

    from app import create_app
    from extensions import db
    from workflow.config_store import ensure_default_workflows

    app = create_app()

    with app.app_context():
        print("Creating database tables...")
        db.create_all()

        print("Seeding default workflows...")
        created = ensure_default_workflows()
        print(f"[seed] Default workflows created: {len(created)}")

        print("Seeding demo directory...")
        users = seed_directory(db)

        print("===================================")
        print("Database initialized successfully")
        print("===================================")
        print("Login credentials:")
        for u in users.values():
            print(f"{u.role:<15} -> {u.email} / {DEMO_PASSWORD}")


if __name__ == "__main__":
    init_database()
