import io
import os
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from reportlab.pdfgen import canvas
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from faxsign.config import Settings, get_settings
from faxsign.create_tables import create_tables
from faxsign.database import Base, get_db
from faxsign.main import app
from faxsign.modules.auth.services.auth_service import AuthService
from faxsign.modules.faxes.models import Fax, FaxStatus
from faxsign.modules.users.models import Department, User, UserRole

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_pdf_bytes(text="Fax para test"):
    buf = io.BytesIO()
    c = canvas.Canvas(buf)
    c.drawString(50, 750, text)
    c.save()
    buf.seek(0)
    return buf.read()


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    create_tables(engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def example_pdf():
    return create_pdf_bytes()


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return str(path)


@pytest.fixture
def settings(upload_dir):
    return Settings(upload_dir=upload_dir, seed_defaults=False)


@pytest.fixture
def client(settings):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def build(user):
        return {"Authorization": f"Bearer {AuthService.create_access_token(user)}"}
    return build


@pytest.fixture
def make_department(session):
    def factory(name):
        department = Department(name=name)
        session.add(department)
        session.commit()
        return department
    return factory


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def factory(role=UserRole.STANDARD, department=None, username=None, password_hash="x"):
        counter["n"] += 1
        username = username or f"{role.value}{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@company.com",
            password_hash=password_hash,
            full_name=username.title(),
            role=role,
            department_id=department.id if department else None,
        )
        session.add(user)
        session.commit()
        return user
    return factory


@pytest.fixture
def make_fax(session, upload_dir):
    counter = {"n": 0}

    def factory(uploader, department=None, group_id=None, status=FaxStatus.PENDING):
        counter["n"] += 1
        contents = create_pdf_bytes(f"fax {counter['n']}")
        file_path = os.path.join(upload_dir, f"fax-{counter['n']}.pdf")
        with open(file_path, "wb") as f:
            f.write(contents)
        fax = Fax(
            fax_number="555-0100",
            sender_name="Acme",
            received_at=datetime(2024, 1, 1) + timedelta(minutes=counter["n"]),
            file_path=file_path,
            original_filename=os.path.basename(file_path),
            content_type="application/pdf",
            file_size=len(contents),
            page_count=1,
            status=status,
            group_id=group_id,
            uploaded_by_id=uploader.id,
            assigned_department_id=department.id if department else None,
        )
        session.add(fax)
        session.commit()
        return fax
    return factory
