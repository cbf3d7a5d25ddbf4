"""
Test configuration - pytest fixtures and factories.

Provides:
- An in-memory SQLite database per test (StaticPool so every session and
  the TestClient thread see the same connection)
- Factory fixtures for users, profiles, jobs, documents and applications
- A FastAPI TestClient wired to the test session, plus JWT auth headers

RUNNING TESTS:
    pytest tests/ -v
    pytest tests/test_workflow_kyc.py -v
"""

import os

# Must be set before any thiqax module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from thiqax.config.database import get_db, init_db
from thiqax.models import (
    Application,
    ApplicationDocument,
    Document,
    Job,
    Notification,
    Profile,
    User,
)
from thiqax.services.token import create_token
from thiqax.workflow.types import Actor


# ============================================================================
# DATABASE
# ============================================================================

@pytest.fixture
def engine():
    """Fresh in-memory database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Session bound to the test database."""
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def now():
    """Fixed clock for deterministic timestamps."""
    return datetime(2025, 6, 1, 12, 0, 0)


# ============================================================================
# FACTORIES
# ============================================================================

@pytest.fixture
def complete_profile_data():
    """Profile sections that satisfy every completeness check."""
    return {
        "personal_info": {
            "fullName": "Amina Yusuf",
            "email": "amina@example.com",
            "phone": "+254700000000",
            "dateOfBirth": "1994-03-12",
            "currentLocation": "Nairobi",
        },
        "education": [
            {
                "institution": "Technical University of Mombasa",
                "degree": "Diploma",
                "fieldOfStudy": "Electrical Engineering",
                "startDate": "2012-01-01",
                "endDate": "2015-12-01",
            }
        ],
        "experience": [
            {
                "company": "Coast Builders",
                "position": "Electrician",
                "startDate": "2016-01-01",
                "endDate": "2021-01-01",
            }
        ],
        "skills": ["Wiring", "Solar Installation"],
        "photo_url": "https://cdn.example.com/photos/amina.jpg",
    }


@pytest.fixture
def create_user(db):
    """Factory fixture for User rows."""
    counter = {"n": 0}

    def _create_user(role="jobSeeker", **kwargs):
        counter["n"] += 1
        defaults = {
            "email": f"user{counter['n']}@example.com",
            "full_name": f"Test User {counter['n']}",
            "role": role,
        }
        defaults.update(kwargs)
        user = User(**defaults)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _create_user


@pytest.fixture
def create_profile(db):
    """Factory fixture for Profile rows."""
    def _create_profile(user, **kwargs):
        profile = Profile(user_id=user.id, **kwargs)
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _create_profile


@pytest.fixture
def create_job(db):
    """Factory fixture for Job rows."""
    def _create_job(poster=None, **kwargs):
        defaults = {
            "title": "Site Electrician",
            "posted_by": poster.id if poster else None,
            "required_skills": [],
            "experience_years": 0,
        }
        defaults.update(kwargs)
        job = Job(**defaults)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _create_job


@pytest.fixture
def create_document(db):
    """Factory fixture for Document rows."""
    def _create_document(owner, document_type="passport", **kwargs):
        defaults = {
            "owner_id": owner.id,
            "name": f"{document_type} scan",
            "document_type": document_type,
            "verification_status": "pending",
        }
        defaults.update(kwargs)
        document = Document(**defaults)
        db.add(document)
        db.commit()
        db.refresh(document)
        return document

    return _create_document


@pytest.fixture
def create_application(db):
    """Factory fixture for Application rows, optionally pre-linked to documents."""
    def _create_application(applicant, job, documents=(), **kwargs):
        application = Application(job_id=job.id, applicant_id=applicant.id, **kwargs)
        for document in documents:
            application.document_links.append(ApplicationDocument(document_id=document.id))
        db.add(application)
        db.flush()
        for document in documents:
            document.application_id = application.id
        db.commit()
        db.refresh(application)
        return application

    return _create_application


# ============================================================================
# COMMON SCENARIO OBJECTS
# ============================================================================

@pytest.fixture
def seeker(create_user):
    return create_user(role="jobSeeker", full_name="Amina Yusuf")


@pytest.fixture
def seeker_profile(create_profile, seeker):
    return create_profile(seeker)


@pytest.fixture
def sponsor(create_user):
    return create_user(role="sponsor", full_name="Gulf Contracting")


@pytest.fixture
def agent_user(create_user):
    return create_user(role="agent")


@pytest.fixture
def admin_user(create_user):
    return create_user(role="admin")


@pytest.fixture
def job(create_job, sponsor):
    return create_job(poster=sponsor)


@pytest.fixture
def admin_actor(admin_user):
    return Actor(id=admin_user.id, role="admin")


@pytest.fixture
def agent_actor(agent_user):
    return Actor(id=agent_user.id, role="agent")


@pytest.fixture
def seeker_actor(seeker):
    return Actor(id=seeker.id, role="jobSeeker")


@pytest.fixture
def notifications_for(db):
    """Notifications stored for a user, optionally filtered by type."""
    def _notifications_for(user_id, type=None):
        query = db.query(Notification).filter(Notification.recipient_id == user_id)
        if type:
            query = query.filter(Notification.type == type)
        return query.order_by(Notification.created_at).all()

    return _notifications_for


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def client(db):
    """TestClient whose requests use the test session."""
    from thiqax.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer headers for a user, signed with the service's own key."""
    def _auth_headers(user):
        token = create_token({"sub": user.id, "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
