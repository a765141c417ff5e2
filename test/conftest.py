import os
import sys
import tempfile
from datetime import datetime, timezone
from typing import List, Optional

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Settings are read at import time, so the environment is prepared first
TEST_RUN_DIR = tempfile.mkdtemp(prefix="actas-tests-")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORAGE_MODE", "local")
os.environ.setdefault("LOCAL_STORE_PATH", os.path.join(TEST_RUN_DIR, "actas.json"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(TEST_RUN_DIR, 'actas.db')}")
os.environ.setdefault("LOG_FILE", os.path.join(TEST_RUN_DIR, "app.log"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_BASE_URL", "https://actas.example.com")
os.environ.setdefault("AWS_SES_SENDER_EMAIL", "noreply@actas.example.com")
os.environ.setdefault("AWS_REGION", "us-east-1")

import pytest
from fastapi.testclient import TestClient

from app.actas.schemas import ActaStatus, Attendee, MeetingInfo
from app.main import acta_app as fast_api_app
from app.signatures.workflow import SignatureWorkflowEngine, get_signature_workflow
from app.storage.local import LocalActaBackend
from app.storage.selector import get_storage_backend
from app.users.models import User
from app.users.utils import get_current_user

BASE_URL = "https://actas.example.com"
ORG_ID = "org-001"
OTHER_ORG_ID = "org-002"


class FakeNotifier:
    """Records deliveries instead of emailing; fails for addresses in `failing`."""

    def __init__(self, failing: Optional[List[str]] = None):
        self.failing = set(failing or [])
        self.sent = []

    async def send(self, acta, attendee, signing_link):
        if attendee.email in self.failing:
            raise RuntimeError(f"Mailbox unavailable for {attendee.email}")
        self.sent.append((acta.id, attendee.id, attendee.signature_token, signing_link))


def make_user(organization_id: str = ORG_ID, user_id: int = 1) -> User:
    return User(
        id=user_id,
        email_address=f"user{user_id}@{organization_id}.example.com",
        display_name="Secretaria",
        organization_id=organization_id,
        role="admin",
        is_active=True,
    )


def make_attendee(attendee_id: str, name: str, email: str, **kwargs) -> Attendee:
    return Attendee(id=attendee_id, name=name, email=email, role=kwargs.pop("role", "Miembro"), **kwargs)


def acta_fields(attendees=None, organization_id: str = ORG_ID, **overrides):
    fields = {
        "organization_id": organization_id,
        "created_by": 1,
        "status": ActaStatus.DRAFT,
        "meeting_info": MeetingInfo(
            title="Comité de Seguridad",
            date=datetime(2026, 3, 14, 10, 0, tzinfo=timezone.utc),
            start_time="10:00",
            end_time="11:30",
            location="Sala 2",
        ),
        "attendees": attendees if attendees is not None else [
            make_attendee("a1", "Ana Pérez", "ana@example.com", role="Presidenta"),
            make_attendee("a2", "Bruno Díaz", "bruno@example.com", role="Secretario"),
        ],
        "agenda": ["Apertura", "Revisión de incidentes"],
        "raw_content": "Notas de la reunión",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def local_backend(tmp_path):
    return LocalActaBackend(str(tmp_path / "actas.json"))


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def workflow(local_backend, notifier):
    return SignatureWorkflowEngine(local_backend, notifier, BASE_URL)


@pytest.fixture
def current_user():
    return make_user()


@pytest.fixture
def client(local_backend, workflow, current_user):
    """
    Test client whose storage and identity are replaced by test doubles.
    """
    fast_api_app.dependency_overrides[get_storage_backend] = lambda: local_backend
    fast_api_app.dependency_overrides[get_signature_workflow] = lambda: workflow
    fast_api_app.dependency_overrides[get_current_user] = lambda: current_user
    try:
        yield TestClient(fast_api_app)
    finally:
        fast_api_app.dependency_overrides.clear()
