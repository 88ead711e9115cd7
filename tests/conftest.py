import os
import sys
import tempfile
from pathlib import Path

# Configure the app before anything imports app.core.config
_test_tmp_dir = tempfile.mkdtemp(prefix="workify_test_")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret-do-not-use-in-production")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret-do-not-use-in-production")
os.environ.setdefault("LOG_DIR", os.path.join(_test_tmp_dir, "logs"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(_test_tmp_dir, "uploads"))
os.environ.setdefault("SMTP_HOST", "")
os.environ.setdefault("COOKIE_SECURE", "true")

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.db import mongodb  # noqa: E402
from app.main import app  # noqa: E402
from app.services.auth_service import AuthService, get_auth_service  # noqa: E402


class FakeMailer:
    """Records reset emails instead of sending them."""

    def __init__(self):
        self.sent = []
        self.fail = False
        self.error = None

    def send_password_reset(self, to_email, full_name, token, expires_minutes):
        if self.error is not None:
            raise self.error
        if self.fail:
            return False
        self.sent.append({"to": to_email, "token": token, "expires_minutes": expires_minutes})
        return True

    @property
    def last_token(self):
        return self.sent[-1]["token"]


@pytest.fixture(autouse=True)
def mongo():
    """Fresh in-memory MongoDB per test."""
    mongodb._client = mongomock.MongoClient()
    mongodb._db = None
    mongodb.init_mongo_indexes()
    yield mongodb.get_mongo_db()
    mongodb._client = None
    mongodb._db = None


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(mailer):
    app.dependency_overrides[get_auth_service] = lambda: AuthService(mailer=mailer)
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


STUDENT = {
    "fullName": "Asha Verma",
    "email": "asha@workify.io",
    "password": "secret123",
    "phoneNumber": "9876543210",
    "role": "student",
}

RECRUITER = {
    "fullName": "Ravi Nair",
    "email": "ravi@workify.io",
    "password": "hireme99",
    "phoneNumber": "8765432109",
    "role": "recruiter",
}


def register(client, form, files=None):
    """Register through the API; returns the response `data` (user + tokens)."""
    response = client.post("/api/v1/user/register", data=form, files=files)
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return response.json()["data"]


def bearer(session):
    return {"Authorization": f"Bearer {session['accessToken']}"}


@pytest.fixture
def student(client):
    return register(client, STUDENT)


@pytest.fixture
def recruiter(client):
    return register(client, RECRUITER)
