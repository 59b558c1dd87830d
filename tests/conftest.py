import datetime

import pytest
from fastapi.testclient import TestClient

from core.models import FileDocument, UserDocument
from services.drive_service.app.main import app, RATE_LIMIT_STORE
from services.drive_service.app.dependencies import require_current_user


@pytest.fixture(autouse=True)
def reset_rate_limits():
    RATE_LIMIT_STORE.clear()
    yield
    RATE_LIMIT_STORE.clear()


@pytest.fixture
def user() -> UserDocument:
    return UserDocument(id="user-1", full_name="Ada Lovelace", email="ada@example.com", account_id="acc-1")


@pytest.fixture
def other_user() -> UserDocument:
    return UserDocument(id="user-2", full_name="Alan Turing", email="alan@example.com", account_id="acc-2")


def make_file(**overrides) -> FileDocument:
    data = {
        "id": "file-1",
        "name": "report.pdf",
        "url": "https://example.supabase.co/storage/v1/object/public/drive-files/abc/report.pdf",
        "type": "document",
        "extension": "pdf",
        "size": 2048,
        "owner": "user-1",
        "account_id": "acc-1",
        "users": [],
        "bucket_file_id": "abc/report.pdf",
        "created_at": datetime.datetime(2024, 6, 20, 15, 45, tzinfo=datetime.timezone.utc),
        "updated_at": datetime.datetime(2024, 6, 20, 15, 45, tzinfo=datetime.timezone.utc),
    }
    data.update(overrides)
    return FileDocument(**data)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def authed_client(user):
    app.dependency_overrides[require_current_user] = lambda: user
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(require_current_user, None)
