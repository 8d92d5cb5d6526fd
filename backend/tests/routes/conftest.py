from typing import Callable, Dict, Iterator

from fastapi.testclient import TestClient
import pytest

from consultly.api.dependencies.database import get_db
from consultly.api.dependencies.services import get_google_calendar_client
from consultly.auth import create_access_token
from consultly.main import app
from consultly.models.user import User


@pytest.fixture
def client(db, fake_calendar) -> Iterator[TestClient]:
    def _override_db():
        yield db

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_google_calendar_client] = lambda: fake_calendar
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
