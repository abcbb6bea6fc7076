import pytest
from fastapi.testclient import TestClient

from api.config import Settings, TotalMarksPolicy
from api.errors import UpstreamFailure
from api.index import app, get_settings, get_sheet_source
from tests.fakes import FakeSource


@pytest.fixture
def settings():
    return Settings(google_credentials="{}", sheet_id="sheet-key",
                    total_marks_policy=TotalMarksPolicy.PER_SUBJECT)


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def client(settings, source):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_sheet_source] = lambda: source
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_sheet_source] = lambda: FakeSource(error=UpstreamFailure("boom"))
    yield TestClient(app)
    app.dependency_overrides.clear()
