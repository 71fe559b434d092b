import asyncio

import pytest

from mock_adapter import MockAdapter, MockStore, SessionStorage
from models import CreateReportInput, Location, PhotoFile, Urgency
from service_reports import ReportService


@pytest.fixture
def storage(tmp_path):
    return SessionStorage(tmp_path / "session.json")


@pytest.fixture
def store():
    return MockStore()


@pytest.fixture
def adapter(store, storage):
    return MockAdapter(store, storage, latency_ms=(0, 0))


@pytest.fixture
def service(adapter):
    return ReportService(adapter)


@pytest.fixture
def photo():
    return PhotoFile(filename="photo.jpg", content_type="image/jpeg", data=b"test")


@pytest.fixture
def report_input(photo):
    return CreateReportInput(
        title="Broken sidewalk",
        description="There is a large crack in the sidewalk",
        photo_file=photo,
        location=Location(lat=48.8566, lng=2.3522, address="Paris, France"),
        urgency=Urgency.MEDIUM,
    )


@pytest.fixture
def report_form(photo):
    return {
        "title": "Broken sidewalk",
        "description": "There is a large crack in the sidewalk",
        "photo_file": photo,
        "location": {"lat": 48.8566, "lng": 2.3522, "address": "Paris, France"},
        "urgency": "medium",
    }


async def settle(rounds: int = 5):
    """Let background tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)
