from datetime import datetime, timedelta, timezone

import pytest

from errors import AuthError, NotFoundError
from mock_adapter import ACK_TEXT, SESSION_KEY, MockAdapter, MockStore
from models import LoginCredentials, ReportStatus, SendMessageInput, Sender


def ticking_clock(start=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc), step=timedelta(minutes=1)):
    state = {"now": start}

    def clock():
        state["now"] = state["now"] + step
        return state["now"]

    return clock


async def test_login_persists_session(adapter, storage):
    response = await adapter.login(LoginCredentials(email="usuario@ejemplo.cl", password="password123"))

    assert response.user.email == "usuario@ejemplo.cl"
    assert response.user.name == "María González Morales"
    assert storage.get(SESSION_KEY)["email"] == "usuario@ejemplo.cl"

    # a new process sees the persisted session
    restarted = MockAdapter(MockStore(), storage, latency_ms=(0, 0))
    user = await restarted.get_current_user()
    assert user is not None
    assert user.id == response.user.id


async def test_login_wrong_password(adapter, storage):
    with pytest.raises(AuthError):
        await adapter.login(LoginCredentials(email="usuario@ejemplo.cl", password="wrong-pass"))

    assert storage.get(SESSION_KEY) is None
    assert await adapter.get_current_user() is None


async def test_logout_is_idempotent(adapter, storage):
    await adapter.login(LoginCredentials(email="usuario@ejemplo.cl", password="password123"))
    await adapter.logout()
    await adapter.logout()

    assert storage.get(SESSION_KEY) is None
    assert await adapter.get_current_user() is None


async def test_create_report_has_single_system_message(adapter, report_input):
    report = await adapter.create_report(report_input, "1")

    assert report.status == ReportStatus.SUBMITTED
    assert report.user_id == "1"
    assert report.urgency == report_input.urgency
    assert len(report.messages) == 1
    ack = report.messages[0]
    assert ack.system is True
    assert ack.sender == Sender.CITY
    assert ack.text == ACK_TEXT
    assert ack.created_at == report.created_at
    assert report.updated_at == report.created_at


async def test_create_report_photo_resolves_in_process(adapter, store, report_input):
    report = await adapter.create_report(report_input, "1")

    assert report.photo_url.startswith("blob:mock/")
    assert store.resolve_blob(report.photo_url).data == b"test"


async def test_get_reports_scoped_and_newest_first(store, storage, report_input):
    adapter = MockAdapter(store, storage, latency_ms=(0, 0), clock=ticking_clock())
    first = await adapter.create_report(report_input, "1")
    await adapter.create_report(report_input, "2")
    second = await adapter.create_report(report_input, "1")
    third = await adapter.create_report(report_input, "1")

    reports = await adapter.get_reports("1")

    assert [r.id for r in reports] == [third.id, second.id, first.id]
    assert all(r.user_id == "1" for r in reports)
    assert reports[0].created_at > reports[1].created_at > reports[2].created_at


async def test_returned_reports_are_copies(adapter, report_input):
    report = await adapter.create_report(report_input, "1")
    report.title = "changed"

    assert (await adapter.get_report(report.id)).title == report_input.title


async def test_location_and_user_are_not_shared_with_caller(adapter, report_input):
    response = await adapter.login(LoginCredentials(email="usuario@ejemplo.cl", password="password123"))
    response.user.name = "changed"
    current = await adapter.get_current_user()
    current.email = "other@ejemplo.cl"

    again = await adapter.get_current_user()
    assert again.name == "María González Morales"
    assert again.email == "usuario@ejemplo.cl"

    report = await adapter.create_report(report_input, "1")
    report_input.location.lat = 0.0

    assert (await adapter.get_report(report.id)).location.lat == 48.8566


async def test_send_message_boundary_and_updated_at(store, storage, report_input):
    adapter = MockAdapter(store, storage, latency_ms=(0, 0), clock=ticking_clock())
    report = await adapter.create_report(report_input, "1")

    message = await adapter.send_message(SendMessageInput(report_id=report.id, text="a" * 1000), "1")

    assert message.sender == Sender.USER
    assert not message.system
    stored = await adapter.get_report(report.id)
    assert stored.updated_at == message.created_at
    assert stored.updated_at > stored.created_at
    assert [m.id for m in await adapter.get_messages(report.id)] == [
        report.messages[0].id,
        message.id,
    ]


@pytest.mark.parametrize("call", ["get_report", "get_messages", "send_message"])
async def test_unknown_report(adapter, call):
    with pytest.raises(NotFoundError):
        if call == "send_message":
            await adapter.send_message(SendMessageInput(report_id="nonexistent-id", text="hola"), "1")
        else:
            await getattr(adapter, call)("nonexistent-id")


async def test_seed_demo_includes_city_reply(adapter, store):
    seeded = store.seed_demo("1")

    reports = await adapter.get_reports("1")
    assert len(reports) == len(seeded) == 3
    replies = [m for r in reports for m in r.messages if m.sender == Sender.CITY and not m.system]
    assert replies
    assert all(r.messages[0].system for r in reports)
