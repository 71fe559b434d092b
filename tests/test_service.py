import pytest

from errors import AuthError, NotFoundError, ValidationError


async def test_login_validates_before_adapter(service, storage):
    with pytest.raises(ValidationError) as exc_info:
        await service.login({"email": "not-an-email", "password": "123"})

    assert set(exc_info.value.errors) == {"email", "password"}
    assert storage.get("mock_user") is None


async def test_login_and_require_user(service):
    with pytest.raises(AuthError):
        await service.require_user()

    response = await service.login({"email": "usuario@ejemplo.cl", "password": "password123"})

    assert (await service.require_user()).id == response.user.id


async def test_invalid_report_never_reaches_adapter(service, store, report_form):
    report_form["location"]["lat"] = 95

    with pytest.raises(ValidationError) as exc_info:
        await service.create_report(report_form, "1")

    assert "location.lat" in exc_info.value.errors
    assert store.reports == []
    assert store.blobs == {}


async def test_create_report_from_form(service, report_form):
    report = await service.create_report(report_form, "1")

    assert report.title == "Broken sidewalk"
    assert report.location.address == "Paris, France"
    assert report.urgency.value == "medium"


async def test_get_report_scoped_to_owner(service, report_form):
    report = await service.create_report(report_form, "1")

    assert (await service.get_report(report.id, user_id="1")).id == report.id
    with pytest.raises(NotFoundError):
        await service.get_report(report.id, user_id="2")


async def test_send_message_validation(service, report_form):
    report = await service.create_report(report_form, "1")

    with pytest.raises(ValidationError):
        await service.send_message(report.id, {"text": ""}, "1")
    with pytest.raises(ValidationError):
        await service.send_message(report.id, {"text": "a" * 1001}, "1")

    message = await service.send_message(report.id, {"text": "a" * 1000}, "1")
    assert len(await service.get_messages(report.id)) == 2
    assert message.text == "a" * 1000


async def test_subscribe_without_realtime_returns_none(service):
    assert await service.subscribe("1", lambda m: None) is None
