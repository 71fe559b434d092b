import pytest

from chat_thread import ChatThread
from errors import NotFoundError, ValidationError
from models import Message, Sender


async def make_thread(service, report_form):
    report = await service.create_report(report_form, "1")
    thread = ChatThread(service, report.id, "1")
    await thread.refresh()
    return thread


async def test_pending_entry_replaced_by_confirmed(service, report_form, monkeypatch):
    thread = await make_thread(service, report_form)
    pending_during_send = []
    original = service.send_message

    async def spying_send(report_id, form, user_id):
        pending_during_send.extend(thread.pending)
        return await original(report_id, form, user_id)

    monkeypatch.setattr(service, "send_message", spying_send)

    stored = await thread.send("Still broken")

    assert len(pending_during_send) == 1
    assert pending_during_send[0].id.startswith("temp-")
    assert pending_during_send[0].text == "Still broken"
    assert thread.pending == []
    assert [m.id for m in thread.messages][-1] == stored.id
    assert len(thread.messages) == 2


async def test_failed_send_drops_pending(service, report_form):
    thread = await make_thread(service, report_form)

    with pytest.raises(ValidationError):
        await thread.send("")

    assert thread.pending == []
    assert len(thread.messages) == 1


async def test_text_is_sent_as_typed(service, report_form):
    thread = await make_thread(service, report_form)

    with pytest.raises(ValidationError):
        await thread.send("a" * 1000 + "  ")
    assert thread.pending == []

    stored = await thread.send("  hola ")
    assert stored.text == "  hola "


async def test_unknown_report_drops_pending(service):
    thread = ChatThread(service, "nonexistent-id", "1")

    with pytest.raises(NotFoundError):
        await thread.send("hola")
    assert thread.messages == []


async def test_push_and_refetch_deduplicate(service, report_form):
    thread = await make_thread(service, report_form)
    stored = await thread.send("hola")

    thread.receive(stored)
    await thread.refresh()

    assert [m.id for m in thread.messages].count(stored.id) == 1


async def test_messages_from_other_reports_ignored(service, report_form):
    thread = await make_thread(service, report_form)
    other = Message(
        id="999",
        report_id="another",
        sender=Sender.CITY,
        text="x",
        created_at=thread.messages[0].created_at,
    )

    thread.receive(other)

    assert "999" not in [m.id for m in thread.messages]
