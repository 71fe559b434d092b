import pytest

import api
from adapter import supports_realtime
from mock_adapter import MockAdapter
from remote_adapter import RealtimeRemoteAdapter, RemoteAdapter
from settings import settings


def test_mock_is_default():
    assert isinstance(api.build_adapter("mock"), MockAdapter)


def test_unknown_adapter_rejected():
    with pytest.raises(ValueError):
        api.build_adapter("firebase")


def test_hosted_without_realtime(monkeypatch):
    monkeypatch.setattr(settings, "data_adapter", "supabase")
    monkeypatch.setattr(settings, "realtime", False)

    adapter = api.build_adapter("supabase")

    assert type(adapter) is RemoteAdapter
    assert not api.is_realtime_enabled()
    assert not supports_realtime(adapter)


def test_hosted_with_realtime(monkeypatch):
    monkeypatch.setattr(settings, "data_adapter", "supabase")
    monkeypatch.setattr(settings, "realtime", True)

    adapter = api.build_adapter("supabase")

    assert isinstance(adapter, RealtimeRemoteAdapter)
    assert api.is_realtime_enabled()


def test_realtime_flag_ignored_in_mock_mode(monkeypatch):
    monkeypatch.setattr(settings, "data_adapter", "mock")
    monkeypatch.setattr(settings, "realtime", True)

    assert not api.is_realtime_enabled()


def test_selector_returns_one_instance(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "data_adapter", "mock")
    monkeypatch.setattr(settings, "mock_session_file", str(tmp_path / "s.json"))
    api.get_adapter.cache_clear()
    try:
        assert api.get_adapter() is api.get_adapter()
    finally:
        api.get_adapter.cache_clear()
